"""Tests for the lazy balance cache"""

import random
from uuid import uuid4

from pytest import raises

from satisfactory_accounting.engine.aggregator import aggregate
from satisfactory_accounting.engine.cache import BalanceCache
from satisfactory_accounting.errors import AccountingError, UnknownNodeIdentifier, UnknownRecipe
from satisfactory_accounting.models.balance import Balance
from satisfactory_accounting.models.node import BuildingNode, NodeKind, ResourcePurity


def _assert_matches_scratch(editor):
    for node_id in editor.tree.iter_preorder():
        assert editor.balance(node_id) == aggregate(editor.tree, node_id, editor.catalog)


def test_get_caches_results(deep):
    """a second read of a clean node does no work"""
    cache = deep.editor.cache
    cache.get()
    count = cache.recompute_count
    assert count == len(deep.tree)
    cache.get()
    cache.get(deep.ore)
    assert cache.recompute_count == count
    assert not cache.is_stale(deep.main)


def test_invalidate_marks_path_to_root(deep):
    """invalidate marks the node and its ancestors, not siblings"""
    cache = deep.editor.cache
    cache.get()
    cache.invalidate(deep.ore)
    for node_id in (deep.ore, deep.smelting, deep.main, deep.root):
        assert cache.is_stale(node_id)
    for node_id in (deep.plates, deep.power, deep.coal, deep.lights, deep.spare):
        assert not cache.is_stale(node_id)


def test_recompute_is_proportional_to_path(deep):
    """after one edit only the invalidated path is recomputed"""
    cache = deep.editor.cache
    cache.get()
    before = cache.recompute_count
    deep.editor.set_clock_speed(deep.coal, 75)
    cache.get()
    # coal, power, main, root
    assert cache.recompute_count - before == 4


def test_lazy_invalidation(deep):
    """invalidate does not recompute until the balance is read"""
    cache = deep.editor.cache
    cache.get()
    before = cache.recompute_count
    cache.invalidate(deep.plates)
    assert cache.recompute_count == before


def test_unknown_node(deep):
    """reads and invalidations of unknown ids fail"""
    cache = deep.editor.cache
    with raises(UnknownNodeIdentifier):
        cache.get(uuid4())
    with raises(UnknownNodeIdentifier):
        cache.invalidate(uuid4())


def test_removed_node_is_forgotten(deep):
    """removing a subtree drops its cache entries"""
    editor = deep.editor
    editor.balance()
    editor.remove_child(deep.main, 0)
    assert deep.ore not in editor.cache
    with raises(UnknownNodeIdentifier):
        editor.balance(deep.ore)


def test_error_leaves_no_stale_clean_entry(factory):
    """a failing recompute does not cache a wrong value"""
    editor = factory.editor
    editor.balance()
    building = editor.tree.building(factory.a)
    building.recipe_id = "missing"
    editor.cache.invalidate(factory.a)
    with raises(UnknownRecipe):
        editor.balance()
    assert editor.cache.is_stale(factory.root)

    building.recipe_id = "A"
    editor.cache.invalidate(factory.a)
    assert editor.balance() == Balance.of(-24.0, {"X": 60.0, "Y": 30.0})


def test_set_catalog_clears(factory, catalog):
    """switching catalogs recomputes everything against the new rates"""
    editor = factory.editor
    editor.balance()
    catalog.define("A", {"X": 10.0}, power=0.0)
    editor.replace_catalog(catalog)
    assert editor.cache.is_stale(factory.a)
    assert editor.balance() == Balance.of(-20.0, {"X": 10.0, "Y": 60.0})


def test_standalone_cache(factory, catalog):
    """a cache can be built over an existing tree"""
    cache = BalanceCache(factory.tree, catalog)
    assert cache.get(factory.group) == Balance.of(-24.0, {"X": 60.0, "Y": 30.0})


def test_random_edits_match_scratch(deep):
    """cached balances equal from-scratch aggregation after every edit"""
    editor = deep.editor
    tree = deep.tree
    rng = random.Random(1234)
    recipes = ["A", "B", "iron-ore", "iron-plate", "coal-power", "lights"]

    for step in range(300):
        ids = list(tree.iter_preorder())
        groups = [i for i in ids if tree.node(i).kind is NodeKind.GROUP]
        buildings = [i for i in ids if tree.node(i).kind is NodeKind.BUILDING]
        op = rng.randrange(10)
        try:
            if op == 0:
                parent = rng.choice(groups)
                editor.add_building(
                    parent,
                    rng.randint(0, len(tree.children_of(parent))),
                    recipe_id=rng.choice(recipes),
                    clock_speed=rng.choice([0, 50, 100, 137.5, 250]),
                )
            elif op == 1:
                editor.add_group(rng.choice(groups), copies=rng.choice([0, 1, 2, 0.5]))
            elif op == 2 and buildings:
                editor.set_clock_speed(rng.choice(buildings), rng.uniform(0, 250))
            elif op == 3:
                editor.set_virtual_copies(rng.choice(ids), rng.choice([0, 1, 2, 3, 1.25]))
            elif op == 4 and buildings:
                editor.set_recipe(rng.choice(buildings), rng.choice(recipes))
            elif op == 5:
                src = rng.choice(groups)
                dest = rng.choice(groups)
                size = len(tree.children_of(src))
                if size:
                    editor.move_child(src, rng.randrange(size), dest, rng.randint(0, 3))
            elif op == 6:
                parent = rng.choice(groups)
                size = len(tree.children_of(parent))
                if size and len(tree) > 12:
                    editor.remove_child(parent, rng.randrange(size))
            elif op == 7:
                node_id = rng.choice(ids)
                if node_id != tree.root_id and len(tree) + len(tree.subtree_ids(node_id)) < 120:
                    editor.duplicate(node_id)
            elif op == 8:
                parent = rng.choice(groups)
                size = len(tree.children_of(parent))
                if size:
                    editor.reorder_sibling(parent, rng.randrange(size), rng.randrange(size))
            elif op == 9:
                parent = rng.choice(groups)
                node = BuildingNode(
                    recipe_id=rng.choice(recipes),
                    clock_speed=rng.choice([-10, 0, 75, 100, 180]),
                    copies=rng.choice([-1, 0, 1, 2.5]),
                    purity=rng.choice([None, *ResourcePurity]),
                )
                editor.insert_child(parent, rng.randint(0, len(tree.children_of(parent))), node)
        except AccountingError:
            pass

        sample_id = rng.choice(list(tree.iter_preorder()))
        assert editor.balance(sample_id) == aggregate(tree, sample_id, editor.catalog)
        if step % 25 == 0:
            _assert_matches_scratch(editor)

    _assert_matches_scratch(editor)
