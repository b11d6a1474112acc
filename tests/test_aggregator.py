"""Tests for balance aggregation"""

from pytest import approx, raises

from satisfactory_accounting.engine.aggregator import BalanceAggregator, aggregate
from satisfactory_accounting.errors import UnknownRecipe
from satisfactory_accounting.models.balance import Balance
from satisfactory_accounting.models.node import BuildingNode, GroupNode, NodeKind, ResourcePurity
from satisfactory_accounting.models.tree import DetachedSubtree


def test_factory_example(factory, catalog):
    """Factory{A, B x2} nets +60 X, +30 Y and -24 MW"""
    expected = Balance.of(-24.0, {"X": 60.0, "Y": 30.0})
    assert aggregate(factory.tree, factory.group, catalog) == expected
    assert aggregate(factory.tree, None, catalog) == expected


def test_empty_group_is_zero(tree, catalog):
    """a group without children has an empty balance"""
    result = aggregate(tree, tree.root_id, catalog)
    assert result == Balance.empty()
    assert dict(result.items) == {}
    assert result.power == 0.0


def test_unassigned_building_is_zero(catalog):
    """a building without a recipe contributes nothing"""
    assert BalanceAggregator(catalog).building_balance(BuildingNode()) == Balance.empty()


def test_clock_speed_scales_items_linearly(catalog):
    """items scale with clock / 100, power follows the catalog curve"""
    aggregator = BalanceAggregator(catalog)
    balance = aggregator.building_balance(BuildingNode(recipe_id="iron-ore", clock_speed=250))
    assert balance.rate("Iron Ore") == 150.0
    assert balance.power == approx(-5.0 * 2.5**1.6)


def test_fixed_power_building(catalog):
    """exponent 0 buildings draw the same power at any clock"""
    aggregator = BalanceAggregator(catalog)
    balance = aggregator.building_balance(BuildingNode(recipe_id="lights", clock_speed=10))
    assert balance == Balance.power_only(-1.0)


def test_generator_produces_power(catalog):
    """generator recipes give positive power"""
    aggregator = BalanceAggregator(catalog)
    balance = aggregator.building_balance(BuildingNode(recipe_id="coal-power"))
    assert balance == Balance.of(75.0, {"Coal": -15.0, "Water": -45.0})


def test_copies_double_exactly(catalog):
    """doubling copies exactly doubles every rate and power"""
    aggregator = BalanceAggregator(catalog)
    for recipe_id in ("A", "iron-ore", "coal-power", "lights"):
        for clock in (1.0, 33.3, 100.0, 187.5):
            single = aggregator.building_balance(
                BuildingNode(recipe_id=recipe_id, clock_speed=clock, copies=1.5)
            )
            double = aggregator.building_balance(
                BuildingNode(recipe_id=recipe_id, clock_speed=clock, copies=3.0)
            )
            assert double == single * 2


def test_fractional_copies_are_not_rounded(catalog):
    """a fractional copy count yields fractional rates"""
    balance = BalanceAggregator(catalog).building_balance(
        BuildingNode(recipe_id="B", copies=0.25)
    )
    assert balance == Balance.of(-2.5, {"Y": 7.5})


def test_zero_clock_zero_items(catalog):
    """0% clock gives all-zero items for every recipe"""
    aggregator = BalanceAggregator(catalog)
    for recipe_id in catalog.recipes:
        balance = aggregator.building_balance(BuildingNode(recipe_id=recipe_id, clock_speed=0))
        assert not balance.nonzero_items()


def test_unknown_recipe_fails_even_when_scaled_away(catalog):
    """recipe validity is checked before any scaling"""
    aggregator = BalanceAggregator(catalog)
    with raises(UnknownRecipe):
        aggregator.building_balance(BuildingNode(recipe_id="missing", clock_speed=0))
    with raises(UnknownRecipe):
        aggregator.building_balance(BuildingNode(recipe_id="missing", copies=0))


def test_zero_copy_group_still_validates_children(tree, catalog):
    """a group with 0 copies is zero but still fails on a bad child"""
    group = GroupNode(copies=0)
    tree.attach(tree.root_id, 0, DetachedSubtree.single(group))
    tree.attach(group.id, 0, DetachedSubtree.single(BuildingNode(recipe_id="A")))
    assert aggregate(tree, group.id, catalog).is_zero()

    tree.attach(group.id, 1, DetachedSubtree.single(BuildingNode(recipe_id="missing")))
    with raises(UnknownRecipe):
        aggregate(tree, None, catalog)


def test_structural_additivity(deep, catalog):
    """every group equals the sum of its children times its copies"""
    tree = deep.tree
    for node_id in tree.iter_preorder():
        node = tree.node(node_id)
        if node.kind is not NodeKind.GROUP:
            continue
        children = [aggregate(tree, c, catalog) for c in node.children]
        assert aggregate(tree, node_id, catalog) == Balance.sum(children) * node.copies


def test_group_copies_scale(factory, catalog):
    """group copies multiply the whole subtree"""
    factory.tree.group(factory.group).copies = 3
    assert aggregate(factory.tree, factory.group, catalog) == Balance.of(
        -72.0, {"X": 180.0, "Y": 90.0}
    )


def test_deterministic(deep, catalog):
    """repeated aggregation is bit-for-bit identical"""
    first = aggregate(deep.tree, None, catalog)
    second = aggregate(deep.tree, None, catalog)
    assert first == second
    assert first.items == second.items


def test_purity_scales_extracted_items(catalog):
    """a miner on a pure node mines twice as fast at the same power"""
    aggregator = BalanceAggregator(catalog)
    pure = aggregator.building_balance(
        BuildingNode(recipe_id="iron-ore", purity=ResourcePurity.PURE)
    )
    assert pure == Balance.of(-5.0, {"Iron Ore": 120.0})
    impure = aggregator.building_balance(
        BuildingNode(recipe_id="iron-ore", purity=ResourcePurity.IMPURE, copies=2)
    )
    assert impure == Balance.of(-10.0, {"Iron Ore": 60.0})


def test_pump_pads_add_up(catalog):
    """pad counts of each purity are summed; no pads means no output"""
    aggregator = BalanceAggregator(catalog)
    pads = {ResourcePurity.PURE: 1, ResourcePurity.IMPURE: 2}
    balance = aggregator.building_balance(BuildingNode(recipe_id="water-pump", pads=pads))
    assert balance == Balance.of(-20.0, {"Water": 360.0})

    idle = aggregator.building_balance(
        BuildingNode(recipe_id="water-pump", pads={ResourcePurity.NORMAL: 0})
    )
    assert idle == Balance.power_only(-20.0)


def test_geothermal_power_follows_purity(catalog):
    """a generator with no items scales its power with node purity"""
    aggregator = BalanceAggregator(catalog)
    balance = aggregator.building_balance(
        BuildingNode(recipe_id="geothermal", purity=ResourcePurity.IMPURE)
    )
    assert balance == Balance.power_only(100.0)
    # fuel burning generators are unaffected
    coal = aggregator.building_balance(
        BuildingNode(recipe_id="coal-power", purity=ResourcePurity.PURE)
    )
    assert coal.power == 75.0
