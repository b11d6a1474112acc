"""Shared fixtures: a small catalog and the Factory example tree."""

from types import SimpleNamespace

import pytest

from satisfactory_accounting.config import TestingConfig
from satisfactory_accounting.data.loader import RecipeCatalog
from satisfactory_accounting.engine.editor import TreeEditor
from satisfactory_accounting.models.tree import FactoryTree


@pytest.fixture
def catalog():
    catalog = RecipeCatalog()
    # A: 60 X from 30 Y, draws 4 MW
    catalog.define("A", {"X": 60.0, "Y": -30.0}, power=-4.0)
    # B: 30 Y, draws 10 MW
    catalog.define("B", {"Y": 30.0}, power=-10.0)
    catalog.define("iron-plate", {"Iron Ore": -30.0, "Iron Plate": 20.0}, power=-4.0)
    catalog.define("iron-ore", {"Iron Ore": 60.0}, power=-5.0, exponent=1.6)
    catalog.define("coal-power", {"Coal": -15.0, "Water": -45.0}, power=75.0, exponent=1.3)
    catalog.define("lights", {}, power=-1.0, exponent=0.0)
    catalog.define("water-pump", {"Water": 120.0}, power=-20.0, exponent=1.6)
    catalog.define("geothermal", {}, power=200.0, exponent=0.0)
    return catalog


@pytest.fixture
def tree():
    return FactoryTree()


@pytest.fixture
def editor(tree, catalog):
    return TreeEditor(tree, catalog, TestingConfig)


@pytest.fixture
def factory(editor):
    """Root > Factory{A, B x2}"""
    root = editor.tree.root_id
    factory_id = editor.add_group(root, name="Factory")
    a = editor.add_building(factory_id, recipe_id="A")
    b = editor.add_building(factory_id, recipe_id="B", copies=2)
    return SimpleNamespace(editor=editor, tree=editor.tree, root=root, group=factory_id, a=a, b=b)


@pytest.fixture
def deep(editor):
    """Root > Main{Smelting{ore, plates x3}, Power{coal}, lights} , Spare{}"""
    tree = editor.tree
    main = editor.add_group(tree.root_id, name="Main")
    smelting = editor.add_group(main, name="Smelting", copies=2)
    ore = editor.add_building(smelting, recipe_id="iron-ore", clock_speed=250)
    plates = editor.add_building(smelting, recipe_id="iron-plate", copies=3)
    power = editor.add_group(main, name="Power")
    coal = editor.add_building(power, recipe_id="coal-power", clock_speed=50.5)
    lights = editor.add_building(main, recipe_id="lights")
    spare = editor.add_group(tree.root_id, name="Spare")
    return SimpleNamespace(
        editor=editor, tree=tree, root=tree.root_id, main=main, smelting=smelting,
        ore=ore, plates=plates, power=power, coal=coal, lights=lights, spare=spare,
    )
