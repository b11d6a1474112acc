"""Data models for balances, catalog entries and the node tree."""

from .balance import Balance, ItemId
from .catalog import Catalog, PowerCurve, RecipeSpec
from .node import BuildingNode, GroupNode, Node, NodeKind, ResourcePurity
from .tree import DetachedSubtree, FactoryTree

__all__ = [
    "Balance",
    "ItemId",
    "Catalog",
    "PowerCurve",
    "RecipeSpec",
    "BuildingNode",
    "GroupNode",
    "Node",
    "NodeKind",
    "ResourcePurity",
    "DetachedSubtree",
    "FactoryTree",
]
