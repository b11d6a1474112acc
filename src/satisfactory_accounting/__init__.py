"""Hierarchical item and power balance accounting for factory trees."""

from .engine import BalanceAggregator, BalanceCache, TreeEditor, aggregate
from .models import Balance, BuildingNode, FactoryTree, GroupNode, NodeKind, ResourcePurity

__version__ = "1.2.0"

__all__ = [
    "aggregate",
    "Balance",
    "BalanceAggregator",
    "BalanceCache",
    "BuildingNode",
    "FactoryTree",
    "GroupNode",
    "NodeKind",
    "ResourcePurity",
    "TreeEditor",
]
