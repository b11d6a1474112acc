"""Balance aggregation, caching and tree editing."""

from .aggregator import BalanceAggregator, aggregate
from .cache import BalanceCache
from .editor import TreeEditor

__all__ = ["BalanceAggregator", "aggregate", "BalanceCache", "TreeEditor"]
