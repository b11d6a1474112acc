"""Balance entries grouped and ordered for display."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pandas as pd

from satisfactory_accounting.models.balance import Balance, ItemId

Entry = tuple[ItemId, float]


class BalanceSortMode(Enum):
    """How entries in the balance should be sorted."""

    ITEM = "item"  # By item, irrespective of sign
    IO_ITEM = "io_item"  # Outputs, balanced, inputs, then NaN; each by item


@dataclass(frozen=True)
class BalanceBuckets:
    """A balance split by sign for display grouping."""

    positive: tuple[Entry, ...]
    neutral: tuple[Entry, ...]
    negative: tuple[Entry, ...]
    power: float


def _ordered(balance: Balance, item_order: Optional[list[ItemId]]) -> list[Entry]:
    if item_order is None:
        return sorted(balance.items.items())
    rank = {item: i for i, item in enumerate(item_order)}
    return sorted(balance.items.items(), key=lambda e: (rank.get(e[0], len(rank)), e[0]))


def partition_balance(
    balance: Balance,
    hide_zero: bool = False,
    item_order: Optional[list[ItemId]] = None,
) -> BalanceBuckets:
    """Split a balance into positive / neutral / negative entries.

    `item_order` is the catalog display order; unknown items go last.
    NaN rates fall in no bucket.
    """
    entries = _ordered(balance, item_order)
    neutral = () if hide_zero else tuple(e for e in entries if e[1] == 0.0)
    return BalanceBuckets(
        positive=tuple(e for e in entries if e[1] > 0.0),
        neutral=neutral,
        negative=tuple(e for e in entries if e[1] < 0.0),
        power=balance.power,
    )


def sorted_entries(
    balance: Balance,
    mode: BalanceSortMode = BalanceSortMode.ITEM,
    hide_zero: bool = False,
    item_order: Optional[list[ItemId]] = None,
) -> list[Entry]:
    """Item entries in display order for the given sort mode."""
    entries = _ordered(balance, item_order)
    if hide_zero:
        entries = [e for e in entries if e[1] != 0.0]
    if mode is BalanceSortMode.ITEM:
        return entries
    buckets = partition_balance(balance, hide_zero, item_order)
    nan = [e for e in entries if e[1] != e[1]]
    return [*buckets.positive, *buckets.neutral, *buckets.negative, *nan]


def balance_status(rate: float, tolerance: float = 0.01) -> str:
    if rate > tolerance:
        return "Surplus"
    elif rate < -tolerance:
        return "Deficit"
    return "Balanced"


def balance_table(
    balance: Balance,
    mode: BalanceSortMode = BalanceSortMode.ITEM,
    hide_zero: bool = False,
) -> pd.DataFrame:
    """Balance as a table with a leading power row.

    Columns: Item, Rate, Status. Rates are left unrounded; formatting is
    up to the caller.
    """
    rows = [
        {"Item": "Power", "Rate": balance.power, "Status": balance_status(balance.power)}
    ]
    for item, rate in sorted_entries(balance, mode, hide_zero):
        rows.append({"Item": item, "Rate": rate, "Status": balance_status(rate)})
    return pd.DataFrame(rows, columns=["Item", "Rate", "Status"])
