"""Balance of a node: net item rates plus net power."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from frozendict import frozendict

ItemId = str


@dataclass(frozen=True, eq=False)
class Balance:
    """Net items/min per item and net power (MW) of a node.

    Positive rates are production, negative rates consumption. Power is
    positive for generation and negative for draw. Balances are values:
    arithmetic always returns a new Balance. An item absent from `items`
    and an item present with rate 0.0 compare equal.
    """

    power: float = 0.0
    items: frozendict = field(default_factory=frozendict)

    def __post_init__(self):
        if not isinstance(self.items, frozendict):
            object.__setattr__(self, "items", frozendict(self.items))

    @classmethod
    def empty(cls) -> "Balance":
        return cls()

    @classmethod
    def power_only(cls, power: float) -> "Balance":
        return cls(power=power)

    @classmethod
    def of(cls, power: float, items: Mapping[ItemId, float]) -> "Balance":
        return cls(power=power, items=frozendict(items))

    @classmethod
    def sum(cls, balances: Iterable["Balance"]) -> "Balance":
        """Sum balances in iteration order (stable for reproducible floats)."""
        power = 0.0
        items: dict[ItemId, float] = {}
        for balance in balances:
            power += balance.power
            for item, rate in balance.items.items():
                items[item] = items.get(item, 0.0) + rate
        return cls(power=power, items=frozendict(items))

    def rate(self, item: ItemId) -> float:
        """Net rate for an item, 0.0 if the item is not present."""
        return self.items.get(item, 0.0)

    def nonzero_items(self) -> frozendict:
        return frozendict({k: v for k, v in self.items.items() if v != 0.0})

    def is_zero(self) -> bool:
        return self.power == 0.0 and not self.nonzero_items()

    def scaled(self, factor: float) -> "Balance":
        return Balance(
            power=self.power * factor,
            items=frozendict({k: v * factor for k, v in self.items.items()}),
        )

    def __add__(self, other: "Balance") -> "Balance":
        if not isinstance(other, Balance):
            return NotImplemented
        return Balance.sum((self, other))

    def __sub__(self, other: "Balance") -> "Balance":
        if not isinstance(other, Balance):
            return NotImplemented
        return Balance.sum((self, -other))

    def __neg__(self) -> "Balance":
        return self.scaled(-1.0)

    def __mul__(self, factor: float) -> "Balance":
        if isinstance(factor, Balance):
            return NotImplemented
        return self.scaled(factor)

    __rmul__ = __mul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Balance):
            return NotImplemented
        return self.power == other.power and self.nonzero_items() == other.nonzero_items()

    def __hash__(self) -> int:
        return hash((self.power, self.nonzero_items()))

    def __repr__(self) -> str:
        return f"Balance(power={self.power!r}, items={dict(self.items)!r})"

    def to_dict(self) -> dict:
        """Serialize for JSON storage."""
        return {"power": self.power, "items": dict(self.items)}

    @classmethod
    def from_dict(cls, data: dict) -> "Balance":
        """Deserialize from JSON."""
        return cls.of(data.get("power", 0.0), data.get("items", {}))
