"""Group and building nodes of the accounting tree."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
from uuid import UUID, uuid4


class NodeKind(Enum):
    """Tag distinguishing the two node variants."""

    GROUP = "group"
    BUILDING = "building"


class ResourcePurity(Enum):
    """Purity of the resource node an extractor is built on."""

    IMPURE = "impure"
    NORMAL = "normal"
    PURE = "pure"

    @property
    def speed_multiplier(self) -> float:
        return _PURITY_MULTIPLIERS[self]


_PURITY_MULTIPLIERS = {
    ResourcePurity.IMPURE: 0.5,
    ResourcePurity.NORMAL: 1.0,
    ResourcePurity.PURE: 2.0,
}


def parse_rate_setting(value) -> float:
    """Coerce a stored clock speed or copy count, rejecting negatives and NaN."""
    number = float(value)
    if math.isnan(number) or number < 0:
        raise ValueError(f"expected a non-negative number, got {value!r}")
    return number


def parse_pad_count(value) -> int:
    """Coerce a stored pad count, rejecting negatives and fractions."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a pad count, got {value!r}")
    if value < 0 or value != int(value):
        raise ValueError(f"expected a non-negative whole pad count, got {value!r}")
    return int(value)


@dataclass
class GroupNode:
    """Container node. Its balance is the sum of its children's balances."""

    id: UUID = field(default_factory=uuid4)
    name: str = ""
    # Child ids in display / drag-drop order
    children: list[UUID] = field(default_factory=list)
    collapsed: bool = False  # Presentation only
    copies: float = 1.0  # Multiplier on the aggregate balance
    kind: NodeKind = field(default=NodeKind.GROUP, init=False)

    def to_dict(self, children: list[dict]) -> dict:
        """Serialize for JSON storage, with already-serialized children."""
        return {
            "kind": self.kind.value,
            "id": str(self.id),
            "name": self.name,
            "collapsed": self.collapsed,
            "copies": self.copies,
            "children": children,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GroupNode":
        """Deserialize from JSON (children are attached by the tree)."""
        return cls(
            id=UUID(data["id"]),
            name=str(data.get("name", "")),
            collapsed=bool(data.get("collapsed", False)),
            copies=parse_rate_setting(data.get("copies", 1.0)),
        )


@dataclass
class BuildingNode:
    """Leaf node running one catalog recipe.

    Extractors record the resource node they sit on. `purity` covers a
    single node; `pads` counts the pads of each purity a pump draws from and
    takes precedence when present, so a pump with no pads yields no items.
    """

    id: UUID = field(default_factory=uuid4)
    recipe_id: Optional[str] = None  # Unassigned buildings have an empty balance
    clock_speed: float = 100.0  # Percent
    copies: float = 1.0
    purity: Optional[ResourcePurity] = None
    pads: dict[ResourcePurity, int] = field(default_factory=dict)
    kind: NodeKind = field(default=NodeKind.BUILDING, init=False)

    def yield_multiplier(self) -> float:
        """Factor applied to what the resource node yields."""
        if self.pads:
            return sum(
                purity.speed_multiplier * self.pads.get(purity, 0)
                for purity in ResourcePurity
            )
        if self.purity is not None:
            return self.purity.speed_multiplier
        return 1.0

    def to_dict(self) -> dict:
        """Serialize for JSON storage."""
        return {
            "kind": self.kind.value,
            "id": str(self.id),
            "recipe_id": self.recipe_id,
            "clock_speed": self.clock_speed,
            "copies": self.copies,
            "purity": self.purity.value if self.purity is not None else None,
            "pads": {purity.value: count for purity, count in self.pads.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildingNode":
        """Deserialize from JSON."""
        recipe_id = data.get("recipe_id")
        purity = data.get("purity")
        return cls(
            id=UUID(data["id"]),
            recipe_id=None if recipe_id is None else str(recipe_id),
            clock_speed=parse_rate_setting(data.get("clock_speed", 100.0)),
            copies=parse_rate_setting(data.get("copies", 1.0)),
            purity=None if purity is None else ResourcePurity(purity),
            pads={
                ResourcePurity(key): parse_pad_count(count)
                for key, count in data.get("pads", {}).items()
            },
        )


Node = Union[GroupNode, BuildingNode]
