"""Recipe and power characteristics consumed from the game catalog."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from frozendict import frozendict

from satisfactory_accounting.models.balance import ItemId


@dataclass(frozen=True)
class PowerCurve:
    """Power of a building as a function of clock speed.

    `base_power` is the rate at 100% clock: negative for consumers,
    positive for generators. Consumers scale with clock ** exponent,
    generators with clock ** (1 / exponent). An exponent of 0 means the
    building cannot be overclocked and its power is fixed.
    """

    base_power: float = 0.0
    exponent: float = 1.0

    def __call__(self, clock_percent: float) -> float:
        if self.exponent == 0.0 or self.base_power == 0.0:
            return self.base_power
        clock = clock_percent / 100.0
        if self.base_power < 0.0:
            return self.base_power * clock**self.exponent
        return self.base_power * clock ** (1.0 / self.exponent)


@dataclass(frozen=True)
class RecipeSpec:
    """Rates of a recipe at 100% clock, as looked up from the catalog."""

    id: str
    item_rates: frozendict = field(default_factory=frozendict)  # item -> signed items/min
    power_curve: Callable[[float], float] = field(default_factory=PowerCurve)
    name: str = ""
    building: str = ""

    def __post_init__(self):
        if not isinstance(self.item_rates, frozendict):
            object.__setattr__(self, "item_rates", frozendict(self.item_rates))

    @property
    def inputs(self) -> Mapping[ItemId, float]:
        """Consumed items as positive rates."""
        return {item: -rate for item, rate in self.item_rates.items() if rate < 0}

    @property
    def outputs(self) -> Mapping[ItemId, float]:
        return {item: rate for item, rate in self.item_rates.items() if rate > 0}

    def is_power_generator(self) -> bool:
        """Check if recipe produces power at its base clock."""
        return self.power_curve(100.0) > 0


class Catalog(Protocol):
    """Read-only recipe lookup. Raises UnknownRecipe for missing ids."""

    def lookup_recipe(self, recipe_id: str) -> RecipeSpec: ...
