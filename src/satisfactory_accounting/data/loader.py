"""TSV parser and in-memory recipe catalog."""

import csv
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Optional, Union

from satisfactory_accounting.errors import UnknownRecipe
from satisfactory_accounting.models.balance import ItemId
from satisfactory_accounting.models.catalog import PowerCurve, RecipeSpec

_LOGGER = logging.getLogger(__name__)

# Power of most production buildings grows with clock ** 1.321928.
DEFAULT_POWER_EXPONENT = 1.321928

# Item name used in TSV rows for generated power (MW, not per cycle).
POWER_ITEM = "MW"


class RecipeCatalog:
    """Loads and indexes recipes. Implements the Catalog lookup."""

    def __init__(self, recipes: Iterable[RecipeSpec] = ()):
        self.recipes: dict[str, RecipeSpec] = {}  # recipe_id -> RecipeSpec
        self.recipes_by_output: dict[ItemId, list[str]] = defaultdict(
            list
        )  # item -> [recipe_ids]
        self.all_items: set[ItemId] = set()

        for recipe in recipes:
            self.add_recipe(recipe)

    def __len__(self) -> int:
        return len(self.recipes)

    def __contains__(self, recipe_id: str) -> bool:
        return recipe_id in self.recipes

    def add_recipe(self, recipe: RecipeSpec) -> None:
        """Register a recipe, replacing any recipe with the same id."""
        if recipe.id in self.recipes:
            self._unindex(self.recipes[recipe.id])
        self.recipes[recipe.id] = recipe
        for item, rate in recipe.item_rates.items():
            self.all_items.add(item)
            if rate > 0:
                self.recipes_by_output[item].append(recipe.id)

    def define(
        self,
        recipe_id: str,
        item_rates: Mapping[ItemId, float],
        power: Union[float, Callable[[float], float]] = 0.0,
        exponent: float = DEFAULT_POWER_EXPONENT,
        name: str = "",
        building: str = "",
    ) -> RecipeSpec:
        """Create and register a recipe from per-minute rates at 100% clock."""
        curve = power if callable(power) else PowerCurve(power, exponent)
        recipe = RecipeSpec(
            id=recipe_id,
            item_rates=dict(item_rates),
            power_curve=curve,
            name=name or recipe_id,
            building=building,
        )
        self.add_recipe(recipe)
        return recipe

    def lookup_recipe(self, recipe_id: str) -> RecipeSpec:
        """Get a specific recipe by id."""
        try:
            return self.recipes[recipe_id]
        except KeyError:
            raise UnknownRecipe(recipe_id) from None

    def get_recipes_for_item(self, item_name: ItemId) -> list[RecipeSpec]:
        """Get all recipes that produce a given item."""
        recipe_ids = self.recipes_by_output.get(item_name, [])
        return [self.recipes[rid] for rid in recipe_ids if rid in self.recipes]

    def get_producible_items(self) -> set[ItemId]:
        """All items that can be produced."""
        return {item for item, ids in self.recipes_by_output.items() if ids}

    def get_base_resources(self) -> set[ItemId]:
        """Items that are consumed but never produced."""
        return self.all_items - self.get_producible_items()

    def _unindex(self, recipe: RecipeSpec) -> None:
        for item in recipe.outputs:
            ids = self.recipes_by_output.get(item, [])
            if recipe.id in ids:
                ids.remove(recipe.id)

    @classmethod
    def from_tsv(cls, tsv_path: Path) -> "RecipeCatalog":
        """Parse a recipe TSV.

        One row per recipe ingredient/product with columns Recipe, Building,
        Runtime (seconds per cycle), Item, Amount (negative for inputs),
        Draw (MW consumed at 100%) and optionally Exponent. A row with Item
        "MW" gives the power a generator recipe produces.
        """
        catalog = cls()
        recipe_rows: dict[str, list[dict]] = defaultdict(list)

        with open(tsv_path, "r", encoding="utf-8") as f:
            reader = csv.DictReader(f, delimiter="\t")
            for row in reader:
                recipe_name = (row.get("Recipe") or "").strip()
                # Skip empty or placeholder rows
                if not recipe_name or recipe_name == "xxx":
                    continue
                building = (row.get("Building") or "").strip()
                if not building or building.startswith("#"):
                    continue
                recipe_rows[recipe_name].append(row)

        for recipe_name, rows in recipe_rows.items():
            recipe = _parse_recipe(recipe_name, rows)
            if recipe is not None:
                catalog.add_recipe(recipe)

        _LOGGER.info("Loaded %s recipes from %s", len(catalog), tsv_path)
        return catalog


def _parse_float(value: Optional[str], default: float = 0.0) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


def _parse_recipe(recipe_name: str, rows: list[dict]) -> Optional[RecipeSpec]:
    first_row = rows[0]
    building_name = first_row["Building"].strip()

    try:
        runtime = _parse_float(first_row.get("Runtime"))
        draw = _parse_float(first_row.get("Draw"))
        exponent = _parse_float(first_row.get("Exponent"), DEFAULT_POWER_EXPONENT)
    except ValueError:
        _LOGGER.warning("Skipping recipe %r: malformed numeric column", recipe_name)
        return None
    if runtime <= 0:
        _LOGGER.warning("Skipping recipe %r: runtime must be positive", recipe_name)
        return None

    cycles_per_minute = 60.0 / runtime
    item_rates: dict[ItemId, float] = {}
    generated = 0.0

    for row in rows:
        item_name = (row.get("Item") or "").strip()
        if not item_name:
            continue
        try:
            amount = _parse_float(row.get("Amount"))
        except ValueError:
            _LOGGER.warning("Skipping malformed amount for %r in %r", item_name, recipe_name)
            continue
        if amount == 0:
            continue
        if item_name == POWER_ITEM:
            generated += amount
            continue
        item_rates[item_name] = item_rates.get(item_name, 0.0) + amount * cycles_per_minute

    if not item_rates and generated == 0 and draw == 0:
        _LOGGER.warning("Skipping recipe %r: no items or power", recipe_name)
        return None

    return RecipeSpec(
        id=recipe_name,
        item_rates=item_rates,
        power_curve=PowerCurve(generated - draw, exponent),
        name=recipe_name,
        building=building_name,
    )
