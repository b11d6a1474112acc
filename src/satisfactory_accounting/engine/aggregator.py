"""Aggregator for computing node balances."""

from collections.abc import Iterable
from typing import Optional
from uuid import UUID

from satisfactory_accounting.models.balance import Balance
from satisfactory_accounting.models.catalog import Catalog
from satisfactory_accounting.models.node import BuildingNode, GroupNode, NodeKind
from satisfactory_accounting.models.tree import FactoryTree


class BalanceAggregator:
    """Calculates the balance of a single node from its own parameters."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def building_balance(self, building: BuildingNode) -> Balance:
        """Balance of one building, including its virtual copies."""
        if building.recipe_id is None:
            return Balance.empty()

        # Lookup happens before any scaling so unknown recipes fail even at
        # 0% clock or 0 copies.
        recipe = self.catalog.lookup_recipe(building.recipe_id)

        clock = building.clock_speed / 100.0
        copies = building.copies
        node_yield = building.yield_multiplier()
        items = {
            item: rate * clock * node_yield * copies
            for item, rate in recipe.item_rates.items()
        }
        power = recipe.power_curve(building.clock_speed)
        if not recipe.item_rates and power > 0:
            # Generators fed directly by a resource node (geothermal) yield power.
            power *= node_yield
        return Balance.of(power * copies, items)

    def group_balance(self, group: GroupNode, child_balances: Iterable[Balance]) -> Balance:
        """Sum of already-computed child balances, scaled by the group's copies.

        Child balances must be given in child-sequence order.
        """
        return Balance.sum(child_balances) * group.copies

    def aggregate(self, tree: FactoryTree, node_id: Optional[UUID] = None) -> Balance:
        """Balance of a node computed from scratch over its whole subtree."""
        start_id = tree.root_id if node_id is None else node_id
        balances: dict[UUID, Balance] = {}
        for current_id in tree.iter_postorder(start_id):
            node = tree.nodes[current_id]
            if node.kind is NodeKind.BUILDING:
                balances[current_id] = self.building_balance(node)
            else:
                balances[current_id] = self.group_balance(
                    node, (balances.pop(child_id) for child_id in node.children)
                )
        return balances[start_id]


def aggregate(tree: FactoryTree, node_id: Optional[UUID], catalog: Catalog) -> Balance:
    """Pure balance computation for `node_id` (the root if None)."""
    return BalanceAggregator(catalog).aggregate(tree, node_id)
