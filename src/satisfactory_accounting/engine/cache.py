"""Lazily recomputed per-node balance cache."""

import logging
from collections.abc import Iterable
from typing import Optional
from uuid import UUID

from satisfactory_accounting.engine.aggregator import BalanceAggregator
from satisfactory_accounting.errors import UnknownNodeIdentifier
from satisfactory_accounting.models.balance import Balance
from satisfactory_accounting.models.catalog import Catalog
from satisfactory_accounting.models.node import NodeKind
from satisfactory_accounting.models.tree import FactoryTree

_LOGGER = logging.getLogger(__name__)


class BalanceCache:
    """Caches the balance of every node in a tree.

    A node without an entry is stale. Invalidation drops the entries of a
    node and all of its ancestors; reads recompute only the stale part of
    the requested subtree, reusing clean child entries.
    """

    def __init__(self, tree: FactoryTree, catalog: Catalog):
        self.tree = tree
        self.aggregator = BalanceAggregator(catalog)
        self._balances: dict[UUID, Balance] = {}
        self.recompute_count = 0  # Node balances computed since creation

    @property
    def catalog(self) -> Catalog:
        return self.aggregator.catalog

    def __contains__(self, node_id: UUID) -> bool:
        return node_id in self._balances

    def is_stale(self, node_id: UUID) -> bool:
        self.tree.node(node_id)
        return node_id not in self._balances

    def invalidate(self, node_id: UUID) -> None:
        """Mark a node and every ancestor up to the root stale."""
        for path_id in self.tree.path_to_root(node_id):
            self._balances.pop(path_id, None)

    def forget(self, node_ids: Iterable[UUID]) -> None:
        """Drop entries of nodes that are no longer in the tree."""
        for node_id in node_ids:
            self._balances.pop(node_id, None)

    def clear(self) -> None:
        self._balances.clear()

    def set_catalog(self, catalog: Catalog) -> None:
        """Switch to a new catalog; every balance becomes stale."""
        self.aggregator = BalanceAggregator(catalog)
        self.clear()

    def get(self, node_id: Optional[UUID] = None) -> Balance:
        """Balance of a node (the root if None), recomputing if stale."""
        node_id = self.tree.root_id if node_id is None else node_id
        if node_id not in self.tree:
            raise UnknownNodeIdentifier(node_id)
        cached = self._balances.get(node_id)
        if cached is not None:
            return cached
        self._recompute(node_id)
        return self._balances[node_id]

    def _recompute(self, node_id: UUID) -> None:
        # Post-order walk that skips clean subtrees entirely. Entries are only
        # stored after they are fully computed, so an error (e.g. an unknown
        # recipe) leaves no incorrect clean entry behind.
        stack: list[tuple[UUID, bool]] = [(node_id, False)]
        computed = 0
        while stack:
            current_id, expanded = stack.pop()
            node = self.tree.nodes[current_id]
            if expanded:
                self._balances[current_id] = self.aggregator.group_balance(
                    node, (self._balances[child_id] for child_id in node.children)
                )
                computed += 1
                continue
            if current_id in self._balances:
                continue
            if node.kind is NodeKind.BUILDING:
                self._balances[current_id] = self.aggregator.building_balance(node)
                computed += 1
                continue
            stack.append((current_id, True))
            for child_id in reversed(node.children):
                if child_id not in self._balances:
                    stack.append((child_id, False))
        self.recompute_count += computed
        _LOGGER.debug("Recomputed %s balances for node %s", computed, node_id)
