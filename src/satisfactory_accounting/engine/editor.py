"""Mutation surface for the accounting tree.

Every operation validates its inputs before touching the tree, so a failed
call leaves both the tree and the balance cache exactly as they were.
Successful edits invalidate the cached balances of the edited node and its
ancestors only.
"""

import logging
import math
from typing import Optional, Union
from uuid import UUID

from satisfactory_accounting.config import Config
from satisfactory_accounting.engine.cache import BalanceCache
from satisfactory_accounting.errors import (
    CycleDetected,
    IndexOutOfRange,
    InvalidClockSpeed,
    InvalidCopyCount,
    InvalidPadCount,
    RootHasNoParent,
)
from satisfactory_accounting.models.balance import Balance
from satisfactory_accounting.models.catalog import Catalog
from satisfactory_accounting.models.node import (
    BuildingNode,
    GroupNode,
    Node,
    NodeKind,
    ResourcePurity,
)
from satisfactory_accounting.models.tree import DetachedSubtree, FactoryTree

_LOGGER = logging.getLogger(__name__)


class TreeEditor:
    """Applies user edits to a tree and keeps its balance cache in sync."""

    def __init__(
        self,
        tree: FactoryTree,
        catalog: Catalog,
        cfg: type[Config] = Config,
    ):
        self.tree = tree
        self.cache = BalanceCache(tree, catalog)
        self.max_clock_speed: Optional[float] = cfg.MAX_CLOCK_SPEED
        self.default_clock_speed: float = cfg.DEFAULT_CLOCK_SPEED

    @property
    def catalog(self) -> Catalog:
        return self.cache.catalog

    def balance(self, node_id: Optional[UUID] = None) -> Balance:
        """Cached balance of a node (the root if None)."""
        return self.cache.get(node_id)

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def insert_child(
        self,
        parent_id: UUID,
        index: int,
        node: Union[Node, DetachedSubtree],
    ) -> UUID:
        """Insert a node or detached subtree at `index` of a group."""
        subtree = node if isinstance(node, DetachedSubtree) else DetachedSubtree.single(node)
        self._check_subtree_settings(subtree)
        self.tree.attach(parent_id, index, subtree)
        self.cache.invalidate(parent_id)
        _LOGGER.debug(
            "Inserted %s (%s nodes) into %s at %s",
            subtree.root_id, len(subtree), parent_id, index,
        )
        return subtree.root_id

    def remove_child(self, parent_id: UUID, index: int) -> DetachedSubtree:
        """Remove child `index` of a group and return the removed subtree."""
        removed = self.tree.detach(parent_id, index)
        self.cache.forget(removed.nodes)
        self.cache.invalidate(parent_id)
        _LOGGER.debug("Removed %s from %s at %s", removed.root_id, parent_id, index)
        return removed

    def move_child(
        self,
        src_parent_id: UUID,
        src_index: int,
        dest_parent_id: UUID,
        dest_index: int,
    ) -> UUID:
        """Move a child to another position, possibly under another group.

        `dest_index` refers to the destination's children after the node has
        been removed from its source, as if remove_child were followed by
        insert_child.
        """
        src_parent = self.tree.group(src_parent_id)
        if not 0 <= src_index < len(src_parent.children):
            raise IndexOutOfRange(src_index, len(src_parent.children), src_parent_id)
        moved_id = src_parent.children[src_index]

        dest_parent = self.tree.group(dest_parent_id)
        if self.tree.is_descendant(dest_parent_id, moved_id):
            raise CycleDetected(moved_id, dest_parent_id)

        dest_len = len(dest_parent.children)
        if dest_parent_id == src_parent_id:
            dest_len -= 1
        if not 0 <= dest_index <= dest_len:
            raise IndexOutOfRange(dest_index, dest_len, dest_parent_id)

        moved = self.tree.detach(src_parent_id, src_index)
        try:
            self.tree.attach(dest_parent_id, dest_index, moved)
        except Exception:
            self.tree.attach(src_parent_id, src_index, moved)
            raise

        # The moved subtree's own balances are unchanged.
        self.cache.invalidate(src_parent_id)
        self.cache.invalidate(dest_parent_id)
        _LOGGER.debug(
            "Moved %s from %s[%s] to %s[%s]",
            moved_id, src_parent_id, src_index, dest_parent_id, dest_index,
        )
        return moved_id

    def reorder_sibling(self, parent_id: UUID, from_index: int, to_index: int) -> None:
        """Move a child to another position within the same group."""
        parent = self.tree.group(parent_id)
        length = len(parent.children)
        for index in (from_index, to_index):
            if not 0 <= index < length:
                raise IndexOutOfRange(index, length, parent_id)
        child_id = parent.children.pop(from_index)
        parent.children.insert(to_index, child_id)
        # Floating-point sums depend on child order.
        self.cache.invalidate(parent_id)
        _LOGGER.debug("Reordered %s in %s: %s -> %s", child_id, parent_id, from_index, to_index)

    # ------------------------------------------------------------------
    # Node creation
    # ------------------------------------------------------------------

    def add_group(
        self,
        parent_id: UUID,
        index: Optional[int] = None,
        name: str = "",
        copies: float = 1.0,
    ) -> UUID:
        """Create an empty group. Appends when no index is given."""
        if index is None:
            index = len(self.tree.group(parent_id).children)
        return self.insert_child(parent_id, index, GroupNode(name=name, copies=copies))

    def add_building(
        self,
        parent_id: UUID,
        index: Optional[int] = None,
        recipe_id: Optional[str] = None,
        clock_speed: Optional[float] = None,
        copies: float = 1.0,
        purity: Optional[ResourcePurity] = None,
        pads: Optional[dict[ResourcePurity, int]] = None,
    ) -> UUID:
        """Create a building. Appends when no index is given."""
        if clock_speed is None:
            clock_speed = self.default_clock_speed
        if recipe_id is not None:
            self.catalog.lookup_recipe(recipe_id)
        if index is None:
            index = len(self.tree.group(parent_id).children)
        building = BuildingNode(
            recipe_id=recipe_id,
            clock_speed=clock_speed,
            copies=copies,
            purity=purity,
            pads=dict(pads or {}),
        )
        return self.insert_child(parent_id, index, building)

    def duplicate(self, node_id: UUID) -> UUID:
        """Insert a copy with fresh ids directly after the original."""
        parent_id = self.tree.parent_of(node_id)
        if parent_id is None:
            raise RootHasNoParent(node_id)
        index = self.tree.index_of(node_id)
        return self.insert_child(parent_id, index + 1, self.tree.copy_subtree(node_id))

    # ------------------------------------------------------------------
    # Parameter edits
    # ------------------------------------------------------------------

    def set_clock_speed(self, building_id: UUID, percent: float) -> None:
        building = self.tree.building(building_id)
        self._check_clock_speed(percent)
        building.clock_speed = percent
        self.cache.invalidate(building_id)
        _LOGGER.debug("Set clock speed of %s to %s%%", building_id, percent)

    def set_virtual_copies(self, node_id: UUID, count: float) -> None:
        node = self.tree.node(node_id)
        self._check_copies(count)
        node.copies = count
        self.cache.invalidate(node_id)
        _LOGGER.debug("Set virtual copies of %s to %s", node_id, count)

    def set_recipe(self, building_id: UUID, recipe_id: Optional[str]) -> None:
        """Select a recipe; None leaves the building unassigned."""
        building = self.tree.building(building_id)
        if recipe_id is not None:
            self.catalog.lookup_recipe(recipe_id)
        building.recipe_id = recipe_id
        self.cache.invalidate(building_id)
        _LOGGER.debug("Set recipe of %s to %s", building_id, recipe_id)

    def set_purity(self, building_id: UUID, purity: Optional[ResourcePurity]) -> None:
        """Purity of the resource node a building sits on; None for no node."""
        building = self.tree.building(building_id)
        building.purity = ResourcePurity(purity) if purity is not None else None
        self.cache.invalidate(building_id)
        _LOGGER.debug("Set purity of %s to %s", building_id, building.purity)

    def set_resource_pads(self, building_id: UUID, pads: dict[ResourcePurity, int]) -> None:
        """Pad counts per purity for a pump; an empty mapping clears them."""
        building = self.tree.building(building_id)
        pads = {ResourcePurity(purity): count for purity, count in pads.items()}
        self._check_pads(pads)
        building.pads = pads
        self.cache.invalidate(building_id)
        _LOGGER.debug("Set resource pads of %s to %s", building_id, pads)

    def rename_group(self, group_id: UUID, name: str) -> None:
        self.tree.group(group_id).name = name

    def set_collapsed(self, group_id: UUID, collapsed: bool) -> None:
        self.tree.group(group_id).collapsed = collapsed

    def replace_catalog(self, catalog: Catalog) -> None:
        """Rebuild every balance against a new catalog."""
        self.cache.set_catalog(catalog)
        _LOGGER.info("Catalog replaced; all balances invalidated")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_subtree_settings(self, subtree: DetachedSubtree) -> None:
        """Hold pre-built nodes to the same ranges as the parameter edits."""
        for node in subtree.nodes.values():
            self._check_copies(node.copies)
            if node.kind is NodeKind.BUILDING:
                self._check_clock_speed(node.clock_speed)
                self._check_pads(node.pads)

    def _check_clock_speed(self, percent: float) -> None:
        if not _is_number(percent) or math.isnan(percent) or percent < 0:
            raise InvalidClockSpeed(percent, self.max_clock_speed)
        if self.max_clock_speed is not None and percent > self.max_clock_speed:
            raise InvalidClockSpeed(percent, self.max_clock_speed)

    @staticmethod
    def _check_copies(count: float) -> None:
        if not _is_number(count) or math.isnan(count) or count < 0:
            raise InvalidCopyCount(count)

    @staticmethod
    def _check_pads(pads: dict[ResourcePurity, int]) -> None:
        for purity, count in pads.items():
            if (
                not isinstance(purity, ResourcePurity)
                or not isinstance(count, int)
                or isinstance(count, bool)
                or count < 0
            ):
                raise InvalidPadCount(purity, count)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
