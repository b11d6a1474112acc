"""Errors raised by the accounting engine.

Every error is recoverable: a failed operation leaves the tree and the
balance cache exactly as they were before the call.
"""

from typing import Optional
from uuid import UUID


class AccountingError(Exception):
    """Base class for all engine errors."""


class UnknownRecipe(AccountingError):
    """Recipe identifier is not in the catalog."""

    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe ID {recipe_id!r} is not in the catalog.")
        self.recipe_id = recipe_id


class UnknownNodeIdentifier(AccountingError):
    """Node identifier is not (or no longer) part of the tree."""

    def __init__(self, node_id: UUID):
        super().__init__(f"Node {node_id} is not in the tree.")
        self.node_id = node_id


class NotAGroup(AccountingError):
    """A structural operation targeted a node that cannot hold children."""

    def __init__(self, node_id: UUID):
        super().__init__(f"Node {node_id} is not a group.")
        self.node_id = node_id


class NotABuilding(AccountingError):
    """A building-only edit targeted a group."""

    def __init__(self, node_id: UUID):
        super().__init__(f"Node {node_id} is not a building.")
        self.node_id = node_id


class IndexOutOfRange(AccountingError):
    """Child index outside the valid range for a group."""

    def __init__(self, index: int, length: int, parent_id: Optional[UUID] = None):
        super().__init__(
            f"Index {index} is out of range for group {parent_id} "
            f"with {length} children."
        )
        self.index = index
        self.length = length
        self.parent_id = parent_id


class RootHasNoParent(AccountingError):
    """Operation needs the node's parent, but the node is the root."""

    def __init__(self, node_id: UUID):
        super().__init__(f"Node {node_id} is the root group and has no parent.")
        self.node_id = node_id


class CycleDetected(AccountingError):
    """Move would place a node under itself or one of its descendants."""

    def __init__(self, node_id: UUID, dest_parent_id: UUID):
        super().__init__(
            f"Cannot move node {node_id} into {dest_parent_id}: "
            "destination is the node itself or one of its descendants."
        )
        self.node_id = node_id
        self.dest_parent_id = dest_parent_id


class DuplicateNodeIdentifier(AccountingError):
    """Node identifier already exists in the tree."""

    def __init__(self, node_id: UUID):
        super().__init__(f"Node {node_id} is already part of the tree.")
        self.node_id = node_id


class InvalidClockSpeed(AccountingError):
    """Clock speed is negative, not a number, or above the configured limit."""

    def __init__(self, clock_speed: float, max_clock_speed: Optional[float] = None):
        if max_clock_speed is None:
            msg = f"Clock speed {clock_speed} must be a non-negative percentage."
        else:
            msg = (
                f"Clock speed {clock_speed} must be between 0 and "
                f"{max_clock_speed} percent."
            )
        super().__init__(msg)
        self.clock_speed = clock_speed
        self.max_clock_speed = max_clock_speed


class InvalidCopyCount(AccountingError):
    """Virtual copy count is negative or not a number."""

    def __init__(self, copies: float):
        super().__init__(f"Virtual copy count {copies} must be non-negative.")
        self.copies = copies


class InvalidPadCount(AccountingError):
    """Resource pad count is negative or not a whole number."""

    def __init__(self, purity, count):
        super().__init__(f"Pad count {count!r} for {purity} pads must be a non-negative integer.")
        self.purity = purity
        self.count = count


class InvalidTreeRecord(AccountingError):
    """Serialized tree record is malformed."""


class UnsupportedSaveVersion(AccountingError):
    """Save file was written by an unknown model version."""

    def __init__(self, model_version: Optional[str]):
        super().__init__(f"Unsupported save file model version: {model_version!r}")
        self.model_version = model_version
