"""Arena holding the accounting tree.

Nodes are stored flat, keyed by their stable id. Groups reference their
children by id and the tree keeps a reverse child -> parent map, so ancestor
walks and cycle checks are dictionary lookups.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Optional
from uuid import UUID, uuid4

from satisfactory_accounting.errors import (
    DuplicateNodeIdentifier,
    IndexOutOfRange,
    InvalidTreeRecord,
    NotABuilding,
    NotAGroup,
    RootHasNoParent,
    UnknownNodeIdentifier,
)
from satisfactory_accounting.models.node import BuildingNode, GroupNode, Node, NodeKind


@dataclass
class DetachedSubtree:
    """A subtree that is not attached to any tree.

    Returned by removals and copies, accepted by insertions.
    """

    root_id: UUID
    nodes: dict[UUID, Node] = field(default_factory=dict)

    @classmethod
    def single(cls, node: Node) -> "DetachedSubtree":
        return cls(root_id=node.id, nodes={node.id: node})

    @property
    def root(self) -> Node:
        return self.nodes[self.root_id]

    def __len__(self) -> int:
        return len(self.nodes)


class FactoryTree:
    """Owns every node of one accounting tree. The root is always a group."""

    def __init__(self, root: Optional[GroupNode] = None):
        if root is None:
            root = GroupNode()
        if root.kind is not NodeKind.GROUP:
            raise NotAGroup(root.id)
        if root.children:
            raise InvalidTreeRecord("Root group must be created without children.")
        self.root_id: UUID = root.id
        self.nodes: dict[UUID, Node] = {root.id: root}
        self.parents: dict[UUID, Optional[UUID]] = {root.id: None}

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: UUID) -> bool:
        return node_id in self.nodes

    @property
    def root(self) -> GroupNode:
        return self.nodes[self.root_id]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def node(self, node_id: UUID) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNodeIdentifier(node_id) from None

    def group(self, node_id: UUID) -> GroupNode:
        node = self.node(node_id)
        if node.kind is not NodeKind.GROUP:
            raise NotAGroup(node_id)
        return node

    def building(self, node_id: UUID) -> BuildingNode:
        node = self.node(node_id)
        if node.kind is not NodeKind.BUILDING:
            raise NotABuilding(node_id)
        return node

    def parent_of(self, node_id: UUID) -> Optional[UUID]:
        self.node(node_id)
        return self.parents[node_id]

    def children_of(self, node_id: UUID) -> list[UUID]:
        node = self.node(node_id)
        if node.kind is NodeKind.GROUP:
            return list(node.children)
        return []

    def index_of(self, node_id: UUID) -> int:
        """Position of a node within its parent's children."""
        parent_id = self.parent_of(node_id)
        if parent_id is None:
            raise RootHasNoParent(node_id)
        return self.nodes[parent_id].children.index(node_id)

    def ancestors(self, node_id: UUID) -> Iterator[UUID]:
        """Yield parent, grandparent, ... up to and including the root."""
        parent_id = self.parent_of(node_id)
        while parent_id is not None:
            yield parent_id
            parent_id = self.parents[parent_id]

    def path_to_root(self, node_id: UUID) -> list[UUID]:
        """The node itself followed by all of its ancestors."""
        return [node_id, *self.ancestors(node_id)]

    def is_descendant(self, candidate_id: UUID, ancestor_id: UUID) -> bool:
        """True if candidate is ancestor or lies somewhere below it."""
        return ancestor_id in self.path_to_root(candidate_id)

    def depth(self, node_id: UUID) -> int:
        return sum(1 for _ in self.ancestors(node_id))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_preorder(self, start_id: Optional[UUID] = None) -> Iterator[UUID]:
        """Pre-order ids, children visited in sequence order."""
        to_visit = [self.root_id if start_id is None else start_id]
        self.node(to_visit[0])
        while to_visit:
            node_id = to_visit.pop()
            yield node_id
            to_visit.extend(reversed(self.children_of(node_id)))

    def iter_postorder(self, start_id: Optional[UUID] = None) -> Iterator[UUID]:
        """Post-order ids: every child before its parent."""
        start_id = self.root_id if start_id is None else start_id
        self.node(start_id)
        stack: list[tuple[UUID, bool]] = [(start_id, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                yield node_id
                continue
            stack.append((node_id, True))
            for child_id in reversed(self.children_of(node_id)):
                stack.append((child_id, False))

    def subtree_ids(self, node_id: UUID) -> list[UUID]:
        return list(self.iter_preorder(node_id))

    # ------------------------------------------------------------------
    # Low-level structural changes. Validation happens before any change.
    # ------------------------------------------------------------------

    def attach(self, parent_id: UUID, index: int, subtree: DetachedSubtree) -> None:
        """Insert a detached subtree as child `index` of a group."""
        parent = self.group(parent_id)
        if not 0 <= index <= len(parent.children):
            raise IndexOutOfRange(index, len(parent.children), parent_id)
        for node_id in subtree.nodes:
            if node_id in self.nodes:
                raise DuplicateNodeIdentifier(node_id)
        _check_subtree(subtree)

        parent.children.insert(index, subtree.root_id)
        self.nodes.update(subtree.nodes)
        self.parents[subtree.root_id] = parent_id
        for node in subtree.nodes.values():
            if node.kind is NodeKind.GROUP:
                for child_id in node.children:
                    self.parents[child_id] = node.id

    def detach(self, parent_id: UUID, index: int) -> DetachedSubtree:
        """Remove child `index` of a group and return it with all descendants."""
        parent = self.group(parent_id)
        if not 0 <= index < len(parent.children):
            raise IndexOutOfRange(index, len(parent.children), parent_id)
        child_id = parent.children[index]
        ids = self.subtree_ids(child_id)
        del parent.children[index]
        nodes = {}
        for node_id in ids:
            nodes[node_id] = self.nodes.pop(node_id)
            del self.parents[node_id]
        return DetachedSubtree(root_id=child_id, nodes=nodes)

    def copy_subtree(self, node_id: UUID) -> DetachedSubtree:
        """Deep copy of a subtree with freshly assigned ids."""
        new_ids = {old_id: uuid4() for old_id in self.iter_preorder(node_id)}
        nodes: dict[UUID, Node] = {}
        for old_id, new_id in new_ids.items():
            node = self.nodes[old_id]
            if node.kind is NodeKind.GROUP:
                copy = replace(node, id=new_id, children=[new_ids[c] for c in node.children])
            else:
                copy = replace(node, id=new_id, pads=dict(node.pads))
            nodes[new_id] = copy
        return DetachedSubtree(root_id=new_ids[node_id], nodes=nodes)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def subtree_to_dict(self, node_id: UUID) -> dict:
        node = self.node(node_id)
        if node.kind is NodeKind.GROUP:
            return node.to_dict([self.subtree_to_dict(c) for c in node.children])
        return node.to_dict()

    def to_dict(self) -> dict:
        """Serialize for JSON storage as nested group/building records."""
        return self.subtree_to_dict(self.root_id)

    @classmethod
    def from_dict(cls, data: dict) -> "FactoryTree":
        """Deserialize from JSON."""
        subtree = subtree_from_dict(data)
        if subtree.root.kind is not NodeKind.GROUP:
            raise InvalidTreeRecord("Root record must be a group.")
        tree = cls(GroupNode(id=subtree.root_id))
        tree.nodes = subtree.nodes
        for node in subtree.nodes.values():
            if node.kind is NodeKind.GROUP:
                for child_id in node.children:
                    tree.parents[child_id] = node.id
        return tree


def subtree_from_dict(data: dict) -> DetachedSubtree:
    """Build a detached subtree from nested records, rejecting duplicate ids."""
    nodes: dict[UUID, Node] = {}

    def build(record: dict) -> UUID:
        try:
            kind = NodeKind(record["kind"])
            if kind is NodeKind.GROUP:
                node = GroupNode.from_dict(record)
                child_records = record.get("children", [])
            else:
                node = BuildingNode.from_dict(record)
                child_records = []
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidTreeRecord(f"Malformed node record: {e}") from e
        if node.id in nodes:
            raise InvalidTreeRecord(f"Duplicate node id {node.id}")
        nodes[node.id] = node
        if kind is NodeKind.GROUP:
            node.children = [build(child) for child in child_records]
        return node.id

    root_id = build(data)
    return DetachedSubtree(root_id=root_id, nodes=nodes)


def _check_subtree(subtree: DetachedSubtree) -> None:
    """Every node is reachable from the root exactly once."""
    if subtree.root_id not in subtree.nodes:
        raise InvalidTreeRecord(f"Subtree root {subtree.root_id} is missing")
    seen = {subtree.root_id}
    to_visit = [subtree.root_id]
    while to_visit:
        node = subtree.nodes[to_visit.pop()]
        if node.kind is not NodeKind.GROUP:
            continue
        for child_id in node.children:
            if child_id not in subtree.nodes or child_id in seen:
                raise InvalidTreeRecord(f"Subtree child {child_id} is dangling or shared")
            seen.add(child_id)
            to_visit.append(child_id)
    if len(seen) != len(subtree.nodes):
        raise InvalidTreeRecord("Subtree contains unreachable nodes")
