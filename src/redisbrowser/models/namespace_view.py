"""Expand/collapse view over a NamespaceTree.

The view is an arena: every node lives in ``NamespaceView.nodes`` and refers
to its children by arena id. Nodes are addressed from outside by a path of
child positions starting at the top-level list, so toggling a node is a
walk of at most ``len(path)`` list lookups.

Ordering:
- The synthetic root (keys without a delimiter) is always the first
  top-level node.
- Namespaces are ordered by segment name, keys within a node by key.

Paths are only meaningful for the view instance that produced them. A
refresh builds a new view with every node collapsed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import InvalidPathError
from .namespace_tree import NamespaceNode, NamespaceTree


@dataclass
class ViewNode:
    """A display node in the view arena."""

    name: str
    keys: list[str] = field(default_factory=list)
    children: list[int] = field(default_factory=list)  # arena ids, display order
    parent: int | None = None
    is_expanded: bool = False
    is_root: bool = False  # synthetic root of delimiter-free keys
    key_count: int = 0  # keys at or below this node


@dataclass
class NamespaceView:
    """Presentation-facing mirror of a NamespaceTree with expansion flags."""

    nodes: list[ViewNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    @classmethod
    def from_tree(cls, tree: NamespaceTree) -> NamespaceView:
        """Build a fully collapsed view from a tree."""
        view = cls()
        view.roots.append(view._add_subtree(tree.root, is_root=True))
        for name in sorted(tree.namespaces):
            view.roots.append(view._add_subtree(tree.namespaces[name]))
        return view

    def _add_subtree(self, source: NamespaceNode, is_root: bool = False) -> int:
        """Append a node and its subtree to the arena in pre-order.

        Children get higher ids than their parent, so a reverse pass over
        the new ids sees every child before its parent.

        Returns:
            The arena id of ``source``.
        """
        top_id = len(self.nodes)
        # (namespace node, parent arena id); children pushed in reverse so they pop sorted
        stack: list[tuple[NamespaceNode, int | None]] = [(source, None)]
        while stack:
            current, parent = stack.pop()
            node_id = len(self.nodes)
            self.nodes.append(
                ViewNode(
                    name=current.name,
                    keys=sorted(current.leaf_keys),
                    parent=parent,
                    is_root=is_root and node_id == top_id,
                )
            )
            if parent is not None:
                self.nodes[parent].children.append(node_id)
            for name in sorted(current.children, reverse=True):
                stack.append((current.children[name], node_id))

        for node_id in range(len(self.nodes) - 1, top_id - 1, -1):
            node = self.nodes[node_id]
            node.key_count = len(node.keys) + sum(self.nodes[c].key_count for c in node.children)
        return top_id

    def resolve(self, path: Sequence[int]) -> int:
        """Resolve a path of child positions to an arena id.

        Raises:
            InvalidPathError: If the path is empty, or any position is
                negative or out of range.
        """
        path = tuple(path)
        if not path:
            raise InvalidPathError(path, 0, "empty path")

        siblings = self.roots
        node_id = -1
        for depth, position in enumerate(path):
            if not 0 <= position < len(siblings):
                raise InvalidPathError(
                    path, depth, f"position {position} not in range 0..{len(siblings) - 1}"
                )
            node_id = siblings[position]
            siblings = self.nodes[node_id].children
        return node_id

    def toggle(self, path: Sequence[int]) -> bool:
        """Flip the expansion flag of the node at ``path``.

        Returns:
            The node's new ``is_expanded`` value.

        Raises:
            InvalidPathError: If the path does not resolve. The view is left
                untouched.
        """
        node = self.nodes[self.resolve(path)]
        node.is_expanded = not node.is_expanded
        return node.is_expanded

    def path_of(self, node_id: int) -> tuple[int, ...]:
        """Compute the external path of an arena node."""
        path: list[int] = []
        current: int | None = node_id
        while current is not None:
            parent = self.nodes[current].parent
            siblings = self.roots if parent is None else self.nodes[parent].children
            path.append(siblings.index(current))
            current = parent
        return tuple(reversed(path))
