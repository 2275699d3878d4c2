"""Tree building logic for the key namespace outline.

Groups a flat list of Redis keys into a hierarchy by splitting on a delimiter.

Build Rules:
------------
1. Keys are split on the delimiter (":" by default) into path segments.
   Example: "user:1:name" -> user -> 1, leaf "user:1:name"

2. The full key is stored on the node of its second-to-last segment.
   The last segment never becomes a node of its own.
   Example: "user:1:name", "user:1:age" -> node user/1 holds both keys

3. Keys without a delimiter belong to the synthetic root node (name "").
   Example: "counter" -> root leaf "counter"

4. Empty segments are ordinary node names. The synthetic root is kept apart
   from the top-level namespaces, so ":a" creates a top-level "" namespace
   that does not collide with it.
   Example: "a::b" -> a -> "" , leaf "a::b"

5. Duplicate keys are stored once, and input order never changes the tree.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

DEFAULT_DELIMITER = ":"


@dataclass
class NamespaceNode:
    """A node in the namespace tree (one key-path segment)."""

    name: str = ""
    children: dict[str, NamespaceNode] = field(default_factory=dict)
    leaf_keys: set[str] = field(default_factory=set)

    def child(self, name: str) -> NamespaceNode:
        """Get the child for a segment, creating it if needed."""
        if name not in self.children:
            self.children[name] = NamespaceNode(name=name)
        return self.children[name]


@dataclass
class NamespaceTree:
    """Top-level namespaces plus the synthetic root of delimiter-free keys."""

    namespaces: dict[str, NamespaceNode] = field(default_factory=dict)
    root: NamespaceNode = field(default_factory=NamespaceNode)
    delimiter: str = DEFAULT_DELIMITER


def split_key(key: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split a key into its path segments.

    Example: "user:1:name" -> ["user", "1", "name"]
    Example: "a:" -> ["a", ""]
    """
    return key.split(delimiter)


def _insert_key(tree: NamespaceTree, key: str) -> None:
    """Insert one key, creating intermediate namespaces as needed."""
    segments = split_key(key, tree.delimiter)
    if len(segments) == 1:
        tree.root.leaf_keys.add(key)
        return

    first = segments[0]
    if first not in tree.namespaces:
        tree.namespaces[first] = NamespaceNode(name=first)
    node = tree.namespaces[first]
    for segment in segments[1:-1]:
        node = node.child(segment)

    node.leaf_keys.add(key)


def build_tree(keys: Iterable[str], delimiter: str = DEFAULT_DELIMITER) -> NamespaceTree:
    """Build the namespace tree from a complete key list.

    Args:
        keys: Every key currently known for the server.
        delimiter: Segment separator (a single character).

    Returns:
        A fresh NamespaceTree. There is no incremental update; callers
        rebuild whenever the key set changes.
    """
    if not delimiter:
        raise ValueError("Delimiter must not be empty")

    tree = NamespaceTree(delimiter=delimiter)
    for key in keys:
        _insert_key(tree, key)
    return tree
