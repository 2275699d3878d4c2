"""Namespace outline panel.

UI component that renders a NamespaceView into a ttk.Treeview. Opening or
closing a folder is sent to the controller as a ToggleExpansion action;
clicking a key sends SelectKey.
"""

from __future__ import annotations

import tkinter as tk
from collections.abc import Callable
from tkinter import ttk

from ..models.namespace_view import NamespaceView

ROOT_LABEL = "(no namespace)"


class OutlinePanel(ttk.Frame):
    """Panel displaying the key namespace tree of the active session."""

    def _on_toggle(self, event) -> None:
        """Handle folder open/close."""
        iid = self.tree.focus()
        if (path := self._node_paths.get(iid)) is not None:
            self.on_toggle(path)

    def _on_select(self, event) -> None:
        """Handle selection of a key item."""
        if selection := self.tree.selection():
            if (key := self._leaf_keys.get(selection[0])) is not None:
                self.on_key_select(key)

    def _create_widgets(self) -> None:
        """Create the treeview widget."""
        header = ttk.Label(self, text="Keys", font=("TkDefaultFont", 9, "bold"))
        header.pack(fill=tk.X, padx=5, pady=(5, 2))

        tree_frame = ttk.Frame(self)
        tree_frame.pack(fill=tk.BOTH, expand=True, padx=2, pady=2)

        scrollbar = ttk.Scrollbar(tree_frame, orient=tk.VERTICAL)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)

        self.tree = ttk.Treeview(
            tree_frame,
            show="tree",
            selectmode="browse",
            yscrollcommand=scrollbar.set,
        )
        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        self.tree.column("#0", width=260, minwidth=120, stretch=True)

        scrollbar.config(command=self.tree.yview)
        self.tree.bind("<<TreeviewOpen>>", self._on_toggle)
        self.tree.bind("<<TreeviewClose>>", self._on_toggle)
        self.tree.bind("<<TreeviewSelect>>", self._on_select)

    def __init__(
        self,
        parent: tk.Widget,
        on_key_select: Callable[[str], None],
        on_toggle: Callable[[tuple[int, ...]], None],
    ):
        """Initialize the outline panel.

        Args:
            parent: Parent widget
            on_key_select: Callback when a key is clicked
            on_toggle: Callback when a namespace is opened or closed (view path)
        """
        super().__init__(parent, width=300)
        self.pack_propagate(False)

        self.on_key_select = on_key_select
        self.on_toggle = on_toggle
        self._leaf_keys: dict[str, str] = {}
        self._node_paths: dict[str, tuple[int, ...]] = {}
        self._view: NamespaceView | None = None

        self._create_widgets()

    def _insert_keys(self, parent_iid: str, keys: list[str], delimiter: str) -> None:
        for key in keys:
            text = key.rsplit(delimiter, 1)[-1] if delimiter in key else key
            iid = self.tree.insert(parent_iid, tk.END, text=text)
            self._leaf_keys[iid] = key

    def render(self, view: NamespaceView | None, delimiter: str = ":") -> None:
        """Rebuild the treeview when the session's view object changes.

        Toggles made in the treeview are already shown, so re-rendering the
        same view instance is skipped.
        """
        if view is self._view:
            return
        self._view = view
        self._leaf_keys.clear()
        self._node_paths.clear()
        for item in self.tree.get_children():
            self.tree.delete(item)

        if view is None:
            return

        # Delimiter-free keys sit at the top level, above the folders
        for node_id in view.roots:
            if view.nodes[node_id].is_root:
                self._insert_keys("", view.nodes[node_id].keys, delimiter)

        # Arena order is pre-order, so a parent is always inserted before its children
        node_iids: dict[int, str] = {}
        for node_id, node in enumerate(view.nodes):
            if node.is_root:
                continue
            parent_iid = "" if node.parent is None else node_iids[node.parent]
            iid = self.tree.insert(
                parent_iid,
                tk.END,
                text=f"{node.name}{delimiter} ({node.key_count})",
                open=node.is_expanded,
            )
            node_iids[node_id] = iid
            self._node_paths[iid] = view.path_of(node_id)

        # Keys follow the sub-folders of their node
        for node_id, iid in node_iids.items():
            self._insert_keys(iid, view.nodes[node_id].keys, delimiter)
