"""Server tab bar: one button per session plus New / Refresh / New Key / Close."""

from __future__ import annotations

import tkinter as tk
from collections.abc import Callable
from tkinter import ttk

from ..data.session_table import SessionIndex
from ..services import actions


class TabBar(ttk.Frame):
    """Row of session tabs and session-level commands."""

    def _create_widgets(self) -> None:
        self.tabs_frame = ttk.Frame(self)
        self.tabs_frame.pack(side=tk.LEFT, fill=tk.X, expand=True)

        ttk.Button(
            self, text="Close", command=self._on_close, width=8
        ).pack(side=tk.RIGHT, padx=(5, 0))
        ttk.Button(
            self, text="New Key", command=lambda: self.dispatch(actions.OpenCreateForm())
        ).pack(side=tk.RIGHT, padx=(5, 0))
        ttk.Button(
            self, text="Refresh", command=lambda: self.dispatch(actions.RefreshActive())
        ).pack(side=tk.RIGHT, padx=(5, 0))

    def _on_close(self) -> None:
        if self._active is not None:
            self.dispatch(actions.RemoveSession(self._active))

    def __init__(self, parent: tk.Widget, dispatch: Callable[[actions.Action], object]):
        super().__init__(parent, padding=(5, 5))
        self.dispatch = dispatch
        self._active: SessionIndex | None = None
        self._rendered: tuple | None = None
        self._create_widgets()

    def render(
        self, tabs: tuple[tuple[str, SessionIndex], ...], active: SessionIndex | None
    ) -> None:
        """Rebuild the tab buttons when the tab list or active tab changes."""
        self._active = active
        if self._rendered == (tabs, active):
            return
        self._rendered = (tabs, active)

        for child in self.tabs_frame.winfo_children():
            child.destroy()

        for label, index in tabs:
            btn = ttk.Button(
                self.tabs_frame,
                text=f"[{label}]" if index == active else label,
                command=lambda i=index: self.dispatch(actions.SwitchActive(i)),
            )
            btn.pack(side=tk.LEFT, padx=(0, 2))

        ttk.Button(
            self.tabs_frame,
            text="New",
            width=6,
            command=lambda: self.dispatch(actions.OpenConnectionForm()),
        ).pack(side=tk.LEFT, padx=(8, 0))
