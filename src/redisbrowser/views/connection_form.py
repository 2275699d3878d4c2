"""Connection form shown when no session is active."""

from __future__ import annotations

import tkinter as tk
from collections.abc import Callable
from tkinter import ttk

from ..settings import AppSettings


class ConnectionForm(ttk.Frame):
    """Label and URL inputs with a Connect button.

    The form only collects input; the app turns it into a Connect action.
    """

    def _create_widgets(self) -> None:
        frame = ttk.Frame(self, padding=20)
        frame.pack(expand=True)

        ttk.Label(frame, text="Connect to a Redis server", font=("TkDefaultFont", 11, "bold")).grid(
            row=0, column=0, columnspan=2, pady=(0, 15)
        )

        ttk.Label(frame, text="Name:").grid(row=1, column=0, sticky=tk.W, padx=(0, 10))
        name_entry = ttk.Entry(frame, textvariable=self.settings.label_var, width=40)
        name_entry.grid(row=1, column=1, sticky=tk.EW, pady=2)

        ttk.Label(frame, text="URL:").grid(row=2, column=0, sticky=tk.W, padx=(0, 10))
        url_entry = ttk.Entry(frame, textvariable=self.settings.url_var, width=40)
        url_entry.grid(row=2, column=1, sticky=tk.EW, pady=2)
        url_entry.bind("<Return>", lambda e: self.on_connect())

        ttk.Button(frame, text="Connect", command=self.on_connect).grid(
            row=3, column=1, sticky=tk.E, pady=(15, 0)
        )
        name_entry.focus_set()

    def __init__(self, parent: tk.Widget, settings: AppSettings, on_connect: Callable[[], None]):
        """Initialize the connection form.

        Args:
            parent: Parent widget
            settings: App settings holding the form variables
            on_connect: Callback when Connect is pressed
        """
        super().__init__(parent)
        self.settings = settings
        self.on_connect = on_connect
        self._create_widgets()
