"""Value editor panel.

Shows one of three layouts depending on the session's editor state:
empty (Idle), key + value with Save/Delete (Editing), or key/value
inputs with Create (Creating).
"""

from __future__ import annotations

import tkinter as tk
from collections.abc import Callable
from tkinter import messagebox, ttk

from ..models.editor_state import Creating, EditorState, Editing, Idle
from ..services import actions


class EditorPanel(ttk.Frame):
    """Panel for viewing, editing and creating string keys."""

    def _on_value_keyrelease(self, event) -> None:
        self.dispatch(actions.EditValueText(self._get_text(self.value_text)))

    def _on_create_key_changed(self, *args) -> None:
        if not self._rendering:
            self.dispatch(actions.EditCreateKeyText(self.create_key_var.get()))

    def _on_create_value_keyrelease(self, event) -> None:
        self.dispatch(actions.EditCreateValueText(self._get_text(self.create_value_text)))

    def _on_save(self) -> None:
        # Pastes and cuts made with the mouse fire no KeyRelease
        self.dispatch(actions.EditValueText(self._get_text(self.value_text)))
        self.dispatch(actions.SaveEdit())

    def _on_create(self) -> None:
        self.dispatch(actions.EditCreateKeyText(self.create_key_var.get()))
        self.dispatch(actions.EditCreateValueText(self._get_text(self.create_value_text)))
        self.dispatch(actions.ConfirmCreate())

    @staticmethod
    def _get_text(widget: tk.Text) -> str:
        # Text always ends with a newline that is not part of the value
        return widget.get("1.0", "end-1c")

    @staticmethod
    def _set_text(widget: tk.Text, value: str) -> None:
        if widget.get("1.0", "end-1c") != value:
            widget.delete("1.0", tk.END)
            widget.insert("1.0", value)

    def _create_edit_frame(self) -> ttk.Frame:
        frame = ttk.Frame(self, padding=10)

        self.key_label = ttk.Label(frame, text="", font=("TkDefaultFont", 10, "bold"))
        self.key_label.pack(fill=tk.X, pady=(0, 10))

        self.value_text = tk.Text(frame, height=12, wrap=tk.WORD, undo=True)
        self.value_text.pack(fill=tk.BOTH, expand=True)
        self.value_text.bind("<KeyRelease>", self._on_value_keyrelease)

        btn_frame = ttk.Frame(frame)
        btn_frame.pack(fill=tk.X, pady=(10, 0))
        ttk.Button(btn_frame, text="Save", command=self._on_save).pack(side=tk.LEFT, padx=(0, 10))
        ttk.Button(btn_frame, text="Delete", command=self._confirm_delete).pack(side=tk.LEFT)
        return frame

    def _create_create_frame(self) -> ttk.Frame:
        frame = ttk.Frame(self, padding=10)

        ttk.Label(frame, text="Key:").pack(anchor=tk.W)
        self.create_key_var = tk.StringVar()
        self.create_key_var.trace_add("write", self._on_create_key_changed)
        ttk.Entry(frame, textvariable=self.create_key_var).pack(fill=tk.X, pady=(0, 10))

        ttk.Label(frame, text="Value:").pack(anchor=tk.W)
        self.create_value_text = tk.Text(frame, height=10, wrap=tk.WORD, undo=True)
        self.create_value_text.pack(fill=tk.BOTH, expand=True)
        self.create_value_text.bind("<KeyRelease>", self._on_create_value_keyrelease)

        ttk.Button(frame, text="Create", command=self._on_create).pack(anchor=tk.W, pady=(10, 0))
        return frame

    def _confirm_delete(self) -> None:
        if isinstance(self._state, Editing) and messagebox.askyesno(
            "Delete Key", f"Delete key '{self._state.key}'?", parent=self
        ):
            self.dispatch(actions.DeleteEdit())

    def __init__(self, parent: tk.Widget, dispatch: Callable[[actions.Action], object]):
        """Initialize the editor panel.

        Args:
            parent: Parent widget
            dispatch: Controller dispatch function
        """
        super().__init__(parent)
        self.dispatch = dispatch
        self._state: EditorState | None = None
        self._rendering = False

        self.edit_frame = self._create_edit_frame()
        self.create_frame = self._create_create_frame()

    def render(self, state: EditorState | None) -> None:
        """Show the layout for an editor state, keeping in-progress typing intact."""
        previous = self._state
        self._state = state
        self._rendering = True
        try:
            if isinstance(state, Editing):
                self.create_frame.pack_forget()
                self.edit_frame.pack(fill=tk.BOTH, expand=True)
                self.key_label.configure(text=state.key)
                if not isinstance(previous, Editing) or previous.key != state.key:
                    self.value_text.edit_reset()
                self._set_text(self.value_text, state.pending_value)
            elif isinstance(state, Creating):
                self.edit_frame.pack_forget()
                self.create_frame.pack(fill=tk.BOTH, expand=True)
                if self.create_key_var.get() != state.pending_key:
                    self.create_key_var.set(state.pending_key)
                self._set_text(self.create_value_text, state.pending_value)
            elif state is None or isinstance(state, Idle):
                self.edit_frame.pack_forget()
                self.create_frame.pack_forget()
            else:
                raise TypeError(f"Unknown editor state: {state!r}")
        finally:
            self._rendering = False
