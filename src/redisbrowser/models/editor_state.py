"""Editor state for a server session.

The editor is always in exactly one of three states:

+-----------+---------------------------------------+
| State     | Meaning                               |
+-----------+---------------------------------------+
| Idle      | No key selected, editor panel empty   |
| Editing   | A string key is open for editing      |
| Creating  | The "new key" form is open            |
+-----------+---------------------------------------+

The functions here implement the transitions that need no store call.
An action that does not apply to the current state returns the state
unchanged. Transitions that talk to the store live in the Controller,
which uses these helpers for the state side.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union


@dataclass(frozen=True)
class Idle:
    """Nothing is being viewed or edited."""


@dataclass(frozen=True)
class Editing:
    """A string value is open in the editor.

    Attributes:
        key: The key being edited.
        pending_value: Editor text, which may differ from the stored value
            until saved.
    """

    key: str
    pending_value: str = ""


@dataclass(frozen=True)
class Creating:
    """The create-key form is open."""

    pending_key: str = ""
    pending_value: str = ""


EditorState = Union[Idle, Editing, Creating]

IDLE = Idle()


def edit_value_text(state: EditorState, text: str) -> EditorState:
    """Update the pending value of the key being edited."""
    if isinstance(state, Editing):
        return replace(state, pending_value=text)
    return state


def open_create_form(state: EditorState) -> EditorState:
    """Open an empty create form from any state."""
    return Creating()


def edit_create_key_text(state: EditorState, text: str) -> EditorState:
    """Update the key name in the create form."""
    if isinstance(state, Creating):
        return replace(state, pending_key=text)
    return state


def edit_create_value_text(state: EditorState, text: str) -> EditorState:
    """Update the value in the create form."""
    if isinstance(state, Creating):
        return replace(state, pending_value=text)
    return state


def describe(state: EditorState) -> str:
    """Short human-readable description for status and log lines."""
    if isinstance(state, Editing):
        return f"Editing {state.key!r}"
    if isinstance(state, Creating):
        return f"Creating {state.pending_key!r}" if state.pending_key else "Creating new key"
    if isinstance(state, Idle):
        return "Idle"
    raise TypeError(f"Unknown editor state: {state!r}")
