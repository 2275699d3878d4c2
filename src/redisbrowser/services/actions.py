"""User actions delivered to the Controller.

Widgets never change state themselves. Each event becomes one of these
messages and is passed to ``Controller.dispatch``, which handles it to
completion before the next event is processed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..data.session_table import SessionIndex
    from ..settings import ConnectionConfig


# --- Session actions ---


@dataclass(frozen=True)
class Connect:
    label: str
    config: ConnectionConfig


@dataclass(frozen=True)
class OpenConnectionForm:
    """Show the connection form ("New" tab button)."""


@dataclass(frozen=True)
class SwitchActive:
    index: SessionIndex


@dataclass(frozen=True)
class RemoveSession:
    index: SessionIndex


@dataclass(frozen=True)
class RefreshActive:
    pass


@dataclass(frozen=True)
class ToggleExpansion:
    path: tuple[int, ...]


# --- Editor actions ---


@dataclass(frozen=True)
class SelectKey:
    key: str


@dataclass(frozen=True)
class EditValueText:
    text: str


@dataclass(frozen=True)
class SaveEdit:
    pass


@dataclass(frozen=True)
class DeleteEdit:
    pass


@dataclass(frozen=True)
class OpenCreateForm:
    pass


@dataclass(frozen=True)
class EditCreateKeyText:
    text: str


@dataclass(frozen=True)
class EditCreateValueText:
    text: str


@dataclass(frozen=True)
class ConfirmCreate:
    pass


Action = Union[
    Connect,
    OpenConnectionForm,
    SwitchActive,
    RemoveSession,
    RefreshActive,
    ToggleExpansion,
    SelectKey,
    EditValueText,
    SaveEdit,
    DeleteEdit,
    OpenCreateForm,
    EditCreateKeyText,
    EditCreateValueText,
    ConfirmCreate,
]
