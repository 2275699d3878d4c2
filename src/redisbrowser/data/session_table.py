"""Sessions and the generational slot table that holds them.

Each connected server gets one Session. The SessionTable hands out a
SessionIndex (slot, generation) on insert. Removing a session frees its
slot and bumps the slot's generation, so an index kept by a stale tab
button can never reach a session inserted later into the same slot.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

from ..debug_trace import get_logger, perf_timer
from ..models.editor_state import IDLE, EditorState
from ..models.namespace_tree import DEFAULT_DELIMITER, NamespaceTree, build_tree
from ..models.namespace_view import NamespaceView
from .store_client import StoreClient

logger = get_logger(__name__)


class SessionIndex(NamedTuple):
    """Stable handle to a session in a SessionTable."""

    slot: int
    generation: int


@dataclass
class Session:
    """Browsing state for one connected server.

    Attributes:
        label: Operator-chosen tab name.
        connection: Store client owned by this session alone.
        keys: Last fetched key list (truth until the next refresh).
        tree: Namespace tree derived from keys.
        view: Expansion view derived from tree.
        editor: Current editor state.
    """

    label: str
    connection: StoreClient
    keys: list[str] = field(default_factory=list)
    tree: NamespaceTree = field(default_factory=NamespaceTree)
    view: NamespaceView = field(default_factory=NamespaceView)
    editor: EditorState = IDLE
    delimiter: str = DEFAULT_DELIMITER

    def replace_keys(self, keys: list[str]) -> None:
        """Install a new key list and rebuild tree and view from scratch.

        All expansion state is dropped; the editor is left alone.
        """
        with perf_timer(f"rebuild {self.label}", key_count=len(keys)):
            tree = build_tree(keys, self.delimiter)
            view = NamespaceView.from_tree(tree)
        self.keys = keys
        self.tree = tree
        self.view = view

    def refresh_keys(self) -> None:
        """Fetch the full key list and rebuild.

        Raises:
            FetchError: If listing fails. Session state is unchanged.
        """
        self.replace_keys(self.connection.list_keys())

    def close(self) -> None:
        """Close the store connection."""
        self.connection.close()


@dataclass
class _Slot:
    generation: int = 0
    session: Session | None = None


class SessionTable:
    """Arena of sessions addressed by generational indices.

    Usage:
        table = SessionTable()
        index = table.insert(session)
        table.get(index)      # -> session
        table.remove(index)   # -> session (slot freed)
        table.get(index)      # -> None, even after the slot is reused
    """

    def __init__(self) -> None:
        self._slots: list[_Slot] = []
        self._free: list[int] = []
        # Live indices in insertion order (tab order)
        self._order: list[SessionIndex] = []

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, index: object) -> bool:
        return self.get(index) is not None

    def __iter__(self) -> Iterator[SessionIndex]:
        return iter(list(self._order))

    def insert(self, session: Session) -> SessionIndex:
        """Store a session, reusing a freed slot if one exists."""
        if self._free:
            slot_no = self._free.pop()
            slot = self._slots[slot_no]
        else:
            slot_no = len(self._slots)
            slot = _Slot()
            self._slots.append(slot)

        slot.session = session
        index = SessionIndex(slot_no, slot.generation)
        self._order.append(index)
        return index

    def get(self, index: SessionIndex) -> Session | None:
        """Get the session for an index, or None if it is stale or unknown."""
        if not isinstance(index, SessionIndex):
            return None
        slot_no, generation = index
        if not 0 <= slot_no < len(self._slots):
            return None
        slot = self._slots[slot_no]
        if slot.generation != generation:
            return None
        return slot.session

    def remove(self, index: SessionIndex) -> Session | None:
        """Remove a session, returning it. Stale or unknown indices return None.

        Other live indices remain valid.
        """
        session = self.get(index)
        if session is None:
            return None

        slot = self._slots[index.slot]
        slot.session = None
        slot.generation += 1
        self._free.append(index.slot)
        self._order.remove(index)
        return session

    def items(self) -> list[tuple[SessionIndex, Session]]:
        """Live (index, session) pairs in insertion order."""
        result = []
        for index in self._order:
            session = self.get(index)
            if session is not None:
                result.append((index, session))
        return result
