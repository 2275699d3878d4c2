"""Controller applying user actions to the session table.

The controller is the only code that mutates sessions. It resolves the
active session, runs store calls, applies editor transitions and rebuilds
the namespace tree when the key set changes. Views observe it and render
from ``snapshot()``.

Failure policy:
- StoreConnectionError from connect() is raised; dispatch(Connect) records it.
- FetchError / WriteError are caught, logged and kept in ``last_error``;
  the session is left exactly as it was before the action.
- InvalidPathError from a toggle is logged and reported as a False result.
- NoActiveSessionError is raised when a session action has no target.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from ..data.session_table import Session, SessionIndex, SessionTable
from ..data.store_client import RedisStoreClient, StoreClient
from ..debug_trace import get_logger
from ..models import editor_state
from ..models.editor_state import IDLE, Creating, EditorState, Editing
from ..models.errors import (
    FetchError,
    InvalidPathError,
    NoActiveSessionError,
    RedisBrowserError,
    StoreConnectionError,
    WriteError,
)
from ..models.namespace_tree import DEFAULT_DELIMITER
from ..models.namespace_view import NamespaceView
from ..settings import ConnectionConfig
from . import actions

logger = get_logger(__name__)

ClientFactory = Callable[[ConnectionConfig], StoreClient]


@dataclass(frozen=True)
class ControllerSnapshot:
    """Read-only state handed to the rendering layer."""

    active_index: SessionIndex | None
    active_label: str | None
    tabs: tuple[tuple[str, SessionIndex], ...]
    view: NamespaceView | None
    editor: EditorState | None
    show_connection_form: bool
    last_error: RedisBrowserError | None


def _action(method: Callable[..., Any]) -> Callable[..., Any]:
    """Clear the previous error before an action and notify observers after it."""

    @wraps(method)
    def wrapper(self: Controller, *args, **kwargs):
        if self._depth == 0:
            self.last_error = None
        self._depth += 1
        try:
            return method(self, *args, **kwargs)
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._notify_observers()

    return wrapper


class Controller:
    """Applies actions to the active session.

    Usage:
        controller = Controller()
        index = controller.connect("local", ConnectionConfig())
        controller.dispatch(actions.SelectKey("user:1:name"))
        controller.dispatch(actions.EditValueText("Ada"))
        controller.dispatch(actions.SaveEdit())
    """

    def __init__(
        self,
        client_factory: ClientFactory = RedisStoreClient.connect,
        delimiter: str = DEFAULT_DELIMITER,
    ):
        """Initialize the controller.

        Args:
            client_factory: Opens a StoreClient for a config; raises
                StoreConnectionError on failure.
            delimiter: Key segment separator for namespace trees.
        """
        self._client_factory = client_factory
        self.delimiter = delimiter

        self.sessions = SessionTable()
        self.active_index: SessionIndex | None = None
        self.show_connection_form = True
        self.last_error: RedisBrowserError | None = None

        self._observers: list[Callable[[], None]] = []
        self._depth = 0

    # --- Observers ---

    def add_observer(self, callback: Callable[[], None]) -> None:
        """Add a callback invoked after every action."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        for callback in list(self._observers):
            callback()

    # --- Lookup ---

    @property
    def active_session(self) -> Session | None:
        """The active session, or None if no session is active."""
        if self.active_index is None:
            return None
        return self.sessions.get(self.active_index)

    def _require_active(self) -> Session:
        session = self.active_session
        if session is None:
            raise NoActiveSessionError("No active server session")
        return session

    def _surface(self, error: RedisBrowserError) -> None:
        """Record a recoverable failure for the operator."""
        logger.error("%s", error)
        self.last_error = error

    def snapshot(self) -> ControllerSnapshot:
        """Build the read-only snapshot for renderers."""
        session = self.active_session
        return ControllerSnapshot(
            active_index=self.active_index if session is not None else None,
            active_label=session.label if session is not None else None,
            tabs=tuple((s.label, index) for index, s in self.sessions.items()),
            view=session.view if session is not None else None,
            editor=session.editor if session is not None else None,
            show_connection_form=self.show_connection_form or session is None,
            last_error=self.last_error,
        )

    # --- Session actions ---

    @_action
    def connect(self, label: str, config: ConnectionConfig) -> SessionIndex:
        """Open a session for a server and make it active.

        Raises:
            StoreConnectionError: If the connection or the initial key fetch
                fails. No session is created.
        """
        client = self._client_factory(config)
        try:
            keys = client.list_keys()
        except FetchError as e:
            client.close()
            raise StoreConnectionError(f"Connected to {config.display_address} but {e}") from e

        session = Session(label=label, connection=client, delimiter=self.delimiter)
        try:
            session.replace_keys(keys)
        except Exception:
            # Not registered yet, so nothing else would close the client
            client.close()
            raise

        index = self.sessions.insert(session)
        self.active_index = index
        self.show_connection_form = False
        logger.info("Session %r opened on %s (%d keys)", label, client.description, len(keys))
        return index

    @_action
    def open_connection_form(self) -> None:
        """Show the connection form; no session is active while it is open."""
        self.show_connection_form = True
        self.active_index = None

    @_action
    def switch_active(self, index: SessionIndex) -> bool:
        """Activate a live session. Unknown or removed indices are ignored."""
        if self.sessions.get(index) is None:
            logger.debug("Ignoring switch to unknown session %s", index)
            return False
        self.active_index = index
        self.show_connection_form = False
        return True

    @_action
    def remove_session(self, index: SessionIndex) -> bool:
        """Close and remove a session.

        If it was active, the most recently opened remaining session becomes
        active; with none left the connection form is shown.
        """
        session = self.sessions.remove(index)
        if session is None:
            return False

        session.close()
        logger.info("Session %r closed", session.label)

        if self.active_index == index:
            remaining = self.sessions.items()
            if remaining:
                self.active_index = remaining[-1][0]
            else:
                self.active_index = None
                self.show_connection_form = True
        return True

    def _refresh(self, session: Session) -> bool:
        try:
            session.refresh_keys()
        except FetchError as e:
            self._surface(e)
            return False
        return True

    @_action
    def refresh_active(self) -> bool:
        """Re-fetch keys for the active session. The editor is not touched."""
        return self._refresh(self._require_active())

    @_action
    def toggle_expansion(self, path: tuple[int, ...]) -> bool:
        """Flip a namespace node open or closed.

        Returns:
            False if the path is stale or out of range (view unchanged).
        """
        session = self._require_active()
        try:
            session.view.toggle(path)
        except InvalidPathError as e:
            logger.warning("%s", e)
            return False
        return True

    # --- Editor actions ---

    @_action
    def select_key(self, key: str) -> bool:
        """Load a key into the editor.

        String values open in Editing; composite or missing keys leave the
        editor Idle. A failed read leaves the editor unchanged.
        """
        session = self._require_active()
        try:
            value = session.connection.get_value(key)
        except FetchError as e:
            self._surface(e)
            return False

        if value is None:
            logger.debug("Key %r does not exist", key)
            session.editor = IDLE
        elif value.type_tag.is_composite:
            logger.debug("Key %r is a %s; only strings are editable", key, value.type_tag.value)
            session.editor = IDLE
        else:
            session.editor = Editing(key=key, pending_value=value.payload)
        return True

    @_action
    def edit_value_text(self, text: str) -> None:
        session = self._require_active()
        session.editor = editor_state.edit_value_text(session.editor, text)

    @_action
    def save_edit(self) -> bool:
        """Write the pending value of the edited key."""
        session = self._require_active()
        state = session.editor
        if not isinstance(state, Editing):
            return False
        try:
            session.connection.set_string(state.key, state.pending_value)
        except WriteError as e:
            self._surface(e)
            return False
        return True

    @_action
    def delete_edit(self) -> bool:
        """Delete the edited key, go Idle and refresh the key list."""
        session = self._require_active()
        state = session.editor
        if not isinstance(state, Editing):
            return False
        try:
            session.connection.delete_key(state.key)
        except WriteError as e:
            self._surface(e)
            return False
        session.editor = IDLE
        self._refresh(session)
        return True

    @_action
    def open_create_form(self) -> None:
        session = self._require_active()
        session.editor = editor_state.open_create_form(session.editor)

    @_action
    def edit_create_key_text(self, text: str) -> None:
        session = self._require_active()
        session.editor = editor_state.edit_create_key_text(session.editor, text)

    @_action
    def edit_create_value_text(self, text: str) -> None:
        session = self._require_active()
        session.editor = editor_state.edit_create_value_text(session.editor, text)

    @_action
    def confirm_create(self) -> bool:
        """SET the new key (overwriting any existing one), go Idle and refresh."""
        session = self._require_active()
        state = session.editor
        if not isinstance(state, Creating):
            return False
        try:
            session.connection.set_string(state.pending_key, state.pending_value)
        except WriteError as e:
            self._surface(e)
            return False
        session.editor = IDLE
        self._refresh(session)
        return True

    # --- Dispatch ---

    @_action
    def dispatch(self, action: actions.Action) -> Any:
        """Apply one action message.

        A failed Connect is recorded in ``last_error`` instead of raised.
        """
        if isinstance(action, actions.Connect):
            try:
                return self.connect(action.label, action.config)
            except StoreConnectionError as e:
                self._surface(e)
                return None
        if isinstance(action, actions.OpenConnectionForm):
            return self.open_connection_form()
        if isinstance(action, actions.SwitchActive):
            return self.switch_active(action.index)
        if isinstance(action, actions.RemoveSession):
            return self.remove_session(action.index)
        if isinstance(action, actions.RefreshActive):
            return self.refresh_active()
        if isinstance(action, actions.ToggleExpansion):
            return self.toggle_expansion(action.path)
        if isinstance(action, actions.SelectKey):
            return self.select_key(action.key)
        if isinstance(action, actions.EditValueText):
            return self.edit_value_text(action.text)
        if isinstance(action, actions.SaveEdit):
            return self.save_edit()
        if isinstance(action, actions.DeleteEdit):
            return self.delete_edit()
        if isinstance(action, actions.OpenCreateForm):
            return self.open_create_form()
        if isinstance(action, actions.EditCreateKeyText):
            return self.edit_create_key_text(action.text)
        if isinstance(action, actions.EditCreateValueText):
            return self.edit_create_value_text(action.text)
        if isinstance(action, actions.ConfirmCreate):
            return self.confirm_create()
        raise TypeError(f"Unknown action: {action!r}")
