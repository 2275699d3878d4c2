"""Tests for Controller - session management and editor transitions."""

import pytest

from redisbrowser.data.session_table import Session, SessionIndex
from redisbrowser.data.store_client import StoreClient, StoreValue, ValueType
from redisbrowser.models.editor_state import IDLE, Creating, Editing
from redisbrowser.models.errors import (
    FetchError,
    NoActiveSessionError,
    StoreConnectionError,
    WriteError,
)
from redisbrowser.services import actions
from redisbrowser.services.controller import Controller
from redisbrowser.settings import ConnectionConfig


class FakeStore(StoreClient):
    """In-memory store client for testing."""

    def __init__(self, strings=None, composites=None):
        self.strings = dict(strings or {})
        self.composites = dict(composites or {})
        self.fail_list = False
        self.fail_get = False
        self.fail_write = False
        self.closed = False
        self.list_calls = 0
        self.writes = []

    @property
    def description(self):
        return "fake"

    def list_keys(self):
        self.list_calls += 1
        if self.fail_list:
            raise FetchError("list failed")
        return [*self.strings, *self.composites]

    def get_value(self, key):
        if self.fail_get:
            raise FetchError("get failed")
        if key in self.strings:
            return StoreValue(ValueType.STRING, self.strings[key])
        if key in self.composites:
            return self.composites[key]
        return None

    def set_string(self, key, value):
        if self.fail_write:
            raise WriteError(f"Could not save {key!r}")
        self.writes.append(("SET", key, value))
        self.composites.pop(key, None)
        self.strings[key] = value

    def delete_key(self, key):
        if self.fail_write:
            raise WriteError(f"Could not delete {key!r}")
        self.writes.append(("DEL", key))
        self.strings.pop(key, None)
        self.composites.pop(key, None)

    def close(self):
        self.closed = True


@pytest.fixture
def store():
    return FakeStore(
        strings={"user:1:name": "Ada", "user:1:age": "36", "counter": "7", "k": "v"},
        composites={"queue:jobs": StoreValue(ValueType.LIST, ["a", "b"])},
    )


@pytest.fixture
def controller(store):
    stores = iter([store, FakeStore({"other": "1"}), FakeStore({"third": "1"})])
    c = Controller(client_factory=lambda config: next(stores))
    c.connect("local", ConnectionConfig())
    return c


def editor(controller):
    return controller.active_session.editor


class TestConnect:
    """Tests for opening sessions."""

    def test_connect_creates_active_session(self, controller, store):
        session = controller.active_session
        assert session.label == "local"
        assert session.connection is store
        assert session.editor == IDLE
        assert sorted(session.keys) == sorted(store.list_keys())
        assert not controller.show_connection_form

    def test_connect_builds_tree(self, controller):
        tree = controller.active_session.tree
        assert tree.root.leaf_keys == {"counter", "k"}
        assert tree.namespaces["user"].children["1"].leaf_keys == {"user:1:name", "user:1:age"}

    def test_connection_failure_creates_no_session(self):
        def factory(config):
            raise StoreConnectionError("unreachable")

        c = Controller(client_factory=factory)
        with pytest.raises(StoreConnectionError):
            c.connect("bad", ConnectionConfig())
        assert len(c.sessions) == 0
        assert c.active_index is None
        assert c.snapshot().show_connection_form

    def test_initial_fetch_failure_closes_client(self):
        bad = FakeStore()
        bad.fail_list = True
        c = Controller(client_factory=lambda config: bad)

        with pytest.raises(StoreConnectionError):
            c.connect("bad", ConnectionConfig())
        assert bad.closed
        assert len(c.sessions) == 0

    def test_tree_build_failure_closes_client(self, monkeypatch):
        """A session that fails to build never leaks its connection."""
        fresh = FakeStore({"a:b": "1"})
        c = Controller(client_factory=lambda config: fresh)

        def broken(self, keys):
            raise RuntimeError("rebuild failed")

        monkeypatch.setattr(Session, "replace_keys", broken)
        with pytest.raises(RuntimeError):
            c.connect("broken", ConnectionConfig())
        assert fresh.closed
        assert len(c.sessions) == 0
        assert c.active_index is None

    def test_deeply_nested_key(self):
        deep_key = ":".join(["x"] * 1200)
        deep = FakeStore({deep_key: "bottom", "top": "1"})
        c = Controller(client_factory=lambda config: deep)

        c.connect("deep", ConnectionConfig())

        view = c.active_session.view
        bottom = view.resolve([1] + [0] * 1198)
        assert view.nodes[bottom].keys == [deep_key]
        assert c.toggle_expansion([1] + [0] * 1198) is True
        assert c.select_key(deep_key) is True
        assert editor(c) == Editing(deep_key, "bottom")

    def test_dispatch_connect_failure_is_surfaced(self):
        def factory(config):
            raise StoreConnectionError("unreachable")

        c = Controller(client_factory=factory)
        assert c.dispatch(actions.Connect("bad", ConnectionConfig())) is None
        assert isinstance(c.last_error, StoreConnectionError)
        assert c.snapshot().show_connection_form

    def test_config_passed_to_factory(self):
        seen = []

        def factory(config):
            seen.append(config)
            return FakeStore()

        config = ConnectionConfig.from_url("redis://example:6380/2")
        Controller(client_factory=factory).connect("x", config)
        assert seen == [config]


class TestSessionSwitching:
    """Tests for switching, opening the form and removing sessions."""

    def test_switch_between_sessions(self, controller):
        first = controller.active_index
        second = controller.connect("other", ConnectionConfig())
        assert controller.active_index == second

        assert controller.switch_active(first) is True
        assert controller.active_session.label == "local"

    def test_switch_to_unknown_index_is_noop(self, controller):
        before = controller.active_index
        assert controller.switch_active(SessionIndex(42, 0)) is False
        assert controller.active_index == before

    def test_switch_to_removed_index_is_noop(self, controller):
        first = controller.active_index
        second = controller.connect("other", ConnectionConfig())
        controller.remove_session(first)

        controller.dispatch(actions.SwitchActive(first))
        assert controller.active_index == second

    def test_open_connection_form_clears_active(self, controller):
        controller.dispatch(actions.OpenConnectionForm())
        snap = controller.snapshot()
        assert snap.show_connection_form
        assert snap.active_index is None
        assert snap.view is None
        assert len(snap.tabs) == 1

    def test_switch_hides_connection_form(self, controller):
        index = controller.active_index
        controller.open_connection_form()
        controller.switch_active(index)
        assert not controller.snapshot().show_connection_form

    def test_remove_active_closes_and_falls_back(self, controller, store):
        first = controller.active_index
        second = controller.connect("other", ConnectionConfig())
        controller.switch_active(first)

        assert controller.remove_session(first) is True
        assert store.closed
        assert controller.active_index == second

    def test_remove_last_session_shows_form(self, controller):
        controller.remove_session(controller.active_index)
        assert controller.active_index is None
        assert controller.snapshot().show_connection_form

    def test_remove_inactive_keeps_active(self, controller):
        first = controller.active_index
        second = controller.connect("other", ConnectionConfig())
        controller.remove_session(first)
        assert controller.active_index == second

    def test_remove_unknown_is_noop(self, controller):
        assert controller.remove_session(SessionIndex(9, 9)) is False
        assert len(controller.sessions) == 1

    @pytest.mark.parametrize("index", [3, (0, 0), None])
    def test_non_index_values_are_noops(self, controller, index):
        before = controller.active_index
        assert controller.switch_active(index) is False
        assert controller.remove_session(index) is False
        assert controller.active_index == before
        assert len(controller.sessions) == 1

    def test_sessions_are_independent(self, controller):
        first = controller.active_index
        controller.select_key("k")
        controller.connect("other", ConnectionConfig())
        assert editor(controller) == IDLE
        controller.switch_active(first)
        assert editor(controller) == Editing("k", "v")

    def test_snapshot_tabs_in_order(self, controller):
        first = controller.active_index
        second = controller.connect("other", ConnectionConfig())
        snap = controller.snapshot()
        assert snap.tabs == (("local", first), ("other", second))
        assert snap.active_label == "other"


class TestNoActiveSession:
    """Session actions without an active session fail loudly."""

    @pytest.mark.parametrize(
        "action",
        [
            actions.SelectKey("k"),
            actions.EditValueText("x"),
            actions.SaveEdit(),
            actions.DeleteEdit(),
            actions.OpenCreateForm(),
            actions.EditCreateKeyText("x"),
            actions.EditCreateValueText("y"),
            actions.ConfirmCreate(),
            actions.RefreshActive(),
            actions.ToggleExpansion((0,)),
        ],
    )
    def test_raises(self, action):
        c = Controller(client_factory=lambda config: FakeStore())
        with pytest.raises(NoActiveSessionError):
            c.dispatch(action)

    def test_raises_while_connection_form_open(self, controller):
        controller.open_connection_form()
        with pytest.raises(NoActiveSessionError):
            controller.select_key("k")


class TestSelectKey:
    """Tests for SelectKey."""

    def test_string_key_opens_editor(self, controller):
        controller.dispatch(actions.SelectKey("user:1:name"))
        assert editor(controller) == Editing("user:1:name", "Ada")

    def test_missing_key_stays_idle(self, controller):
        controller.dispatch(actions.SelectKey("missing"))
        assert editor(controller) == IDLE

    def test_missing_key_from_editing_goes_idle(self, controller):
        controller.select_key("k")
        controller.select_key("missing")
        assert editor(controller) == IDLE

    def test_composite_key_goes_idle(self, controller):
        controller.select_key("k")
        controller.select_key("queue:jobs")
        assert editor(controller) == IDLE

    def test_select_from_creating(self, controller):
        controller.open_create_form()
        controller.select_key("counter")
        assert editor(controller) == Editing("counter", "7")

    def test_fetch_failure_keeps_state(self, controller, store):
        controller.select_key("k")
        controller.edit_value_text("draft")
        store.fail_get = True

        assert controller.dispatch(actions.SelectKey("counter")) is False
        assert editor(controller) == Editing("k", "draft")
        assert isinstance(controller.last_error, FetchError)


class TestEditing:
    """Tests for EditValueText, SaveEdit and DeleteEdit."""

    def test_edit_value_no_store_call(self, controller, store):
        controller.select_key("k")
        controller.dispatch(actions.EditValueText("new"))
        assert editor(controller) == Editing("k", "new")
        assert store.writes == []

    def test_save_writes_and_stays_editing(self, controller, store):
        controller.select_key("k")
        controller.edit_value_text("new")
        assert controller.dispatch(actions.SaveEdit()) is True
        assert store.writes == [("SET", "k", "new")]
        assert editor(controller) == Editing("k", "new")

    def test_save_failure_keeps_pending_edit(self, controller, store):
        controller.select_key("k")
        controller.edit_value_text("new")
        store.fail_write = True

        assert controller.save_edit() is False
        assert editor(controller) == Editing("k", "new")
        assert isinstance(controller.last_error, WriteError)
        assert store.strings["k"] == "v"

    def test_delete_goes_idle_and_refreshes(self, controller, store):
        controller.select_key("k")
        controller.active_session.view.toggle([1])
        calls_before = store.list_calls

        assert controller.dispatch(actions.DeleteEdit()) is True

        session = controller.active_session
        assert editor(controller) == IDLE
        assert store.list_calls == calls_before + 1
        assert "k" not in session.keys
        assert "k" not in session.tree.root.leaf_keys
        assert not any(node.is_expanded for node in session.view.nodes)

    def test_delete_failure_keeps_editing(self, controller, store):
        controller.select_key("k")
        store.fail_write = True
        calls_before = store.list_calls

        assert controller.delete_edit() is False
        assert editor(controller) == Editing("k", "v")
        assert store.list_calls == calls_before
        assert isinstance(controller.last_error, WriteError)

    def test_delete_then_refresh_failure(self, controller, store):
        """Delete succeeds, refresh fails: Idle, old key list, error surfaced."""
        controller.select_key("k")
        keys_before = list(controller.active_session.keys)
        store.fail_list = True

        controller.delete_edit()
        assert editor(controller) == IDLE
        assert controller.active_session.keys == keys_before
        assert isinstance(controller.last_error, FetchError)

    @pytest.mark.parametrize(
        "action", [actions.EditValueText("x"), actions.SaveEdit(), actions.DeleteEdit()]
    )
    def test_noop_when_idle(self, controller, store, action):
        controller.dispatch(action)
        assert editor(controller) == IDLE
        assert store.writes == []

    @pytest.mark.parametrize(
        "action", [actions.EditValueText("x"), actions.SaveEdit(), actions.DeleteEdit()]
    )
    def test_noop_when_creating(self, controller, store, action):
        controller.open_create_form()
        controller.edit_create_key_text("x")
        controller.dispatch(action)
        assert editor(controller) == Creating("x", "")
        assert store.writes == []


class TestCreating:
    """Tests for the create form."""

    def test_open_from_editing(self, controller):
        controller.select_key("k")
        controller.dispatch(actions.OpenCreateForm())
        assert editor(controller) == Creating("", "")

    def test_confirm_create(self, controller, store):
        controller.open_create_form()
        controller.dispatch(actions.EditCreateKeyText("x"))
        controller.dispatch(actions.EditCreateValueText("y"))

        assert controller.dispatch(actions.ConfirmCreate()) is True
        assert store.writes == [("SET", "x", "y")]
        assert editor(controller) == IDLE
        assert "x" in controller.active_session.tree.root.leaf_keys

    def test_confirm_create_overwrites_existing(self, controller, store):
        controller.open_create_form()
        controller.edit_create_key_text("counter")
        controller.edit_create_value_text("100")
        controller.confirm_create()
        assert store.strings["counter"] == "100"

    def test_confirm_create_failure_keeps_form(self, controller, store):
        controller.open_create_form()
        controller.edit_create_key_text("x")
        controller.edit_create_value_text("y")
        store.fail_write = True
        calls_before = store.list_calls

        assert controller.confirm_create() is False
        assert editor(controller) == Creating(pending_key="x", pending_value="y")
        assert isinstance(controller.last_error, WriteError)
        assert store.list_calls == calls_before

    @pytest.mark.parametrize(
        "action",
        [
            actions.EditCreateKeyText("x"),
            actions.EditCreateValueText("y"),
            actions.ConfirmCreate(),
        ],
    )
    def test_noop_when_editing(self, controller, store, action):
        controller.select_key("k")
        controller.dispatch(action)
        assert editor(controller) == Editing("k", "v")
        assert store.writes == []


class TestRefreshAndToggle:
    """Tests for RefreshActive and ToggleExpansion."""

    def test_refresh_picks_up_new_keys(self, controller, store):
        store.strings["new:key"] = "1"
        controller.dispatch(actions.RefreshActive())
        assert "new:key" in controller.active_session.keys

    def test_refresh_keeps_editor(self, controller):
        controller.select_key("k")
        controller.edit_value_text("draft")
        controller.refresh_active()
        assert editor(controller) == Editing("k", "draft")

    def test_refresh_failure_keeps_keys(self, controller, store):
        keys = list(controller.active_session.keys)
        store.fail_list = True
        assert controller.refresh_active() is False
        assert controller.active_session.keys == keys
        assert isinstance(controller.last_error, FetchError)

    def test_toggle(self, controller):
        assert controller.dispatch(actions.ToggleExpansion((1,))) is True
        view = controller.active_session.view
        assert [i for i, node in enumerate(view.nodes) if node.is_expanded] == [view.resolve([1])]

    def test_invalid_toggle_is_reported_noop(self, controller):
        assert controller.dispatch(actions.ToggleExpansion((17, 3))) is False
        assert not any(node.is_expanded for node in controller.active_session.view.nodes)
        assert controller.last_error is None

    def test_stale_path_after_refresh(self, controller, store):
        """Paths from before a refresh resolve against the new view only."""
        controller.toggle_expansion((2, 0))
        store.strings.clear()
        store.composites.clear()
        store.strings["solo"] = "1"
        controller.refresh_active()
        assert controller.toggle_expansion((2, 0)) is False


class TestObserversAndErrors:
    """Tests for observer notification and last_error handling."""

    def test_observer_called_once_per_dispatch(self, controller):
        calls = []
        controller.add_observer(lambda: calls.append(1))
        controller.dispatch(actions.SelectKey("k"))
        controller.dispatch(actions.EditValueText("x"))
        assert len(calls) == 2

    def test_observer_called_on_no_active_error(self):
        c = Controller(client_factory=lambda config: FakeStore())
        calls = []
        c.add_observer(lambda: calls.append(1))
        with pytest.raises(NoActiveSessionError):
            c.select_key("k")
        assert calls == [1]

    def test_remove_observer(self, controller):
        calls = []

        def callback():
            calls.append(1)

        controller.add_observer(callback)
        controller.remove_observer(callback)
        controller.refresh_active()
        assert calls == []

    def test_error_cleared_by_next_action(self, controller, store):
        store.fail_list = True
        controller.refresh_active()
        assert controller.last_error is not None

        store.fail_list = False
        controller.refresh_active()
        assert controller.last_error is None

    def test_error_in_snapshot(self, controller, store):
        store.fail_get = True
        controller.select_key("k")
        assert isinstance(controller.snapshot().last_error, FetchError)

    def test_unknown_action(self, controller):
        with pytest.raises(TypeError):
            controller.dispatch("SaveEdit")
