"""Tests for SessionTable generational indices and Session rebuilds."""

from unittest.mock import MagicMock

import pytest

from redisbrowser.data.session_table import Session, SessionIndex, SessionTable
from redisbrowser.models.editor_state import IDLE, Editing
from redisbrowser.models.errors import FetchError


def make_session(label="s", keys=None):
    connection = MagicMock()
    connection.list_keys.return_value = list(keys or [])
    return Session(label=label, connection=connection)


@pytest.fixture
def table():
    return SessionTable()


class TestSessionTable:
    """Tests for insert/get/remove."""

    def test_insert_and_get(self, table):
        session = make_session("a")
        index = table.insert(session)
        assert table.get(index) is session
        assert index in table
        assert len(table) == 1

    def test_indices_are_distinct(self, table):
        a = table.insert(make_session("a"))
        b = table.insert(make_session("b"))
        assert a != b

    def test_unknown_index(self, table):
        assert table.get(SessionIndex(5, 0)) is None
        assert SessionIndex(5, 0) not in table
        assert SessionIndex(-1, 0) not in table

    def test_remove_returns_session(self, table):
        session = make_session("a")
        index = table.insert(session)
        assert table.remove(index) is session
        assert table.get(index) is None
        assert len(table) == 0

    def test_remove_twice_is_noop(self, table):
        index = table.insert(make_session("a"))
        table.remove(index)
        assert table.remove(index) is None

    def test_remove_keeps_other_indices_valid(self, table):
        a = table.insert(make_session("a"))
        b = table.insert(make_session("b"))
        c = table.insert(make_session("c"))
        table.remove(b)
        assert table.get(a).label == "a"
        assert table.get(c).label == "c"

    def test_reused_slot_does_not_alias_stale_index(self, table):
        """A removed index never reaches a session inserted into its old slot."""
        old = table.insert(make_session("old"))
        table.remove(old)
        new = table.insert(make_session("new"))

        assert new.slot == old.slot
        assert new.generation == old.generation + 1
        assert table.get(old) is None
        assert table.get(new).label == "new"

    @pytest.mark.parametrize("index", [3, (0, 0), None, "0"])
    def test_non_index_values_are_unknown(self, table, index):
        """Only SessionIndex values address a slot."""
        table.insert(make_session())
        assert table.get(index) is None
        assert table.remove(index) is None
        assert index not in table
        assert len(table) == 1

    def test_items_in_insertion_order(self, table):
        a = table.insert(make_session("a"))
        b = table.insert(make_session("b"))
        table.remove(a)
        c = table.insert(make_session("c"))  # reuses a's slot
        assert [(i, s.label) for i, s in table.items()] == [(b, "b"), (c, "c")]
        assert list(table) == [b, c]

    def test_contains_rejects_other_types(self, table):
        table.insert(make_session("a"))
        assert (0, 0) not in table


class TestSession:
    """Tests for Session key refreshes."""

    def test_refresh_rebuilds_tree_and_view(self):
        session = make_session(keys=["user:1:name", "counter"])
        session.refresh_keys()

        assert session.keys == ["user:1:name", "counter"]
        assert session.tree.root.leaf_keys == {"counter"}
        assert [session.view.nodes[i].name for i in session.view.roots] == ["", "user"]

    def test_refresh_resets_expansion_and_keeps_editor(self):
        session = make_session(keys=["user:1:name"])
        session.refresh_keys()
        session.view.toggle([1])
        session.editor = Editing("user:1:name", "Ada")

        session.refresh_keys()

        assert not any(node.is_expanded for node in session.view.nodes)
        assert session.editor == Editing("user:1:name", "Ada")

    def test_failed_refresh_leaves_state(self):
        session = make_session(keys=["a:b"])
        session.refresh_keys()
        old_view = session.view
        session.connection.list_keys.side_effect = FetchError("boom")

        with pytest.raises(FetchError):
            session.refresh_keys()

        assert session.keys == ["a:b"]
        assert session.view is old_view

    def test_new_session_is_idle(self):
        assert make_session().editor == IDLE

    def test_close_closes_connection(self):
        session = make_session()
        session.close()
        session.connection.close.assert_called_once_with()
