"""Tests for Session persistence and terminals."""

from __future__ import annotations

from tokenauth.domain.session import ACCOUNT_SESSION, Session
from tokenauth.domain.store import TokenStore


def make_session(store: TokenStore, timeout: int = 100) -> Session:
    session = Session("satoken:login:session:1", store, type=ACCOUNT_SESSION, login_id=1)
    store.set_object(session.id, session, timeout)
    return session


def test_values_round_trip_through_store(store: TokenStore) -> None:
    session = make_session(store)

    session.set("role", "admin").set("permissions", ["user.add"])

    fetched = store.get_object(session.id)
    assert fetched.get("role") == "admin"
    assert fetched.keys() == ["role", "permissions"]
    assert fetched.has("permissions")

    fetched.delete("role")
    assert not session.has("role")


def test_set_default_only_writes_missing_keys(store: TokenStore) -> None:
    session = make_session(store)

    assert session.set_default("theme", "dark") == "dark"
    assert session.set_default("theme", "light") == "dark"


def test_terminals_are_added_and_removed(store: TokenStore) -> None:
    session = make_session(store)

    first = session.add_terminal("t1", "PC")
    second = session.add_terminal("t2", "Mobile")

    assert [first.index, second.index] == [1, 2]
    assert [t.token_value for t in session.terminals_by_device("PC")] == ["t1"]
    assert session.remove_terminal("t1").token_value == "t1"
    assert session.remove_terminal("t1") is None
    assert session.get_terminal("t2").device == "Mobile"


def test_logout_if_idle_removes_session(store: TokenStore) -> None:
    session = make_session(store)
    session.add_terminal("t1", "PC")

    assert session.logout_if_idle() is False

    session.remove_terminal("t1")

    assert session.logout_if_idle() is True
    assert store.get_object(session.id) is None


def test_update_min_timeout_only_extends(store: TokenStore) -> None:
    session = make_session(store, timeout=100)

    session.update_min_timeout(50)
    assert session.timeout() == 100

    session.update_min_timeout(500)
    assert session.timeout() == 500

    session.update_min_timeout(-1)
    assert session.timeout() == -1
