"""Tests for TokenStore."""

from __future__ import annotations

from tokenauth.domain.store import NEVER_EXPIRE, NOT_VALUE_EXPIRE, TokenStore


def test_set_get_and_expiry(store: TokenStore, clock) -> None:
    store.set("a", "value", 10)

    assert store.get("a") == "value"
    assert store.get_timeout("a") == 10

    clock.advance(10)

    assert store.get("a") is None
    assert store.get_timeout("a") == NOT_VALUE_EXPIRE


def test_permanent_and_rejected_timeouts(store: TokenStore) -> None:
    store.set("forever", 1, NEVER_EXPIRE)
    store.set("zero", 1, 0)
    store.set("negative", 1, -5)

    assert store.get_timeout("forever") == NEVER_EXPIRE
    assert store.get("zero") is None
    assert store.get("negative") is None


def test_update_keeps_remaining_ttl(store: TokenStore, clock) -> None:
    store.set("k", "old", 100)
    clock.advance(40)

    store.update("k", "new")

    assert store.get("k") == "new"
    assert store.get_timeout("k") == 60


def test_update_of_missing_key_is_ignored(store: TokenStore) -> None:
    store.update("missing", "value")

    assert store.get("missing") is None


def test_update_timeout(store: TokenStore) -> None:
    store.set("k", "v", 10)

    store.update_timeout("k", NEVER_EXPIRE)
    assert store.get_timeout("k") == NEVER_EXPIRE

    store.update_timeout("k", 0)
    assert store.get("k") is None


def test_search_filters_by_prefix_keyword_and_pages(store: TokenStore) -> None:
    for name in ("a1", "a2", "a3", "b1"):
        store.set(f"satoken:login:token:{name}", name, 100)

    keys = store.search("satoken:login:token:", ":a")

    assert keys == [
        "satoken:login:token:a1",
        "satoken:login:token:a2",
        "satoken:login:token:a3",
    ]
    assert store.search("satoken:login:token:", "", start=1, size=2) == [
        "satoken:login:token:a2",
        "satoken:login:token:a3",
    ]


def test_purge_expired_and_len(store: TokenStore, clock) -> None:
    store.set("short", 1, 5)
    store.set("long", 1, 50)
    store.set("forever", 1, NEVER_EXPIRE)

    clock.advance(6)

    assert store.purge_expired() == 1
    assert len(store) == 2
