"""Tests for Ant-style path matching and route rule chains."""

from __future__ import annotations

import pytest

from tokenauth.domain.exceptions import BackResult, StopMatch
from tokenauth.domain.router import RouteRules, is_match, is_match_any


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("/**", "/", True),
        ("/**", "/user/add", True),
        ("/admin/**", "/admin", True),
        ("/admin/**", "/admin/users/1", True),
        ("/admin/**", "/administrator", False),
        ("/user/*", "/user/add", True),
        ("/user/*", "/user/add/more", False),
        ("/a?c", "/abc", True),
        ("/a?c", "/a/c", False),
        ("/goods/{id}", "/goods/12", True),
        ("/goods/{id:\\d+}", "/goods/abc", False),
        ("/goods/{id:\\d+}", "/goods/42", True),
        ("/static/**/*.css", "/static/css/site/main.css", True),
        ("/favicon.ico", "/favicon.ico", True),
        ("/favicon.ico", "/faviconXico", False),
    ],
)
def test_is_match(pattern, path, expected) -> None:
    assert is_match(pattern, path) is expected


def test_is_match_any() -> None:
    assert is_match_any(["/auth/doLogin", "/auth/register"], "/auth/register")
    assert not is_match_any([], "/auth/register")


def test_match_with_trailing_action_runs_on_hit() -> None:
    seen: list[str] = []
    rules = RouteRules("/admin/users", "get")

    rules.match("/admin/**", lambda staff: seen.append(staff.method))
    rules.match("/user/**", lambda staff: seen.append("user"))

    assert seen == ["GET"]


def test_chain_conditions_short_circuit() -> None:
    seen: list[str] = []
    rules = RouteRules("/auth/doLogin", "POST")

    rules.match("/**").not_match("/auth/doLogin", "/auth/register").check(lambda staff: seen.append("login"))
    rules.match("/**").not_match(["/error", "/favicon.ico"]).check(lambda staff: seen.append("nested list"))

    assert seen == ["nested list"]


def test_method_conditions() -> None:
    seen: list[str] = []
    rules = RouteRules("/goods/1", "DELETE")

    rules.match_method("GET", "POST").check(lambda staff: seen.append("read/write"))
    rules.match_method("*").check(lambda staff: seen.append("any"))
    rules.not_match_method("GET").match("/goods/**").check(lambda staff: seen.append("not get"))

    assert seen == ["any", "not get"]


def test_match_if_accepts_callables_and_values() -> None:
    rules = RouteRules("/x")

    assert rules.match("/x").match_if(lambda: True).hit
    assert not rules.match("/x").match_if(False).hit


def test_stop_only_when_hit() -> None:
    rules = RouteRules("/public/page")

    rules.match("/private/**").stop()
    with pytest.raises(StopMatch):
        rules.match("/public/**").stop()


def test_free_keeps_stop_local() -> None:
    seen: list[str] = []
    rules = RouteRules("/shop/cart")

    def nested(inner: RouteRules) -> None:
        inner.match("/shop/**").stop()
        seen.append("unreachable")

    rules.match("/shop/**").free(nested).check(lambda staff: seen.append("after free"))

    assert seen == ["after free"]


def test_back_carries_result() -> None:
    rules = RouteRules("/options", "OPTIONS")

    with pytest.raises(BackResult) as excinfo:
        rules.match_method("OPTIONS").back({"msg": "preflight"})

    assert excinfo.value.result == {"msg": "preflight"}
