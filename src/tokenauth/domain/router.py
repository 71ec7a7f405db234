"""Ant-style path matching and chained route rules for the auth interceptor.

Patterns follow the usual conventions: ``?`` matches one character, ``*``
matches within a path segment, ``**`` matches any number of segments, and
``{name}`` / ``{name:regex}`` match a template variable.

Rules are written as chains that only run their actions when every
preceding condition hit::

    route.match("/**").not_match("/auth/doLogin").check(lambda r: stp.check_login())
    route.match("/admin/**", lambda r: stp.check_role_or("admin", "super-admin"))
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Callable, Iterable

from tokenauth.domain.exceptions import BackResult, StopMatch

__all__ = ["RouteRules", "RouterStaff", "is_match", "is_match_any"]

logger = logging.getLogger(__name__)

RuleAction = Callable[["RouterStaff"], Any]


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        if pattern.startswith("/**", index) and (index + 3 == length or pattern[index + 3] == "/"):
            parts.append("(?:/.*)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        char = pattern[index]
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "{":
            end = pattern.find("}", index)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[index + 1 : end]
                _, _, custom = body.partition(":")
                parts.append(f"(?:{custom})" if custom else "[^/]+")
                index = end + 1
                continue
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("^" + "".join(parts) + "$")


def is_match(pattern: str, path: str) -> bool:
    """True when ``path`` matches the Ant-style ``pattern``."""

    if pattern == path:
        return True
    return _compile(pattern).match(path) is not None


def is_match_any(patterns: Iterable[str], path: str) -> bool:
    return any(is_match(pattern, path) for pattern in patterns)


def _flatten(values: Iterable[Any]) -> list[str]:
    flat: list[str] = []
    for value in values:
        if isinstance(value, str):
            flat.append(value)
        elif isinstance(value, Iterable):
            flat.extend(_flatten(value))
    return flat


class RouterStaff:
    """One rule chain; ``hit`` turns False as soon as a condition fails."""

    def __init__(self, path: str, method: str) -> None:
        self.path = path
        self.method = method.upper()
        self.hit = True

    def match(self, *patterns: Any) -> "RouterStaff":
        if self.hit:
            self.hit = is_match_any(_flatten(patterns), self.path)
        return self

    def not_match(self, *patterns: Any) -> "RouterStaff":
        if self.hit:
            self.hit = not is_match_any(_flatten(patterns), self.path)
        return self

    def match_method(self, *methods: Any) -> "RouterStaff":
        if self.hit:
            wanted = {method.upper() for method in _flatten(methods)}
            self.hit = "*" in wanted or self.method in wanted
        return self

    def not_match_method(self, *methods: Any) -> "RouterStaff":
        if self.hit:
            excluded = {method.upper() for method in _flatten(methods)}
            self.hit = self.method not in excluded
        return self

    def match_if(self, condition: bool | Callable[[], bool]) -> "RouterStaff":
        if self.hit:
            self.hit = bool(condition() if callable(condition) else condition)
        return self

    def check(self, action: RuleAction) -> "RouterStaff":
        if self.hit:
            logger.debug("Route rule hit", extra={"path": self.path, "method": self.method})
            action(self)
        return self

    def free(self, action: Callable[["RouteRules"], Any]) -> "RouterStaff":
        """Run ``action`` on a nested rule set whose ``stop()`` stays local."""

        if self.hit:
            try:
                action(RouteRules(self.path, self.method))
            except StopMatch:
                pass
        return self

    def stop(self) -> "RouterStaff":
        if self.hit:
            raise StopMatch()
        return self

    def back(self, result: Any = None) -> "RouterStaff":
        if self.hit:
            raise BackResult(result)
        return self


class RouteRules:
    """Entry point for building rule chains against the current request."""

    def __init__(self, path: str, method: str = "GET") -> None:
        self.path = path
        self.method = method.upper()

    def _staff(self) -> RouterStaff:
        return RouterStaff(self.path, self.method)

    def match(self, *patterns: Any) -> RouterStaff:
        """Start a chain; a trailing callable runs immediately when the patterns hit."""

        action: RuleAction | None = None
        if patterns and callable(patterns[-1]):
            action = patterns[-1]
            patterns = patterns[:-1]
        staff = self._staff().match(*patterns)
        if action is not None:
            staff.check(action)
        return staff

    def not_match(self, *patterns: Any) -> RouterStaff:
        return self._staff().not_match(*patterns)

    def match_method(self, *methods: Any) -> RouterStaff:
        return self._staff().match_method(*methods)

    def not_match_method(self, *methods: Any) -> RouterStaff:
        return self._staff().not_match_method(*methods)

    def stop(self) -> None:
        raise StopMatch()

    def back(self, result: Any = None) -> None:
        raise BackResult(result)
