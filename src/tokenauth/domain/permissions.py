"""Role and permission lookup plus wildcard matching."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Iterable, Protocol

if TYPE_CHECKING:
    from tokenauth.domain.stp import StpManager

__all__ = [
    "PermissionProvider",
    "SessionPermissionProvider",
    "has_element",
    "vague_match",
]


class PermissionProvider(Protocol):
    """Source of role and permission codes for a login id."""

    def get_permission_list(self, login_id: Any, login_type: str) -> list[str]:
        ...

    def get_role_list(self, login_id: Any, login_type: str) -> list[str]:
        ...


class SessionPermissionProvider:
    """Read roles and permissions stored in the account session at login.

    Recognized keys: ``role`` (single role), ``roles`` (list),
    ``permissions`` and ``permissionList`` (lists).
    """

    def __init__(self, manager: "StpManager") -> None:
        self._manager = manager

    def get_permission_list(self, login_id: Any, login_type: str) -> list[str]:
        session = self._manager.get(login_type).get_session_by_login_id(login_id, create=False)
        if session is None:
            return []
        values: list[str] = []
        for key in ("permissions", "permissionList"):
            values.extend(_as_list(session.get(key)))
        return values

    def get_role_list(self, login_id: Any, login_type: str) -> list[str]:
        session = self._manager.get(login_type).get_session_by_login_id(login_id, create=False)
        if session is None:
            return []
        roles = _as_list(session.get("roles"))
        role = session.get("role")
        if isinstance(role, str) and role and role not in roles:
            roles.insert(0, role)
        return roles


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return [str(item) for item in value]
    return []


@lru_cache(maxsize=256)
def _pattern(expression: str) -> re.Pattern[str]:
    return re.compile("^" + ".*".join(re.escape(part) for part in expression.split("*")) + "$")


def vague_match(pattern: str, value: str) -> bool:
    """Match ``value`` against ``pattern`` where ``*`` matches any run of characters."""

    if pattern is None or value is None:
        return False
    if "*" not in pattern:
        return pattern == value
    return _pattern(pattern).match(value) is not None


def has_element(elements: Iterable[str], element: str) -> bool:
    """True when ``element`` is in ``elements`` directly or through a wildcard."""

    for candidate in elements:
        if candidate == element or vague_match(candidate, element):
            return True
    return False
