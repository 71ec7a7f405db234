"""Endpoint-level auth checks, applied as decorators.

Each factory returns an ``AuthCheck`` that can decorate an endpoint, be
nested in ``check_or`` or be applied to a whole route group with
``guard_routes``::

    @check_login()
    @check_permission("user.add", or_role=["admin"])
    async def add_user(request): ...

Stacked decorators combine with AND, in source order. ``ignore`` skips
every check (and the route rules) of the endpoint.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from tokenauth.domain import http_auth
from tokenauth.domain.context import get_context
from tokenauth.domain.exceptions import AuthError, NotPermissionError
from tokenauth.domain.stp import DEFAULT_DISABLE_LEVEL, DEFAULT_LOGIN_TYPE, DEFAULT_SAFE_SERVICE

if TYPE_CHECKING:
    from tokenauth.domain.stp import StpManager

__all__ = [
    "AuthCheck",
    "Mode",
    "check_disable",
    "check_http_basic",
    "check_http_digest",
    "check_login",
    "check_or",
    "check_permission",
    "check_role",
    "check_safe",
    "endpoint_checks",
    "guard_routes",
    "ignore",
    "is_ignored",
    "run_checks",
]

logger = logging.getLogger(__name__)

CHECKS_ATTR = "__auth_checks__"
IGNORE_ATTR = "__auth_ignore__"


class Mode(str, enum.Enum):
    AND = "AND"
    OR = "OR"


class AuthCheck:
    """A named check run against a ``StpManager`` for the current request."""

    def __init__(self, name: str, run: Callable[["StpManager"], None]) -> None:
        self.name = name
        self._run = run

    def run(self, manager: "StpManager") -> None:
        self._run(manager)

    def __call__(self, endpoint: Callable[..., Any]) -> Callable[..., Any]:
        # Decorators apply bottom-up; prepend so checks run in source order.
        checks = list(getattr(endpoint, CHECKS_ATTR, ()))
        checks.insert(0, self)
        setattr(endpoint, CHECKS_ATTR, checks)
        return endpoint

    def __repr__(self) -> str:
        return f"AuthCheck({self.name})"


def ignore(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """Skip every check for ``endpoint``, including checks set on its group."""

    setattr(endpoint, IGNORE_ATTR, True)
    return endpoint


def is_ignored(endpoint: Any) -> bool:
    return bool(getattr(endpoint, IGNORE_ATTR, False))


def endpoint_checks(endpoint: Any) -> list[AuthCheck]:
    return list(getattr(endpoint, CHECKS_ATTR, ()))


def run_checks(endpoint: Any, manager: "StpManager") -> None:
    """Run the checks attached to ``endpoint``; the first failure propagates."""

    if is_ignored(endpoint):
        return
    for check in endpoint_checks(endpoint):
        logger.debug("Running endpoint check", extra={"check": check.name})
        check.run(manager)


def guard_routes(routes: Iterable[Any], *checks: AuthCheck) -> list[Any]:
    """Apply ``checks`` ahead of each route's own checks (group-level checks)."""

    guarded = list(routes)
    for route in guarded:
        nested = getattr(route, "routes", None)
        if nested:
            guard_routes(nested, *checks)
            continue
        endpoint = getattr(route, "endpoint", None)
        if endpoint is None:
            continue
        setattr(endpoint, CHECKS_ATTR, list(checks) + endpoint_checks(endpoint))
    return guarded


def _mode(mode: Mode | str) -> Mode:
    return mode if isinstance(mode, Mode) else Mode(str(mode).upper())


def check_login(type: str = DEFAULT_LOGIN_TYPE) -> AuthCheck:
    return AuthCheck(f"login[{type}]", lambda manager: manager.get(type).check_login())


def check_role(*roles: str, mode: Mode | str = Mode.AND, type: str = DEFAULT_LOGIN_TYPE) -> AuthCheck:
    mode = _mode(mode)

    def run(manager: "StpManager") -> None:
        stp = manager.get(type)
        if mode is Mode.AND:
            stp.check_role_and(*roles)
        else:
            stp.check_role_or(*roles)

    return AuthCheck(f"role{list(roles)}[{mode.value}]", run)


def check_permission(
    *permissions: str,
    mode: Mode | str = Mode.AND,
    or_role: Sequence[str] | str = (),
    type: str = DEFAULT_LOGIN_TYPE,
) -> AuthCheck:
    """Require ``permissions``; failing that, any ``or_role`` entry lets the request through.

    An ``or_role`` entry written as ``"admin, manager"`` requires all of the
    listed roles.
    """

    mode = _mode(mode)
    role_entries = [or_role] if isinstance(or_role, str) else list(or_role)

    def run(manager: "StpManager") -> None:
        stp = manager.get(type)
        try:
            if mode is Mode.AND:
                stp.check_permission_and(*permissions)
            else:
                stp.check_permission_or(*permissions)
        except NotPermissionError:
            for entry in role_entries:
                required = [role.strip() for role in entry.split(",") if role.strip()]
                if required and all(stp.has_role(role) for role in required):
                    return
            raise

    return AuthCheck(f"permission{list(permissions)}[{mode.value}]", run)


def check_safe(service: str = DEFAULT_SAFE_SERVICE, type: str = DEFAULT_LOGIN_TYPE) -> AuthCheck:
    return AuthCheck(f"safe[{service}]", lambda manager: manager.get(type).check_safe(service))


def check_http_basic(account: str | None = None, realm: str | None = None) -> AuthCheck:
    def run(manager: "StpManager") -> None:
        http_auth.check_http_basic(
            get_context(),
            account or manager.config.http_basic,
            realm or manager.config.http_digest_realm,
        )

    return AuthCheck("http-basic", run)


def check_http_digest(value: str, realm: str | None = None) -> AuthCheck:
    def run(manager: "StpManager") -> None:
        http_auth.check_http_digest(get_context(), value, realm or manager.config.http_digest_realm)

    return AuthCheck("http-digest", run)


def check_disable(
    *services: str,
    level: int = DEFAULT_DISABLE_LEVEL,
    type: str = DEFAULT_LOGIN_TYPE,
) -> AuthCheck:
    def run(manager: "StpManager") -> None:
        stp = manager.get(type)
        stp.check_disable(stp.get_login_id(), *services, level=level)

    return AuthCheck(f"disable{list(services)}", run)


def check_or(*checks: AuthCheck) -> AuthCheck:
    """Pass when any of ``checks`` passes; otherwise raise the first failure."""

    if not checks:
        raise ValueError("check_or needs at least one check.")

    def run(manager: "StpManager") -> None:
        failures: list[AuthError] = []
        for check in checks:
            try:
                check.run(manager)
            except AuthError as exc:
                failures.append(exc)
                continue
            return
        raise failures[0]

    return AuthCheck(f"or{[check.name for check in checks]}", run)
