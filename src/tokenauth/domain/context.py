"""Per-request context the auth logic reads tokens from and writes cookies to."""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

__all__ = [
    "RequestContext",
    "bind_context",
    "current_context",
    "get_context",
]


@dataclass
class RequestContext:
    """Framework-neutral view of the request being served."""

    method: str = "GET"
    path: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    storage: dict[str, Any] = field(default_factory=dict)
    response_headers: dict[str, str] = field(default_factory=dict)
    response_cookies: list[dict[str, Any]] = field(default_factory=list)

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def param(self, name: str) -> Any:
        return self.params.get(name)

    def add_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int,
        path: str = "/",
        http_only: bool = False,
        same_site: str = "lax",
    ) -> None:
        """Queue a cookie as ``Response.set_cookie`` arguments; ``max_age < 0`` means a browser-session cookie."""

        self.response_cookies.append(
            {
                "key": name,
                "value": value,
                "max_age": max_age if max_age >= 0 else None,
                "path": path,
                "httponly": http_only,
                "samesite": same_site,
            }
        )

    def delete_cookie(self, name: str, *, path: str = "/", same_site: str = "lax") -> None:
        self.add_cookie(name, "", max_age=0, path=path, same_site=same_site)


_current: ContextVar[RequestContext | None] = ContextVar("tokenauth_request", default=None)


def current_context() -> RequestContext | None:
    """Return the bound request context, if any."""

    return _current.get()


def get_context() -> RequestContext:
    """Return the bound request context or an empty placeholder."""

    return _current.get() or RequestContext()


@contextlib.contextmanager
def bind_context(context: RequestContext) -> Iterator[RequestContext]:
    """Bind ``context`` for the duration of the ``with`` block."""

    reset_token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(reset_token)
