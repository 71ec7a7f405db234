"""Session objects bound to an account, a token, or a custom id."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from tokenauth.domain.models.auth import Terminal
from tokenauth.domain.store import TokenStore

__all__ = ["Session"]

logger = logging.getLogger(__name__)

ACCOUNT_SESSION = "Account-Session"
TOKEN_SESSION = "Token-Session"
CUSTOM_SESSION = "Custom-Session"


class Session:
    """Mutable key/value bag persisted in a ``TokenStore``.

    Writes go straight back to the store so a session fetched again by id
    sees the same data.
    """

    def __init__(
        self,
        session_id: str,
        store: TokenStore,
        *,
        type: str = ACCOUNT_SESSION,
        login_type: str = "login",
        login_id: Any = None,
        token: str | None = None,
    ) -> None:
        self.id = session_id
        self.type = type
        self.login_type = login_type
        self.login_id = login_id
        self.token = token
        self.create_time = int(time.time() * 1000)
        self._store = store
        self._lock = threading.RLock()
        self._data: dict[str, Any] = {}
        self._terminals: list[Terminal] = []

    # ------------------------------------------------------------------ Values

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> "Session":
        with self._lock:
            self._data[key] = value
        self.update()
        return self

    def set_default(self, key: str, value: Any) -> Any:
        """Store ``value`` only when ``key`` is absent and return the stored value."""

        with self._lock:
            if key not in self._data:
                self._data[key] = value
                self.update()
            return self._data[key]

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def delete(self, key: str) -> "Session":
        with self._lock:
            self._data.pop(key, None)
        self.update()
        return self

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        self.update()

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._data)

    # ------------------------------------------------------------------ Terminals

    @property
    def terminals(self) -> list[Terminal]:
        with self._lock:
            return list(self._terminals)

    def add_terminal(self, token_value: str, device: str, extra: dict[str, Any] | None = None) -> Terminal:
        with self._lock:
            index = max((t.index for t in self._terminals), default=0) + 1
            terminal = Terminal(
                index=index,
                token_value=token_value,
                device=device,
                create_time=int(time.time() * 1000),
                extra=extra or {},
            )
            self._terminals.append(terminal)
        self.update()
        return terminal

    def remove_terminal(self, token_value: str) -> Terminal | None:
        with self._lock:
            for position, terminal in enumerate(self._terminals):
                if terminal.token_value == token_value:
                    del self._terminals[position]
                    break
            else:
                return None
        self.update()
        return terminal

    def get_terminal(self, token_value: str) -> Terminal | None:
        with self._lock:
            for terminal in self._terminals:
                if terminal.token_value == token_value:
                    return terminal
        return None

    def terminals_by_device(self, device: str | None = None) -> list[Terminal]:
        with self._lock:
            return [t for t in self._terminals if device is None or t.device == device]

    # ------------------------------------------------------------------ Persistence

    def timeout(self) -> int:
        return self._store.get_timeout(self.id)

    def update_timeout(self, timeout: int) -> None:
        self._store.update_timeout(self.id, timeout)

    def update_min_timeout(self, timeout: int) -> None:
        """Extend the session TTL so it outlives a token of ``timeout`` seconds."""

        current = self.timeout()
        if current == -1:
            return
        if timeout == -1 or current < timeout:
            self.update_timeout(timeout)

    def update(self) -> None:
        self._store.update_object(self.id, self)

    def logout(self) -> None:
        """Remove the session from the store."""

        self._store.delete_object(self.id)
        logger.debug("Session removed", extra={"session_id": self.id, "session_type": self.type})

    def logout_if_idle(self) -> bool:
        """Remove an account session that has no terminals left."""

        with self._lock:
            idle = not self._terminals
        if idle:
            self.logout()
        return idle

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Session(id={self.id!r}, type={self.type!r}, keys={self.keys()!r})"
