"""In-memory key/value store with per-key expiry used for tokens and sessions."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

__all__ = ["NEVER_EXPIRE", "NOT_VALUE_EXPIRE", "TokenStore"]

logger = logging.getLogger(__name__)

NEVER_EXPIRE = -1
NOT_VALUE_EXPIRE = -2


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class TokenStore:
    """Thread-safe store mapping string keys to values with optional TTLs.

    A timeout of ``-1`` keeps the key forever. A timeout of ``0`` or below
    ``-1`` means the value is not stored at all.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}
        self._clock = clock or time.time

    # ------------------------------------------------------------------ Public API

    def now(self) -> float:
        """Current time in seconds according to the store clock."""

        return self._clock()

    def get(self, key: str) -> Any:
        """Return the live value for ``key`` or None."""

        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    def set(self, key: str, value: Any, timeout: int) -> None:
        """Store ``value`` for ``timeout`` seconds."""

        if timeout == 0 or timeout < NEVER_EXPIRE:
            return
        with self._lock:
            self._data[key] = _Entry(value=value, expires_at=self._expiry(timeout))

    def update(self, key: str, value: Any) -> None:
        """Replace the value of a live key while keeping its remaining TTL."""

        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return
            entry.value = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_timeout(self, key: str) -> int:
        """Remaining seconds for ``key``; ``-1`` permanent, ``-2`` missing."""

        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return NOT_VALUE_EXPIRE
            if entry.expires_at is None:
                return NEVER_EXPIRE
            return max(1, int(round(entry.expires_at - self._clock())))

    def update_timeout(self, key: str, timeout: int) -> None:
        """Reset the TTL of a live key."""

        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return
            if timeout == 0 or timeout < NEVER_EXPIRE:
                self._data.pop(key, None)
                return
            entry.expires_at = self._expiry(timeout)

    # Object variants keep the API of a serializing backend; values are stored as is.

    def get_object(self, key: str) -> Any:
        return self.get(key)

    def set_object(self, key: str, value: Any, timeout: int) -> None:
        self.set(key, value, timeout)

    def update_object(self, key: str, value: Any) -> None:
        self.update(key, value)

    def delete_object(self, key: str) -> None:
        self.delete(key)

    def search(self, prefix: str, keyword: str = "", start: int = 0, size: int = -1) -> list[str]:
        """Return live keys starting with ``prefix`` and containing ``keyword``."""

        with self._lock:
            keys = sorted(
                key
                for key in list(self._data)
                if key.startswith(prefix) and keyword in key and self._live_entry(key) is not None
            )
        if start < 0:
            start = 0
        if size < 0:
            return keys[start:]
        return keys[start : start + size]

    def purge_expired(self) -> int:
        """Drop expired keys and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, entry in self._data.items()
                if entry.expires_at is not None and entry.expires_at <= now
            ]
            for key in expired:
                del self._data[key]
        if expired:
            logger.debug("Purged expired keys", extra={"count": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._data) if self._live_entry(key) is not None)

    # ------------------------------------------------------------------ Internal helpers

    def _expiry(self, timeout: int) -> float | None:
        if timeout == NEVER_EXPIRE:
            return None
        return self._clock() + timeout

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry
