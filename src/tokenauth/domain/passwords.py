"""bcrypt password hashing helpers."""

from __future__ import annotations

import bcrypt

__all__ = ["check_password", "hash_password", "is_bcrypt_hash"]

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    raw = password.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {_MAX_PASSWORD_BYTES} bytes for bcrypt.")
    return raw


def hash_password(password: str, rounds: int = 10) -> str:
    """Return a bcrypt hash with a freshly generated salt."""

    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def is_bcrypt_hash(value: str) -> bool:
    return isinstance(value, str) and value.startswith(_BCRYPT_PREFIXES) and len(value) == 60


def check_password(password: str, hashed: str) -> bool:
    """True when ``password`` matches ``hashed``; malformed hashes never match."""

    if not is_bcrypt_hash(hashed):
        return False
    try:
        return bcrypt.checkpw(_encode(password), hashed.encode("ascii"))
    except ValueError:
        return False
