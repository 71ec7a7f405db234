"""Token value generators for the supported token styles."""

from __future__ import annotations

import secrets
import string
import uuid

_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def create_token(style: str) -> str:
    """Return a fresh token value in ``style``."""

    if style == "uuid":
        return str(uuid.uuid4())
    if style == "simple-uuid":
        return uuid.uuid4().hex
    if style == "random-32":
        return random_string(32)
    if style == "random-64":
        return random_string(64)
    if style == "random-128":
        return random_string(128)
    if style == "tik":
        return random_string(2) + "_" + random_string(14) + "__"
    raise ValueError(f"Unsupported token style '{style}'.")
