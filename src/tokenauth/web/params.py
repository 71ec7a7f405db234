"""Request parameter access for endpoints.

The interceptor merges the query string, form fields and a JSON object body
into the bound request context; endpoints read from there.
"""

from __future__ import annotations

from typing import Any

from tokenauth.domain.context import get_context

__all__ = ["ParamError", "int_param", "optional_param", "required_param"]


class ParamError(ValueError):
    """A request parameter is missing or malformed."""


def optional_param(name: str, default: Any = None) -> Any:
    value = get_context().param(name)
    if value is None or value == "":
        return default
    return value


def required_param(name: str) -> Any:
    value = optional_param(name)
    if value is None:
        raise ParamError(f"Missing required parameter '{name}'")
    return value


def int_param(name: str) -> int:
    value = required_param(name)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ParamError(f"Parameter '{name}' must be an integer") from exc
