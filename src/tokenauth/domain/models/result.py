"""Uniform JSON envelope returned by every endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

CODE_SUCCESS = 200
CODE_ERROR = 500


class Result(dict):
    """``{"code", "msg", "data"}`` mapping with chainable extra fields."""

    def __init__(self, code: int = CODE_SUCCESS, msg: str = "ok", data: Any = None) -> None:
        super().__init__(code=code, msg=msg, data=data)

    @classmethod
    def ok(cls, msg: str = "ok") -> "Result":
        return cls(CODE_SUCCESS, msg)

    @classmethod
    def error(cls, msg: str = "error", code: int = CODE_ERROR) -> "Result":
        return cls(code, msg)

    @classmethod
    def of_data(cls, data: Any) -> "Result":
        return cls(CODE_SUCCESS, "ok", data)

    @property
    def code(self) -> int:
        return self["code"]

    @property
    def msg(self) -> str:
        return self["msg"]

    @property
    def data(self) -> Any:
        return self["data"]

    def set(self, key: str, value: Any) -> "Result":
        self[key] = value
        return self

    def set_data(self, data: Any) -> "Result":
        self["data"] = data
        return self

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-safe copy, rendering models by their aliases."""

        return to_jsonable_python(self, fallback=_fallback, by_alias=True)


def _fallback(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return str(value)
