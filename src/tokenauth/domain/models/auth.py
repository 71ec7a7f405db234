"""Pydantic models describing logged-in terminals and token state."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Terminal(BaseModel):
    """One logged-in device of an account."""

    model_config = ConfigDict(populate_by_name=True)

    index: int
    token_value: str = Field(alias="tokenValue")
    device: str
    create_time: int = Field(alias="createTime")
    extra: dict[str, Any] = Field(default_factory=dict)


class TokenInfo(BaseModel):
    """Snapshot of the token carried by the current request."""

    model_config = ConfigDict(populate_by_name=True)

    token_name: str = Field(alias="tokenName")
    token_value: str | None = Field(default=None, alias="tokenValue")
    is_login: bool = Field(alias="isLogin")
    login_id: Any = Field(default=None, alias="loginId")
    login_type: str = Field(alias="loginType")
    token_timeout: int = Field(alias="tokenTimeout")
    session_timeout: int = Field(alias="sessionTimeout")
    token_session_timeout: int = Field(alias="tokenSessionTimeout")
    token_active_timeout: int = Field(alias="tokenActiveTimeout")
    login_device: str | None = Field(default=None, alias="loginDevice")
    tag: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
