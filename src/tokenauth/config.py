"""Configuration for the tokenauth demo server.

Settings come from the environment (optionally a ``.env`` file) and can be
overridden from the command line in ``tokenauth.main``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "AuthConfig",
    "ConfigError",
    "DEMO_PROFILES",
    "LOG_LEVELS",
    "Settings",
    "default_accounts_path",
    "parse_scopes",
]

DEMO_PROFILES = ("all", "quickstart", "annotation", "interceptor", "kickout", "session")

TokenStyle = Literal["uuid", "simple-uuid", "random-32", "random-64", "random-128", "tik"]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    """Raised when configuration values cannot be parsed."""


def default_accounts_path() -> Path:
    """Return the bundled demo accounts file."""

    return Path(__file__).resolve().parent / "data" / "accounts.yaml"


class AuthConfig(BaseModel):
    """Token behaviour shared by every account system."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    token_name: str = "satoken"
    timeout: int = 2592000
    active_timeout: int = -1
    is_concurrent: bool = True
    is_share: bool = False
    max_login_count: int = 12
    token_style: TokenStyle = "uuid"
    token_prefix: str | None = None
    is_read_header: bool = True
    is_read_cookie: bool = True
    is_read_body: bool = True
    is_write_header: bool = False
    auto_renew: bool = True
    default_device: str = "default-device"
    http_basic: str = ""
    http_digest_realm: str = "Sa-Token"
    cookie_path: str = "/"
    cookie_http_only: bool = False
    cookie_same_site: Literal["lax", "strict", "none"] = "lax"
    data_refresh_period: int = 30

    @field_validator("token_name")
    @classmethod
    def _token_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("token_name must not be blank")
        return value.strip()

    @field_validator("timeout", "active_timeout", "max_login_count", "data_refresh_period")
    @classmethod
    def _positive_or_minus_one(cls, value: int) -> int:
        if value == 0 or value < -1:
            raise ValueError("must be a positive number of seconds or -1")
        return value

    @classmethod
    def from_env(cls, prefix: str = "SA_TOKEN_") -> "AuthConfig":
        """Build a config from ``SA_TOKEN_<FIELD>`` environment overrides."""

        overrides: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                overrides[name] = _parse_bool(raw, f"{prefix}{name.upper()}")
            else:
                overrides[name] = raw
        try:
            return cls(**overrides)
        except ValidationError as exc:
            raise ConfigError(f"Invalid Sa-Token configuration: {exc}") from exc

    def describe(self) -> str:
        """One-line rendering for the startup banner."""

        parts = [f"{key}={value!r}" for key, value in self.model_dump().items()]
        return "AuthConfig(" + ", ".join(parts) + ")"


class Settings(BaseModel):
    """Server settings for a demo process."""

    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    demo: str = "all"
    log_level: str = "INFO"
    accounts_path: Path = Field(default_factory=default_accounts_path)
    mcp_enabled: bool = False
    mcp_token: str | None = None
    mcp_scopes: list[str] = Field(default_factory=list)
    mcp_public_url: str | None = None
    auth: AuthConfig = Field(default_factory=AuthConfig)

    @field_validator("demo")
    @classmethod
    def _known_demo(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in DEMO_PROFILES:
            raise ValueError(f"unknown demo '{value}', expected one of {', '.join(DEMO_PROFILES)}")
        return normalized

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}', expected one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the process environment and ``.env``."""

        load_dotenv()
        values: dict[str, Any] = {
            "host": os.getenv("TOKENAUTH_HOST", "0.0.0.0"),
            "port": os.getenv("TOKENAUTH_PORT", "8080"),
            "demo": os.getenv("TOKENAUTH_DEMO", "all"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "mcp_enabled": _parse_bool(os.getenv("TOKENAUTH_MCP", "0"), "TOKENAUTH_MCP"),
            "mcp_token": os.getenv("MCP_AUTH_TOKEN") or os.getenv("MCP_ACCESS_TOKEN"),
            "mcp_scopes": parse_scopes(os.getenv("MCP_AUTH_SCOPES")),
            "mcp_public_url": os.getenv("MCP_PUBLIC_URL"),
            "auth": AuthConfig.from_env(),
        }
        accounts_path = os.getenv("TOKENAUTH_ACCOUNTS_PATH")
        if accounts_path:
            values["accounts_path"] = Path(accounts_path)
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid server configuration: {exc}") from exc


def parse_scopes(raw: str | None) -> list[str]:
    if not raw:
        return []
    scopes: list[str] = []
    for part in raw.replace(";", ",").split(","):
        scope = part.strip()
        if scope:
            scopes.append(scope)
    return scopes


def _parse_bool(raw: str, name: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{raw}'")
