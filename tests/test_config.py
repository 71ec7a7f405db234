"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from tokenauth.config import AuthConfig, ConfigError, Settings, parse_scopes

ENV_NAMES = [
    "TOKENAUTH_HOST",
    "TOKENAUTH_PORT",
    "TOKENAUTH_DEMO",
    "TOKENAUTH_MCP",
    "TOKENAUTH_ACCOUNTS_PATH",
    "LOG_LEVEL",
    "MCP_AUTH_TOKEN",
    "MCP_ACCESS_TOKEN",
    "MCP_AUTH_SCOPES",
    "MCP_PUBLIC_URL",
    "SA_TOKEN_TIMEOUT",
    "SA_TOKEN_IS_CONCURRENT",
    "SA_TOKEN_TOKEN_STYLE",
    "SA_TOKEN_TOKEN_NAME",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("tokenauth.config.load_dotenv", lambda: False)


def test_defaults() -> None:
    settings = Settings.from_env()

    assert settings.port == 8080
    assert settings.demo == "all"
    assert settings.mcp_enabled is False
    assert settings.accounts_path.name == "accounts.yaml"
    assert settings.auth.token_name == "satoken"
    assert settings.auth.timeout == 2592000
    assert settings.auth.active_timeout == -1
    assert settings.auth.cookie_same_site == "lax"
    assert settings.auth.data_refresh_period == 30


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TOKENAUTH_PORT", "9090")
    monkeypatch.setenv("TOKENAUTH_DEMO", " Kickout ")
    monkeypatch.setenv("TOKENAUTH_MCP", "yes")
    monkeypatch.setenv("TOKENAUTH_ACCOUNTS_PATH", str(tmp_path / "a.yaml"))
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MCP_ACCESS_TOKEN", "secret")
    monkeypatch.setenv("MCP_AUTH_SCOPES", "a; b,,c")
    monkeypatch.setenv("SA_TOKEN_TIMEOUT", "60")
    monkeypatch.setenv("SA_TOKEN_IS_CONCURRENT", "false")
    monkeypatch.setenv("SA_TOKEN_TOKEN_STYLE", "tik")

    settings = Settings.from_env()

    assert settings.port == 9090
    assert settings.demo == "kickout"
    assert settings.mcp_enabled is True
    assert settings.accounts_path == tmp_path / "a.yaml"
    assert settings.log_level == "DEBUG"
    assert settings.mcp_token == "secret"
    assert settings.mcp_scopes == ["a", "b", "c"]
    assert settings.auth.timeout == 60
    assert settings.auth.is_concurrent is False
    assert settings.auth.token_style == "tik"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("TOKENAUTH_PORT", "not-a-port"),
        ("TOKENAUTH_PORT", "70000"),
        ("TOKENAUTH_DEMO", "unknown"),
        ("TOKENAUTH_MCP", "maybe"),
        ("SA_TOKEN_TIMEOUT", "0"),
        ("SA_TOKEN_TOKEN_STYLE", "guid"),
        ("SA_TOKEN_TOKEN_NAME", "   "),
        ("LOG_LEVEL", "verbose"),
        ("SA_TOKEN_COOKIE_SAME_SITE", "sometimes"),
        ("SA_TOKEN_DATA_REFRESH_PERIOD", "0"),
    ],
)
def test_invalid_values_raise_config_error(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        Settings.from_env()


def test_auth_config_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError):
        AuthConfig(tokenName="x")


def test_describe_lists_fields() -> None:
    assert AuthConfig(timeout=10).describe().startswith("AuthConfig(token_name='satoken', timeout=10")


def test_parse_scopes() -> None:
    assert parse_scopes(None) == []
    assert parse_scopes(" tokenauth:admin ; extra ") == ["tokenauth:admin", "extra"]
