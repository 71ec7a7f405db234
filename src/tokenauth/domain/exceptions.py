"""Error taxonomy for token authentication."""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthError",
    "BackResult",
    "DisableServiceError",
    "NotHttpBasicAuthError",
    "NotHttpDigestAuthError",
    "NotLoginError",
    "NotPermissionError",
    "NotRoleError",
    "NotSafeError",
    "StopMatch",
]


class AuthError(Exception):
    """Base class for authentication and authorization failures."""

    code: int = 10000
    status_code: int = 401

    def __init__(self, message: str, *, login_type: str = "login") -> None:
        super().__init__(message)
        self.message = message
        self.login_type = login_type

    def headers(self) -> dict[str, str]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "msg": self.message, "data": None}


class NotLoginError(AuthError):
    """The request carries no valid login for the account system."""

    NOT_TOKEN = "-1"
    INVALID_TOKEN = "-2"
    TOKEN_TIMEOUT = "-3"
    BE_REPLACED = "-4"
    KICK_OUT = "-5"
    TOKEN_FREEZE = "-6"
    NO_PREFIX = "-7"

    MESSAGES = {
        NOT_TOKEN: "No token was provided",
        INVALID_TOKEN: "Token is invalid",
        TOKEN_TIMEOUT: "Token has expired",
        BE_REPLACED: "Token has been replaced by a login on another device",
        KICK_OUT: "Token has been kicked offline",
        TOKEN_FREEZE: "Token has been frozen after inactivity",
        NO_PREFIX: "Token is missing the required prefix",
    }

    CODES = {
        NOT_TOKEN: 11011,
        INVALID_TOKEN: 11012,
        TOKEN_TIMEOUT: 11013,
        BE_REPLACED: 11014,
        KICK_OUT: 11015,
        TOKEN_FREEZE: 11016,
        NO_PREFIX: 11017,
    }

    def __init__(self, type: str, *, token: str | None = None, login_type: str = "login") -> None:
        message = self.MESSAGES.get(type, "Not logged in")
        if token:
            message = f"{message}: {token}"
        super().__init__(message, login_type=login_type)
        self.type = type
        self.token = token
        self.code = self.CODES.get(type, 11010)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["type"] = self.type
        payload["loginType"] = self.login_type
        return payload


class NotRoleError(AuthError):
    """The current account lacks a required role."""

    code = 11041
    status_code = 403

    def __init__(self, role: str, *, login_type: str = "login") -> None:
        super().__init__(f"Missing role: {role}", login_type=login_type)
        self.role = role


class NotPermissionError(AuthError):
    """The current account lacks a required permission."""

    code = 11051
    status_code = 403

    def __init__(self, permission: str, *, login_type: str = "login") -> None:
        super().__init__(f"Missing permission: {permission}", login_type=login_type)
        self.permission = permission


class DisableServiceError(AuthError):
    """The account is banned from a service."""

    code = 11061
    status_code = 403

    def __init__(
        self,
        service: str,
        level: int,
        limit_level: int,
        disable_time: int,
        *,
        login_type: str = "login",
    ) -> None:
        super().__init__(f"Service '{service}' is disabled for this account", login_type=login_type)
        self.service = service
        self.level = level
        self.limit_level = limit_level
        self.disable_time = disable_time

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["service"] = self.service
        payload["disableTime"] = self.disable_time
        return payload


class NotSafeError(AuthError):
    """Second-level authentication has not been completed for a service."""

    code = 11071
    status_code = 403

    def __init__(self, service: str, token: str | None = None, *, login_type: str = "login") -> None:
        super().__init__(f"Second-level authentication required for '{service}'", login_type=login_type)
        self.service = service
        self.token = token


class NotHttpBasicAuthError(AuthError):
    """HTTP Basic credentials are missing or wrong."""

    code = 10311

    def __init__(self, realm: str) -> None:
        super().__init__("HTTP Basic authentication failed")
        self.realm = realm

    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": f'Basic Realm="{self.realm}"'}


class NotHttpDigestAuthError(AuthError):
    """HTTP Digest credentials are missing or wrong."""

    code = 10312

    def __init__(self, challenge: str) -> None:
        super().__init__("HTTP Digest authentication failed")
        self.challenge = challenge

    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": self.challenge}


class StopMatch(Exception):
    """Skip the remaining route rules for the current request."""


class BackResult(Exception):
    """Finish the request immediately with ``result`` as the response body."""

    def __init__(self, result: Any = None) -> None:
        super().__init__("route rules returned early")
        self.result = result
