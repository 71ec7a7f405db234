"""Login state, sessions, kickout, roles/permissions, safe mode and service bans.

``StpLogic`` is the per-account-system API (``login``, ``logout``,
``kickout`` ...). ``StpManager`` owns the shared store and config and hands
out one ``StpLogic`` per login type.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable

from tokenauth.config import AuthConfig
from tokenauth.domain.context import current_context, get_context
from tokenauth.domain.exceptions import (
    DisableServiceError,
    NotLoginError,
    NotPermissionError,
    NotRoleError,
    NotSafeError,
)
from tokenauth.domain.models.auth import Terminal, TokenInfo
from tokenauth.domain.permissions import PermissionProvider, SessionPermissionProvider, has_element
from tokenauth.domain.session import ACCOUNT_SESSION, CUSTOM_SESSION, TOKEN_SESSION, Session
from tokenauth.domain.store import NEVER_EXPIRE, NOT_VALUE_EXPIRE, TokenStore
from tokenauth.domain.token_factory import create_token

__all__ = [
    "DEFAULT_LOGIN_TYPE",
    "DEFAULT_SAFE_SERVICE",
    "StpLogic",
    "StpManager",
    "get_default_manager",
    "set_default_manager",
]

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TYPE = "login"
DEFAULT_SAFE_SERVICE = "important"
DEFAULT_DISABLE_SERVICE = "login"
DEFAULT_DISABLE_LEVEL = 1

_ABNORMAL_VALUES = {NotLoginError.BE_REPLACED, NotLoginError.KICK_OUT}


class StpLogic:
    """Token authentication API for one account system (login type)."""

    def __init__(self, login_type: str, manager: "StpManager") -> None:
        self.login_type = login_type
        self._manager = manager

    @property
    def config(self) -> AuthConfig:
        return self._manager.config

    @property
    def store(self) -> TokenStore:
        return self._manager.store

    # ------------------------------------------------------------------ Keys

    def _key(self, kind: str, *parts: Any) -> str:
        suffix = ":".join(str(part) for part in parts)
        return f"{self.config.token_name}:{self.login_type}:{kind}:{suffix}"

    def _token_key(self, token: str) -> str:
        return self._key("token", token)

    def _session_key(self, login_id: Any) -> str:
        return self._key("session", login_id)

    def _token_session_key(self, token: str) -> str:
        return self._key("token-session", token)

    def _last_active_key(self, token: str) -> str:
        return self._key("last-active", token)

    def _safe_key(self, service: str, token: str) -> str:
        return self._key("safe", service, token)

    def _disable_key(self, service: str, login_id: Any) -> str:
        return self._key("disable", service, login_id)

    def _custom_session_key(self, session_id: str) -> str:
        return f"{self.config.token_name}:custom:session:{session_id}"

    def _just_created_key(self) -> str:
        return f"{self.config.token_name}:{self.login_type}:just-created"

    # ------------------------------------------------------------------ Token reading

    def get_token_name(self) -> str:
        return self.config.token_name

    def _read_raw_token(self) -> str | None:
        context = get_context()
        name = self.config.token_name
        value: Any = None
        if self.config.is_read_header:
            value = context.header(name)
        if not value and self.config.is_read_cookie:
            value = context.cookies.get(name)
        if not value and self.config.is_read_body:
            value = context.param(name)
        if not value:
            return None
        return str(value).strip() or None

    def _strip_prefix(self, raw: str) -> str | None:
        prefix = self.config.token_prefix
        if not prefix:
            return raw
        expected = prefix + " "
        if raw.startswith(expected):
            return raw[len(expected) :].strip() or None
        return None

    def get_token_value(self) -> str | None:
        """Token carried by the current request, or created by ``login`` in it."""

        created = get_context().storage.get(self._just_created_key())
        if created:
            return created
        raw = self._read_raw_token()
        if raw is None:
            return None
        return self._strip_prefix(raw)

    # ------------------------------------------------------------------ Login

    def login(
        self,
        login_id: Any,
        device: str | None = None,
        *,
        timeout: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> str:
        """Log ``login_id`` in on ``device`` and return the token value."""

        if login_id is None or str(login_id) == "" or str(login_id) in _ABNORMAL_VALUES:
            raise ValueError(f"Invalid login id: {login_id!r}")
        self.check_disable(login_id, DEFAULT_DISABLE_SERVICE)

        device = device or self.config.default_device
        timeout = timeout if timeout is not None else self.config.timeout

        with self._manager.lock:
            token = self._distribute_token(login_id, device)
            session = self.get_session_by_login_id(login_id, create=True, timeout=timeout)
            session.update_min_timeout(timeout)
            if session.get_terminal(token) is None:
                session.add_terminal(token, device, extra)
            self.store.set(self._token_key(token), login_id, timeout)
            self._set_last_active(token)
            self._enforce_max_login_count(login_id, session)

        self._write_token_to_context(token, timeout)
        logger.info(
            "Account logged in",
            extra={"login_type": self.login_type, "login_id": login_id, "device": device},
        )
        return token

    def _distribute_token(self, login_id: Any, device: str) -> str:
        if not self.config.is_concurrent:
            self.replaced(login_id, device)
        elif self.config.is_share:
            for token in reversed(self.get_token_value_list_by_login_id(login_id, device)):
                if self.get_login_id_by_token(token) is not None:
                    return token
        while True:
            token = create_token(self.config.token_style)
            if self.store.get(self._token_key(token)) is None:
                return token

    def _enforce_max_login_count(self, login_id: Any, session: Session) -> None:
        limit = self.config.max_login_count
        if limit == -1:
            return
        terminals = session.terminals
        overflow = len(terminals) - limit
        for terminal in terminals[: max(0, overflow)]:
            session.remove_terminal(terminal.token_value)
            self._clear_token(terminal.token_value)
            logger.info(
                "Oldest terminal logged out over max login count",
                extra={"login_type": self.login_type, "login_id": login_id, "device": terminal.device},
            )

    def _write_token_to_context(self, token: str, timeout: int) -> None:
        context = current_context()
        if context is None:
            return
        context.storage[self._just_created_key()] = token
        if self.config.is_read_cookie:
            context.add_cookie(
                self.config.token_name,
                token,
                max_age=timeout,
                path=self.config.cookie_path,
                http_only=self.config.cookie_http_only,
                same_site=self.config.cookie_same_site,
            )
        if self.config.is_write_header:
            context.response_headers[self.config.token_name] = token

    # ------------------------------------------------------------------ Login state

    def get_login_id(self) -> Any:
        """Login id of the current request; raises ``NotLoginError`` otherwise."""

        token = self.get_token_value()
        if token is None:
            if self._read_raw_token() is not None:
                raise NotLoginError(NotLoginError.NO_PREFIX, login_type=self.login_type)
            raise NotLoginError(NotLoginError.NOT_TOKEN, login_type=self.login_type)
        value = self.store.get(self._token_key(token))
        if value is None:
            raise NotLoginError(NotLoginError.INVALID_TOKEN, token=token, login_type=self.login_type)
        if str(value) in _ABNORMAL_VALUES:
            raise NotLoginError(str(value), token=token, login_type=self.login_type)
        self.check_active_timeout(token)
        if self.config.auto_renew:
            self.update_last_active_to_now(token)
        return value

    def get_login_id_default_null(self) -> Any:
        try:
            return self.get_login_id()
        except NotLoginError:
            return None

    def get_login_id_as_string(self) -> str:
        return str(self.get_login_id())

    def is_login(self) -> bool:
        return self.get_login_id_default_null() is not None

    def check_login(self) -> None:
        self.get_login_id()

    def get_login_id_by_token(self, token: str | None) -> Any:
        """Login id bound to ``token``; None when unknown, kicked or replaced."""

        if not token:
            return None
        value = self.store.get(self._token_key(token))
        if value is None or str(value) in _ABNORMAL_VALUES:
            return None
        return value

    def get_token_timeout(self, token: str | None = None) -> int:
        token = token or self.get_token_value()
        if not token:
            return NOT_VALUE_EXPIRE
        return self.store.get_timeout(self._token_key(token))

    def get_session_timeout(self, login_id: Any = None) -> int:
        if login_id is None:
            login_id = self.get_login_id_default_null()
        if login_id is None:
            return NOT_VALUE_EXPIRE
        return self.store.get_timeout(self._session_key(login_id))

    def get_token_session_timeout(self, token: str | None = None) -> int:
        token = token or self.get_token_value()
        if not token:
            return NOT_VALUE_EXPIRE
        return self.store.get_timeout(self._token_session_key(token))

    def get_login_device(self) -> str | None:
        token = self.get_token_value()
        login_id = self.get_login_id_by_token(token)
        if login_id is None:
            return None
        session = self.get_session_by_login_id(login_id, create=False)
        terminal = session.get_terminal(token) if session else None
        return terminal.device if terminal else None

    def get_token_info(self) -> TokenInfo:
        login_id = self.get_login_id_default_null()
        token = self.get_token_value()
        return TokenInfo(
            token_name=self.config.token_name,
            token_value=token,
            is_login=login_id is not None,
            login_id=login_id,
            login_type=self.login_type,
            token_timeout=self.get_token_timeout(token),
            session_timeout=self.get_session_timeout(login_id) if login_id is not None else NOT_VALUE_EXPIRE,
            token_session_timeout=self.get_token_session_timeout(token),
            token_active_timeout=self.get_token_active_timeout(token),
            login_device=self.get_login_device(),
        )

    def get_terminal_list_by_login_id(self, login_id: Any, device: str | None = None) -> list[Terminal]:
        session = self.get_session_by_login_id(login_id, create=False)
        if session is None:
            return []
        return session.terminals_by_device(device)

    def get_token_value_list_by_login_id(self, login_id: Any, device: str | None = None) -> list[str]:
        if login_id is None:
            return []
        return [t.token_value for t in self.get_terminal_list_by_login_id(login_id, device)]

    def search_token_values(self, keyword: str = "", start: int = 0, size: int = -1) -> list[str]:
        prefix = self._key("token", "")
        return [key[len(prefix) :] for key in self.store.search(prefix, keyword, start, size)]

    # ------------------------------------------------------------------ Activity

    def _set_last_active(self, token: str) -> None:
        if self.config.active_timeout == -1:
            return
        self.store.set(self._last_active_key(token), self.store.now(), self.config.timeout)

    def update_last_active_to_now(self, token: str | None = None) -> None:
        token = token or self.get_token_value()
        if not token or self.config.active_timeout == -1:
            return
        key = self._last_active_key(token)
        if self.store.get(key) is None:
            self.store.set(key, self.store.now(), self.get_token_timeout(token))
        else:
            self.store.update(key, self.store.now())

    def get_token_active_timeout(self, token: str | None = None) -> int:
        if self.config.active_timeout == -1:
            return NEVER_EXPIRE
        token = token or self.get_token_value()
        last = self.store.get(self._last_active_key(token)) if token else None
        if last is None:
            return NOT_VALUE_EXPIRE
        remaining = self.config.active_timeout - int(self.store.now() - last)
        return remaining if remaining > 0 else NOT_VALUE_EXPIRE

    def check_active_timeout(self, token: str | None = None) -> None:
        """Raise ``TOKEN_FREEZE`` when the token sat idle past ``active_timeout``."""

        if self.config.active_timeout == -1:
            return
        token = token or self.get_token_value()
        if not token:
            return
        last = self.store.get(self._last_active_key(token))
        if last is None:
            return
        if self.store.now() - last > self.config.active_timeout:
            raise NotLoginError(NotLoginError.TOKEN_FREEZE, token=token, login_type=self.login_type)

    # ------------------------------------------------------------------ Sessions

    def get_session_by_login_id(
        self,
        login_id: Any,
        create: bool = True,
        *,
        timeout: int | None = None,
    ) -> Session | None:
        key = self._session_key(login_id)
        with self._manager.lock:
            session = self.store.get_object(key)
            if session is None and create:
                session = Session(
                    key,
                    self.store,
                    type=ACCOUNT_SESSION,
                    login_type=self.login_type,
                    login_id=login_id,
                )
                self.store.set_object(key, session, timeout if timeout is not None else self.config.timeout)
        return session

    def get_session(self, create: bool = True) -> Session | None:
        """Account session of the current login."""

        return self.get_session_by_login_id(self.get_login_id(), create)

    def get_token_session(self, create: bool = True) -> Session | None:
        """Session bound to the current token; requires a valid login."""

        self.check_login()
        token = self.get_token_value()
        key = self._token_session_key(token)
        with self._manager.lock:
            session = self.store.get_object(key)
            if session is None and create:
                session = Session(
                    key,
                    self.store,
                    type=TOKEN_SESSION,
                    login_type=self.login_type,
                    login_id=self.get_login_id_by_token(token),
                    token=token,
                )
                timeout = self.get_token_timeout(token)
                self.store.set_object(key, session, timeout if timeout != NOT_VALUE_EXPIRE else self.config.timeout)
        return session

    def get_session_by_session_id(self, session_id: str, create: bool = True) -> Session | None:
        """Custom session addressed by an arbitrary id."""

        key = self._custom_session_key(session_id)
        with self._manager.lock:
            session = self.store.get_object(key)
            if session is None and create:
                session = Session(key, self.store, type=CUSTOM_SESSION, login_type=self.login_type)
                self.store.set_object(key, session, self.config.timeout)
        return session

    # ------------------------------------------------------------------ Logout / kickout / replaced

    def logout(self, login_id: Any = None, device: str | None = None) -> None:
        """Log out the current token, or every terminal of ``login_id`` (on ``device``)."""

        if login_id is None:
            token = self.get_token_value()
            context = current_context()
            if context is not None:
                context.storage.pop(self._just_created_key(), None)
                if self.config.is_read_cookie:
                    context.delete_cookie(
                        self.config.token_name,
                        path=self.config.cookie_path,
                        same_site=self.config.cookie_same_site,
                    )
            if token:
                self.logout_by_token_value(token)
            return

        with self._manager.lock:
            session = self.get_session_by_login_id(login_id, create=False)
            if session is None:
                return
            for terminal in session.terminals_by_device(device):
                session.remove_terminal(terminal.token_value)
                self._clear_token(terminal.token_value)
            session.logout_if_idle()
        logger.info(
            "Account logged out",
            extra={"login_type": self.login_type, "login_id": login_id, "device": device},
        )

    def logout_by_token_value(self, token: str) -> None:
        with self._manager.lock:
            login_id = self.store.get(self._token_key(token))
            self._clear_token(token)
            if login_id is None or str(login_id) in _ABNORMAL_VALUES:
                return
            session = self.get_session_by_login_id(login_id, create=False)
            if session is not None:
                session.remove_terminal(token)
                session.logout_if_idle()
        logger.info(
            "Token logged out",
            extra={"login_type": self.login_type, "login_id": login_id},
        )

    def kickout(self, login_id: Any, device: str | None = None) -> None:
        """Mark every token of ``login_id`` (on ``device``) as kicked out."""

        self._mark_terminals(login_id, device, NotLoginError.KICK_OUT)
        logger.info(
            "Account kicked out",
            extra={"login_type": self.login_type, "login_id": login_id, "device": device},
        )

    def kickout_by_token_value(self, token: str) -> None:
        self._mark_token(token, NotLoginError.KICK_OUT)

    def replaced(self, login_id: Any, device: str | None = None) -> None:
        """Mark every token of ``login_id`` (on ``device``) as replaced by a new login."""

        self._mark_terminals(login_id, device, NotLoginError.BE_REPLACED)
        logger.info(
            "Account replaced",
            extra={"login_type": self.login_type, "login_id": login_id, "device": device},
        )

    def replaced_by_token_value(self, token: str) -> None:
        self._mark_token(token, NotLoginError.BE_REPLACED)

    def _mark_terminals(self, login_id: Any, device: str | None, marker: str) -> None:
        with self._manager.lock:
            session = self.get_session_by_login_id(login_id, create=False)
            if session is None:
                return
            for terminal in session.terminals_by_device(device):
                session.remove_terminal(terminal.token_value)
                self.store.update(self._token_key(terminal.token_value), marker)
                self.store.delete(self._last_active_key(terminal.token_value))
            session.logout_if_idle()

    def _mark_token(self, token: str, marker: str) -> None:
        with self._manager.lock:
            login_id = self.store.get(self._token_key(token))
            if login_id is None or str(login_id) in _ABNORMAL_VALUES:
                return
            self.store.update(self._token_key(token), marker)
            self.store.delete(self._last_active_key(token))
            session = self.get_session_by_login_id(login_id, create=False)
            if session is not None:
                session.remove_terminal(token)
                session.logout_if_idle()
        logger.info(
            "Token marked offline",
            extra={"login_type": self.login_type, "login_id": login_id, "type": marker},
        )

    def _clear_token(self, token: str) -> None:
        self.store.delete(self._token_key(token))
        self.store.delete(self._last_active_key(token))
        self.store.delete_object(self._token_session_key(token))

    # ------------------------------------------------------------------ Roles and permissions

    @property
    def provider(self) -> PermissionProvider:
        return self._manager.permission_provider

    def get_role_list(self, login_id: Any = None) -> list[str]:
        if login_id is None:
            login_id = self.get_login_id()
        return list(self.provider.get_role_list(login_id, self.login_type))

    def get_permission_list(self, login_id: Any = None) -> list[str]:
        if login_id is None:
            login_id = self.get_login_id()
        return list(self.provider.get_permission_list(login_id, self.login_type))

    def has_role(self, role: str, login_id: Any = None) -> bool:
        return has_element(self.get_role_list(login_id), role)

    def has_permission(self, permission: str, login_id: Any = None) -> bool:
        return has_element(self.get_permission_list(login_id), permission)

    def check_role(self, role: str) -> None:
        if not self.has_role(role):
            raise NotRoleError(role, login_type=self.login_type)

    def check_role_and(self, *roles: str) -> None:
        owned = self.get_role_list()
        for role in roles:
            if not has_element(owned, role):
                raise NotRoleError(role, login_type=self.login_type)

    def check_role_or(self, *roles: str) -> None:
        owned = self.get_role_list()
        if not roles or any(has_element(owned, role) for role in roles):
            return
        raise NotRoleError(roles[0], login_type=self.login_type)

    def check_permission(self, permission: str) -> None:
        if not self.has_permission(permission):
            raise NotPermissionError(permission, login_type=self.login_type)

    def check_permission_and(self, *permissions: str) -> None:
        owned = self.get_permission_list()
        for permission in permissions:
            if not has_element(owned, permission):
                raise NotPermissionError(permission, login_type=self.login_type)

    def check_permission_or(self, *permissions: str) -> None:
        owned = self.get_permission_list()
        if not permissions or any(has_element(owned, permission) for permission in permissions):
            return
        raise NotPermissionError(permissions[0], login_type=self.login_type)

    # ------------------------------------------------------------------ Second-level auth

    def open_safe(self, service: str = DEFAULT_SAFE_SERVICE, safe_time: int = 120) -> None:
        """Open second-level auth for ``service`` on the current token."""

        self.check_login()
        token = self.get_token_value()
        self.store.set(self._safe_key(service, token), self.store.now(), safe_time)
        logger.info(
            "Second-level auth opened",
            extra={"login_type": self.login_type, "service": service, "safe_time": safe_time},
        )

    def is_safe(self, service: str = DEFAULT_SAFE_SERVICE) -> bool:
        token = self.get_token_value()
        if not token:
            return False
        return self.store.get(self._safe_key(service, token)) is not None

    def check_safe(self, service: str = DEFAULT_SAFE_SERVICE) -> None:
        if not self.is_safe(service):
            raise NotSafeError(service, self.get_token_value(), login_type=self.login_type)

    def get_safe_time(self, service: str = DEFAULT_SAFE_SERVICE) -> int:
        token = self.get_token_value()
        if not token:
            return NOT_VALUE_EXPIRE
        return self.store.get_timeout(self._safe_key(service, token))

    def close_safe(self, service: str = DEFAULT_SAFE_SERVICE) -> None:
        token = self.get_token_value()
        if token:
            self.store.delete(self._safe_key(service, token))

    # ------------------------------------------------------------------ Service bans

    def disable(
        self,
        login_id: Any,
        service: str = DEFAULT_DISABLE_SERVICE,
        time: int = -1,
        level: int = DEFAULT_DISABLE_LEVEL,
    ) -> None:
        """Ban ``login_id`` from ``service`` for ``time`` seconds (``-1`` forever)."""

        if level < 1:
            raise ValueError("Disable level must be at least 1.")
        if time == 0 or time < -1:
            raise ValueError("Disable time must be positive or -1.")
        self.store.set(self._disable_key(service, login_id), level, time)
        logger.info(
            "Account service disabled",
            extra={"login_type": self.login_type, "login_id": login_id, "service": service, "time": time},
        )

    def get_disable_level(self, login_id: Any, service: str = DEFAULT_DISABLE_SERVICE) -> int:
        value = self.store.get(self._disable_key(service, login_id))
        return NOT_VALUE_EXPIRE if value is None else int(value)

    def is_disable(
        self,
        login_id: Any,
        service: str = DEFAULT_DISABLE_SERVICE,
        level: int = DEFAULT_DISABLE_LEVEL,
    ) -> bool:
        current = self.get_disable_level(login_id, service)
        return current != NOT_VALUE_EXPIRE and current >= level

    def check_disable(
        self,
        login_id: Any,
        *services: str,
        level: int = DEFAULT_DISABLE_LEVEL,
    ) -> None:
        for service in services or (DEFAULT_DISABLE_SERVICE,):
            current = self.get_disable_level(login_id, service)
            if current != NOT_VALUE_EXPIRE and current >= level:
                raise DisableServiceError(
                    service,
                    current,
                    level,
                    self.get_disable_time(login_id, service),
                    login_type=self.login_type,
                )

    def get_disable_time(self, login_id: Any, service: str = DEFAULT_DISABLE_SERVICE) -> int:
        return self.store.get_timeout(self._disable_key(service, login_id))

    def untie_disable(self, login_id: Any, *services: str) -> None:
        for service in services or (DEFAULT_DISABLE_SERVICE,):
            self.store.delete(self._disable_key(service, login_id))
        logger.info(
            "Account service ban lifted",
            extra={"login_type": self.login_type, "login_id": login_id, "services": list(services)},
        )


class StpManager:
    """Shared store, config and permission provider for every login type."""

    def __init__(
        self,
        config: AuthConfig | None = None,
        *,
        store: TokenStore | None = None,
        permission_provider: PermissionProvider | None = None,
    ) -> None:
        self.config = config or AuthConfig()
        self.store = store if store is not None else TokenStore()
        self.lock = threading.RLock()
        self.permission_provider: PermissionProvider = (
            permission_provider if permission_provider is not None else SessionPermissionProvider(self)
        )
        self._logics: dict[str, StpLogic] = {}

    def get(self, login_type: str = DEFAULT_LOGIN_TYPE) -> StpLogic:
        with self.lock:
            logic = self._logics.get(login_type)
            if logic is None:
                logic = StpLogic(login_type, self)
                self._logics[login_type] = logic
            return logic

    def default(self) -> StpLogic:
        return self.get(DEFAULT_LOGIN_TYPE)

    def login_types(self) -> Iterable[str]:
        with self.lock:
            return list(self._logics)


_default_manager: StpManager | None = None


def get_default_manager() -> StpManager:
    """Return the process-wide manager shared by the web app and MCP tools."""

    global _default_manager
    if _default_manager is None:
        _default_manager = StpManager()
    return _default_manager


def set_default_manager(manager: StpManager) -> None:
    global _default_manager
    _default_manager = manager
