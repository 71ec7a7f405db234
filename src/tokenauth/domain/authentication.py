"""Bearer auth for the MCP admin mount, backed by the ``admin`` login type."""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Sequence

from fastmcp.server.auth import AccessToken, AuthProvider

from tokenauth.domain.exceptions import NotLoginError
from tokenauth.domain.store import NEVER_EXPIRE
from tokenauth.domain.stp import StpLogic, StpManager, get_default_manager

__all__ = ["ADMIN_LOGIN_TYPE", "AdminTokenAuthProvider"]

logger = logging.getLogger(__name__)

ADMIN_LOGIN_TYPE = "admin"


class AdminTokenAuthProvider(AuthProvider):
    """Accept tokens of live ``admin`` logins, falling back to one static token.

    Admin tokens go through the same checks as any other login: kicked-out,
    replaced, expired and frozen tokens are rejected, and ``auto_renew``
    refreshes the activity timestamp on every verified call.
    """

    def __init__(
        self,
        *,
        static_token: str | None = None,
        manager: Callable[[], StpManager] = get_default_manager,
        login_type: str = ADMIN_LOGIN_TYPE,
        base_url: str | None = None,
        required_scopes: Sequence[str] | None = None,
    ) -> None:
        self._static_token = static_token or None
        self._manager = manager
        self.login_type = login_type
        super().__init__(
            base_url=base_url,
            required_scopes=list(required_scopes or []),
        )

    async def verify_token(self, token: str) -> AccessToken | None:
        if not token:
            return None
        stp = self._manager().get(self.login_type)
        login_id = stp.get_login_id_by_token(token)
        if login_id is not None:
            try:
                stp.check_active_timeout(token)
            except NotLoginError:
                logger.warning("Rejected frozen MCP admin token", extra={"login_id": login_id})
                return None
            if stp.config.auto_renew:
                stp.update_last_active_to_now(token)
            return self._access_token(token, f"{self.login_type}:{login_id}", self._expires_at(stp, token))
        if self._static_token and secrets.compare_digest(token.encode(), self._static_token.encode()):
            return self._access_token(token, "tokenauth-static", None)
        logger.warning("Rejected MCP admin bearer token")
        return None

    def _access_token(self, token: str, client_id: str, expires_at: int | None) -> AccessToken:
        return AccessToken(
            token=token,
            client_id=client_id,
            scopes=list(self.required_scopes),
            expires_at=expires_at,
            resource=None,
        )

    @staticmethod
    def _expires_at(stp: StpLogic, token: str) -> int | None:
        timeout = stp.get_token_timeout(token)
        if timeout == NEVER_EXPIRE:
            return None
        return int(stp.store.now()) + timeout
