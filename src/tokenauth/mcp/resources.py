"""FastMCP resources exposing auth configuration and account terminals."""

from __future__ import annotations

import logging
from typing import Any

from tokenauth.domain.stp import DEFAULT_LOGIN_TYPE, StpManager, get_default_manager
from tokenauth.mcp import mcp

logger = logging.getLogger(__name__)


def get_manager() -> StpManager:
    """Return the manager shared with the running web app."""

    return get_default_manager()


@mcp.resource(
    "tokenauth://config",
    description="Token settings of the running server.",
    tags={"config"},
)
def auth_config() -> dict[str, Any]:
    manager = get_manager()
    return {
        "config": manager.config.model_dump(),
        "loginTypes": sorted(manager.login_types()),
        "storedKeys": len(manager.store),
    }


@mcp.resource(
    "tokenauth://accounts/{login_id}/terminals{?login_type}",
    description="Logged-in devices of an account.",
    tags={"sessions"},
)
def account_terminals(login_id: str, login_type: str = DEFAULT_LOGIN_TYPE) -> dict[str, Any]:
    stp = get_manager().get(login_type)
    terminals = stp.get_terminal_list_by_login_id(login_id)
    logger.info("Terminal lookup login_id=%s count=%s", login_id, len(terminals))
    return {
        "loginId": login_id,
        "loginType": login_type,
        "terminals": [terminal.model_dump(by_alias=True) for terminal in terminals],
    }
