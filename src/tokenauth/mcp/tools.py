"""FastMCP admin tools: token inspection, forced offline and service bans."""

from __future__ import annotations

import logging
from typing import Any

from tokenauth.domain.context import RequestContext, bind_context
from tokenauth.domain.exceptions import AuthError
from tokenauth.domain.stp import DEFAULT_LOGIN_TYPE
from tokenauth.mcp import mcp
from tokenauth.mcp.resources import get_manager

logger = logging.getLogger(__name__)

_OFFLINE_MODES = ("logout", "kickout", "replaced")


@mcp.tool(
    name="token_info",
    description="Report the login state of a token value.",
)
async def token_info(token: str, login_type: str = DEFAULT_LOGIN_TYPE) -> dict[str, Any]:
    stp = get_manager().get(login_type)
    # Evaluate the token the same way a request carrying it would be.
    prefix = stp.config.token_prefix
    context = RequestContext(headers={stp.get_token_name(): f"{prefix} {token}" if prefix else token})
    with bind_context(context):
        try:
            stp.check_login()
        except AuthError as exc:
            return {"status": "error", "message": exc.message, "code": exc.code}
        info = stp.get_token_info()
    return {"status": "ok", "tokenInfo": info.to_payload()}


@mcp.tool(
    name="list_tokens",
    description="List stored token values, optionally filtered by a keyword.",
)
async def list_tokens(
    keyword: str = "",
    start: int = 0,
    size: int = 50,
    login_type: str = DEFAULT_LOGIN_TYPE,
) -> dict[str, Any]:
    stp = get_manager().get(login_type)
    tokens = stp.search_token_values(keyword, start, size)
    return {
        "status": "ok",
        "tokens": [{"tokenValue": token, "loginId": stp.get_login_id_by_token(token)} for token in tokens],
    }


@mcp.tool(
    name="force_offline",
    description="Log out, kick out or replace every token of an account (optionally one device).",
)
async def force_offline(
    login_id: str,
    mode: str = "kickout",
    device: str | None = None,
    login_type: str = DEFAULT_LOGIN_TYPE,
) -> dict[str, Any]:
    if mode not in _OFFLINE_MODES:
        return {"status": "error", "message": f"mode must be one of {', '.join(_OFFLINE_MODES)}"}
    stp = get_manager().get(login_type)
    before = stp.get_token_value_list_by_login_id(login_id, device)
    getattr(stp, mode)(login_id, device)
    logger.info("Admin forced account offline login_id=%s mode=%s", login_id, mode)
    return {"status": mode, "loginId": login_id, "device": device, "affectedTokens": before}


@mcp.tool(
    name="disable_service",
    description="Ban an account from a service for a number of seconds (-1 forever).",
)
async def disable_service(
    login_id: str,
    service: str = "login",
    time: int = -1,
    level: int = 1,
    login_type: str = DEFAULT_LOGIN_TYPE,
) -> dict[str, Any]:
    stp = get_manager().get(login_type)
    try:
        stp.disable(login_id, service, time, level)
    except ValueError as exc:
        return {"status": "error", "message": str(exc)}
    return {
        "status": "disabled",
        "loginId": login_id,
        "service": service,
        "level": stp.get_disable_level(login_id, service),
        "disableTime": stp.get_disable_time(login_id, service),
    }


@mcp.tool(
    name="untie_disable_service",
    description="Lift service bans of an account.",
)
async def untie_disable_service(
    login_id: str,
    services: list[str] | None = None,
    login_type: str = DEFAULT_LOGIN_TYPE,
) -> dict[str, Any]:
    stp = get_manager().get(login_type)
    services = services or ["login"]
    stp.untie_disable(login_id, *services)
    return {"status": "untied", "loginId": login_id, "services": services}
