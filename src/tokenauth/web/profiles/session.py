"""Session demo covering the three session kinds.

- Account-Session: one per login id, shared by every device.
- Token-Session: one per token, holds per-device data.
- Custom-Session: addressed by an arbitrary id, here ``system-config``.
"""

from __future__ import annotations

import time
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenauth.domain.models.result import Result
from tokenauth.domain.session import Session
from tokenauth.web.deps import get_accounts, get_stp
from tokenauth.web.params import optional_param, required_param
from tokenauth.web.responses import respond

GROUP = "session"
CUSTOM_SESSION_ID = "system-config"

DEFAULT_SYSTEM_CONFIG = {"theme": "dark", "language": "zh-CN", "timezone": "Asia/Shanghai"}


def _session_data(session: Session) -> dict[str, Any]:
    return {key: session.get(key) for key in session.keys()}


async def login(request: Request) -> JSONResponse:
    account = get_accounts(request).find(GROUP, optional_param("username"))
    if account is None or not account.verify_password(str(optional_param("password", ""))):
        return respond(Result.error("Wrong username or password"))

    stp = get_stp(request)
    stp.login(account.user_id)
    stp.get_session().set(
        "userInfo",
        {
            "userId": account.user_id,
            "username": account.username,
            "nickname": account.nickname,
            "email": account.email,
            "phone": account.phone,
            "role": account.role,
        },
    )
    stp.get_token_session().set(
        "device",
        {
            "deviceType": optional_param("deviceType"),
            "loginIp": request.client.host if request.client else None,
            "loginTime": int(time.time() * 1000),
        },
    )
    return respond(Result.ok("Login succeeded").set("token", stp.get_token_value()).set("userId", account.user_id))


async def account_info(request: Request) -> JSONResponse:
    session = get_stp(request).get_session()
    return respond(
        Result.of_data(session.get("userInfo")).set("sessionId", session.id).set("sessionType", session.type)
    )


async def account_nickname(request: Request) -> JSONResponse:
    nickname = required_param("nickname")
    session = get_stp(request).get_session()
    user_info = session.get("userInfo")
    if user_info is not None:
        session.set("userInfo", {**user_info, "nickname": nickname})
    return respond(Result.ok("Nickname updated").set("newNickname", nickname))


async def token_device(request: Request) -> JSONResponse:
    stp = get_stp(request)
    session = stp.get_token_session()
    return respond(
        Result.of_data(session.get("device"))
        .set("sessionId", session.id)
        .set("sessionType", session.type)
        .set("currentToken", stp.get_token_value())
    )


async def token_list(request: Request) -> JSONResponse:
    stp = get_stp(request)
    return respond(Result.of_data(stp.get_token_value_list_by_login_id(stp.get_login_id_default_null())))


async def custom_system_config(request: Request) -> JSONResponse:
    session = get_stp(request).get_session_by_session_id(CUSTOM_SESSION_ID)
    if session.get("theme") is None:
        for key, value in DEFAULT_SYSTEM_CONFIG.items():
            session.set(key, value)
    return respond(Result.of_data(_session_data(session)).set("sessionId", session.id).set("sessionType", session.type))


async def custom_theme(request: Request) -> JSONResponse:
    theme = required_param("theme")
    session = get_stp(request).get_session_by_session_id(CUSTOM_SESSION_ID)
    session.set("theme", theme)
    return respond(Result.ok("Theme updated").set("theme", theme).set("allConfig", _session_data(session)))


async def compare(request: Request) -> JSONResponse:
    stp = get_stp(request)
    result = Result.ok()
    if stp.is_login():
        account_session = stp.get_session()
        token_session = stp.get_token_session()
        result.set("accountSession", _session_data(account_session))
        result.set("accountSessionId", account_session.id)
        result.set("tokenSession", _session_data(token_session))
        result.set("tokenSessionId", token_session.id)
    custom_session = stp.get_session_by_session_id(CUSTOM_SESSION_ID)
    result.set("customSession", _session_data(custom_session))
    result.set("customSessionId", custom_session.id)
    return respond(result)


async def logout(request: Request) -> JSONResponse:
    get_stp(request).logout()
    return respond(Result.ok("Logged out"))


async def is_login(request: Request) -> JSONResponse:
    stp = get_stp(request)
    return respond(Result.ok().set("isLogin", stp.is_login()).set("loginId", stp.get_login_id_default_null()))


ROUTES = [
    Route("/session/login", login, methods=["POST"]),
    Route("/session/account/info", account_info, methods=["GET"]),
    Route("/session/account/nickname", account_nickname, methods=["PUT"]),
    Route("/session/token/device", token_device, methods=["GET"]),
    Route("/session/token/list", token_list, methods=["GET"]),
    Route("/session/custom/system-config", custom_system_config, methods=["GET"]),
    Route("/session/custom/theme", custom_theme, methods=["PUT"]),
    Route("/session/compare", compare, methods=["GET"]),
    Route("/session/logout", logout, methods=["POST"]),
    Route("/session/isLogin", is_login, methods=["GET"]),
]
