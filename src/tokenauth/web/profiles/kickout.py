"""Forced-offline demo: logout deletes the token, kickout and replaced mark it.

A marked token keeps answering with the reason (``-5`` kicked out, ``-4``
replaced) instead of a plain "invalid token".
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenauth.domain.models.result import Result
from tokenauth.web.deps import get_accounts, get_stp
from tokenauth.web.params import int_param, optional_param, required_param
from tokenauth.web.responses import respond

GROUP = "kickout"

MULTI_DEVICES = ("PC", "Mobile", "Tablet")

LAST_KNOWN_LOCATION = "Shanghai"


# ---------------------------------------------------------------- /api/auth


async def login(request: Request) -> JSONResponse:
    username = required_param("username")
    password = str(required_param("password"))
    device = optional_param("device", "default")
    account = get_accounts(request).find(GROUP, username)
    if account is None:
        return respond(Result.error("User not found"))
    if not account.verify_password(password):
        return respond(Result.error("Wrong password"))

    stp = get_stp(request)
    stp.login(account.user_id, device)
    return respond(
        Result.of_data(
            {
                "userId": account.user_id,
                "username": account.username,
                "device": device,
                "tokenName": stp.get_token_name(),
                "tokenValue": stp.get_token_value(),
                "message": "Login succeeded",
            }
        )
    )


async def check(request: Request) -> JSONResponse:
    stp = get_stp(request)
    data: dict[str, object] = {"isLogin": stp.is_login()}
    if data["isLogin"]:
        data["userId"] = stp.get_login_id()
        data["tokenValue"] = stp.get_token_value()
        data["tokenInfo"] = stp.get_token_info()
    else:
        data["message"] = "Not logged in"
    return respond(Result.of_data(data))


async def info(request: Request) -> JSONResponse:
    stp = get_stp(request)
    if not stp.is_login():
        return respond(Result.error("Not logged in"))
    account = get_accounts(request).find_by_id(GROUP, stp.get_login_id())
    if account is None:
        return respond(Result.error("User not found"))
    return respond(
        Result.of_data(
            {
                "userId": account.user_id,
                "username": account.username,
                "tokenValue": stp.get_token_value(),
                "tokenInfo": stp.get_token_info(),
            }
        )
    )


async def logout(request: Request) -> JSONResponse:
    get_stp(request).logout()
    return respond(Result.ok("Logged out"))


async def login_multi(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    stp = get_stp(request)
    tokens: dict[str, str | None] = {}
    for device in MULTI_DEVICES:
        stp.login(user_id, device)
        tokens[device] = stp.get_token_value()
    return respond(
        Result.of_data({"userId": user_id, "message": "Logged in on several devices", "devices": tokens})
    )


# ---------------------------------------------------------------- /api/kickout


async def force_logout(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    get_stp(request).logout(user_id)
    return respond(Result.ok(f"Account {user_id} was logged out (token deleted)"))


async def force_logout_device(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    device = required_param("device")
    get_stp(request).logout(user_id, device)
    return respond(Result.ok(f"Account {user_id} was logged out on [{device}]"))


async def force_logout_token(request: Request) -> JSONResponse:
    token = required_param("token")
    get_stp(request).logout_by_token_value(token)
    return respond(Result.ok(f"Token [{token}] was logged out"))


async def kickout(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    get_stp(request).kickout(user_id)
    return respond(Result.ok(f"Account {user_id} was kicked out (token kept and marked)"))


async def kickout_device(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    device = required_param("device")
    get_stp(request).kickout(user_id, device)
    return respond(Result.ok(f"Account {user_id} was kicked out on [{device}]"))


async def kickout_token(request: Request) -> JSONResponse:
    token = required_param("token")
    get_stp(request).kickout_by_token_value(token)
    return respond(Result.ok(f"Token [{token}] was kicked out"))


async def replaced(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    get_stp(request).replaced(user_id)
    return respond(Result.ok(f"Account {user_id} was replaced (as if logged in on a new device)"))


async def replaced_device(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    device = required_param("device")
    get_stp(request).replaced(user_id, device)
    return respond(Result.ok(f"Account {user_id} was replaced on [{device}]"))


async def replaced_token(request: Request) -> JSONResponse:
    token = required_param("token")
    get_stp(request).replaced_by_token_value(token)
    return respond(Result.ok(f"Token [{token}] was replaced"))


async def scenario_password_change(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    get_stp(request).logout(user_id)
    return respond(
        Result.ok()
        .set("message", "Password changed")
        .set("action", "Every device was logged out, please log in again")
        .set("method", "logout: token deleted")
    )


async def scenario_abnormal_login(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    location = required_param("location")
    if location == LAST_KNOWN_LOCATION:
        return respond(Result.ok("Login looks normal"))
    get_stp(request).kickout(user_id)
    return respond(
        Result.ok()
        .set("detected", "Login from an unusual location")
        .set("lastLocation", LAST_KNOWN_LOCATION)
        .set("currentLocation", location)
        .set("action", "Account kicked out, contact an administrator")
        .set("method", "kickout: token kept and marked")
    )


async def scenario_ban_user(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    reason = required_param("reason")
    get_stp(request).logout(user_id)
    return respond(
        Result.ok()
        .set("message", "User banned")
        .set("userId", user_id)
        .set("reason", reason)
        .set("action", "Every login is now invalid")
        .set("method", "logout: token deleted")
    )


async def scenario_account_hijacked(request: Request) -> JSONResponse:
    user_id = int_param("userId")
    get_stp(request).kickout(user_id)
    return respond(
        Result.ok()
        .set("message", "Hijack report accepted")
        .set("action", "Every session was kicked out")
        .set("advice", "Change the password and enable second-level auth")
        .set("method", "kickout: token kept for the audit trail")
    )


async def token_info(request: Request) -> JSONResponse:
    return respond(Result.of_data(get_stp(request).get_token_info()))


async def kickout_check(request: Request) -> JSONResponse:
    stp = get_stp(request)
    return respond(
        Result.of_data(
            {
                "isLogin": stp.is_login(),
                "tokenValue": stp.get_token_value(),
                "loginId": stp.get_login_id_default_null(),
            }
        )
    )


async def comparison(request: Request) -> JSONResponse:
    return respond(
        Result.of_data(
            {
                "logout": {
                    "name": "Forced logout (logout)",
                    "description": "Deletes the token",
                    "userPerception": "Token is invalid",
                    "typicalScenario": "Account ban, password change",
                },
                "kickout": {
                    "name": "Kick offline (kickout)",
                    "description": "Marks the token and keeps it",
                    "userPerception": "Token has been kicked offline",
                    "typicalScenario": "Abnormal login detection, security audit",
                },
                "replaced": {
                    "name": "Replaced (replaced)",
                    "description": "A new device login pushes the old one out",
                    "userPerception": "Account logged in elsewhere",
                    "typicalScenario": "Single sign-on, login limits",
                },
                "summary": "logout means you are gone, kickout means you were asked to leave",
            }
        )
    )


ROUTES = [
    Route("/api/auth/login", login, methods=["POST"]),
    Route("/api/auth/check", check, methods=["GET"]),
    Route("/api/auth/info", info, methods=["GET"]),
    Route("/api/auth/logout", logout, methods=["POST"]),
    Route("/api/auth/login/multi", login_multi, methods=["POST"]),
    Route("/api/kickout/logout", force_logout, methods=["GET"]),
    Route("/api/kickout/logout/device", force_logout_device, methods=["GET"]),
    Route("/api/kickout/logout/token", force_logout_token, methods=["GET"]),
    Route("/api/kickout/kickout", kickout, methods=["GET"]),
    Route("/api/kickout/kickout/device", kickout_device, methods=["GET"]),
    Route("/api/kickout/kickout/token", kickout_token, methods=["GET"]),
    Route("/api/kickout/replaced", replaced, methods=["GET"]),
    Route("/api/kickout/replaced/device", replaced_device, methods=["GET"]),
    Route("/api/kickout/replaced/token", replaced_token, methods=["GET"]),
    Route("/api/kickout/scenario/password-change", scenario_password_change, methods=["POST"]),
    Route("/api/kickout/scenario/abnormal-login", scenario_abnormal_login, methods=["POST"]),
    Route("/api/kickout/scenario/ban-user", scenario_ban_user, methods=["POST"]),
    Route("/api/kickout/scenario/account-hijacked", scenario_account_hijacked, methods=["POST"]),
    Route("/api/kickout/token/info", token_info, methods=["GET"]),
    Route("/api/kickout/check", kickout_check, methods=["GET"]),
    Route("/api/kickout/comparison", comparison, methods=["GET"]),
]
