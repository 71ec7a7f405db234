"""Minimal login demo: log in, query the state, inspect the token, log out."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenauth.domain.models.result import Result
from tokenauth.web.deps import ANY_METHOD, get_accounts, get_stp
from tokenauth.web.params import optional_param
from tokenauth.web.responses import respond

GROUP = "quickstart"


async def do_login(request: Request) -> JSONResponse:
    name = optional_param("name")
    pwd = optional_param("pwd")
    account = get_accounts(request).find(GROUP, name)
    if account is None or pwd is None or not account.verify_password(str(pwd)):
        return respond(Result.error("Login failed"))
    get_stp(request).login(account.user_id)
    return respond(Result.ok("Login succeeded"))


async def is_login(request: Request) -> JSONResponse:
    return respond(Result.ok(f"Logged in: {get_stp(request).is_login()}"))


async def token_info(request: Request) -> JSONResponse:
    return respond(Result.of_data(get_stp(request).get_token_info()))


async def logout(request: Request) -> JSONResponse:
    get_stp(request).logout()
    return respond(Result.ok())


ROUTES = [
    Route("/acc/doLogin", do_login, methods=ANY_METHOD),
    Route("/acc/isLogin", is_login, methods=ANY_METHOD),
    Route("/acc/tokenInfo", token_info, methods=ANY_METHOD),
    Route("/acc/logout", logout, methods=ANY_METHOD),
]
