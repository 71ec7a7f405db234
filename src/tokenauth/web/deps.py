"""Shared objects endpoints pull from ``app.state``."""

from __future__ import annotations

from starlette.requests import Request

from tokenauth.domain.accounts import AccountRepository
from tokenauth.domain.stp import DEFAULT_LOGIN_TYPE, StpLogic, StpManager

ANY_METHOD = ["GET", "POST", "PUT", "DELETE", "PATCH"]


def get_manager(request: Request) -> StpManager:
    return request.app.state.manager


def get_stp(request: Request, login_type: str = DEFAULT_LOGIN_TYPE) -> StpLogic:
    return get_manager(request).get(login_type)


def get_accounts(request: Request) -> AccountRepository:
    return request.app.state.accounts
