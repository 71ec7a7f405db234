"""Route-rule demo: every path needs a login, modules need a role or a permission.

Accounts come from the ``interceptor`` group of the accounts file; their
role and permissions are copied into the account session at login and read
back by the session permission provider.
"""

from __future__ import annotations

import logging
import time

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenauth.domain.models.result import Result
from tokenauth.domain.router import RouteRules
from tokenauth.domain.stp import StpManager
from tokenauth.web.deps import get_accounts, get_stp
from tokenauth.web.params import optional_param
from tokenauth.web.responses import respond

logger = logging.getLogger(__name__)

GROUP = "interceptor"

PUBLIC_PATHS = ("/auth/doLogin", "/auth/register", "/favicon.ico", "/error", "/mcp/**")

MODULE_PERMISSIONS = {
    "/user/**": "user",
    "/admin/**": "admin",
    "/goods/**": "goods",
    "/orders/**": "orders",
    "/notice/**": "notice",
    "/comment/**": "comment",
}


def route_rules(route: RouteRules, manager: StpManager) -> None:
    stp = manager.default()

    route.match("/**").not_match(*PUBLIC_PATHS).check(lambda r: stp.check_login())

    route.match("/admin/**", lambda r: stp.check_role_or("admin", "super-admin"))

    for pattern, permission in MODULE_PERMISSIONS.items():
        route.match(pattern, lambda r, permission=permission: stp.check_permission(permission))

    route.match("/**").check(
        lambda r: logger.debug("Access log", extra={"path": r.path, "method": r.method})
    )


def _stamp() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------- /auth


async def do_login(request: Request) -> JSONResponse:
    account = get_accounts(request).find(GROUP, optional_param("username"))
    if account is None:
        return respond(Result.error("User not found"))
    if not account.verify_password(str(optional_param("password", ""))):
        return respond(Result.error("Wrong password"))

    stp = get_stp(request)
    stp.login(account.user_id)
    session = stp.get_session()
    session.set("role", account.role)
    session.set("permissions", list(account.permissions))

    return respond(
        Result.ok("Login succeeded")
        .set("token", stp.get_token_value())
        .set("username", account.username)
        .set("role", account.role)
        .set("permissions", account.permissions)
    )


async def register(request: Request) -> JSONResponse:
    return respond(Result.ok("Registered (demo only)"))


async def is_login(request: Request) -> JSONResponse:
    stp = get_stp(request)
    return respond(Result.ok().set("isLogin", stp.is_login()).set("tokenValue", stp.get_token_value()))


async def user_info(request: Request) -> JSONResponse:
    stp = get_stp(request)
    login_id = stp.get_login_id()
    session = stp.get_session()
    return respond(
        Result.ok()
        .set("loginId", login_id)
        .set("role", session.get("role"))
        .set("permissions", session.get("permissions"))
    )


async def logout(request: Request) -> JSONResponse:
    get_stp(request).logout()
    return respond(Result.ok("Logged out"))


# ---------------------------------------------------------------- modules


def _operated(request: Request, message: str) -> Result:
    return Result.ok(message).set("operator", get_stp(request).get_login_id())


async def admin_dashboard(request: Request) -> JSONResponse:
    statistics = {"userCount": 1000, "orderCount": 500, "goodsCount": 200}
    return respond(_operated(request, "Welcome to the admin console").set("statistics", statistics))


async def admin_settings(request: Request) -> JSONResponse:
    return respond(
        _operated(request, "Settings loaded").set("systemName", "tokenauth demo").set("version", "1.0.0")
    )


async def admin_update_settings(request: Request) -> JSONResponse:
    return respond(_operated(request, "Settings updated"))


async def admin_users(request: Request) -> JSONResponse:
    return respond(_operated(request, "User management data loaded"))


async def user_list(request: Request) -> JSONResponse:
    users = [account.username for account in get_accounts(request).accounts(GROUP)]
    return respond(_operated(request, "User list loaded").set("users", users))


async def user_detail(request: Request) -> JSONResponse:
    username = request.path_params["username"]
    return respond(_operated(request, "User detail loaded").set("username", username))


async def user_create(request: Request) -> JSONResponse:
    return respond(_operated(request, "User created"))


async def user_update(request: Request) -> JSONResponse:
    return respond(_operated(request, "User updated"))


async def user_delete(request: Request) -> JSONResponse:
    return respond(_operated(request, "User deleted"))


async def goods_list(request: Request) -> JSONResponse:
    goods = ["iPhone 15 Pro", "MacBook Pro", "AirPods Pro", "iPad Pro"]
    return respond(_operated(request, "Goods list loaded").set("goods", goods))


async def goods_detail(request: Request) -> JSONResponse:
    return respond(
        _operated(request, "Goods detail loaded")
        .set("goodsId", request.path_params["goods_id"])
        .set("name", "iPhone 15 Pro")
        .set("price", 7999)
    )


async def goods_add(request: Request) -> JSONResponse:
    return respond(_operated(request, "Goods added"))


async def goods_update(request: Request) -> JSONResponse:
    return respond(_operated(request, "Goods updated"))


async def goods_delete(request: Request) -> JSONResponse:
    return respond(_operated(request, "Goods deleted").set("goodsId", request.path_params["goods_id"]))


async def orders_list(request: Request) -> JSONResponse:
    orders = [{"id": "ORD001", "amount": "7999.00"}, {"id": "ORD002", "amount": "12999.00"}]
    return respond(_operated(request, "Order list loaded").set("orders", orders))


async def orders_detail(request: Request) -> JSONResponse:
    return respond(
        _operated(request, "Order detail loaded")
        .set("orderId", request.path_params["order_id"])
        .set("amount", "7999.00")
        .set("status", "paid")
    )


async def orders_create(request: Request) -> JSONResponse:
    return respond(_operated(request, "Order created").set("orderId", f"ORD{_stamp()}"))


async def orders_cancel(request: Request) -> JSONResponse:
    return respond(_operated(request, "Order cancelled").set("orderId", request.path_params["order_id"]))


async def notice_list(request: Request) -> JSONResponse:
    notices = [
        {"title": "Maintenance notice", "content": "The system goes down for maintenance at 22:00"},
        {"title": "New feature", "content": "Route interceptor is live"},
    ]
    return respond(_operated(request, "Notice list loaded").set("notices", notices))


async def notice_detail(request: Request) -> JSONResponse:
    return respond(
        _operated(request, "Notice detail loaded")
        .set("noticeId", request.path_params["notice_id"])
        .set("title", "Maintenance notice")
        .set("content", "The system goes down for maintenance at 22:00 for about two hours")
    )


async def notice_publish(request: Request) -> JSONResponse:
    return respond(_operated(request, "Notice published").set("noticeId", f"NOTICE{_stamp()}"))


async def notice_delete(request: Request) -> JSONResponse:
    return respond(_operated(request, "Notice deleted").set("noticeId", request.path_params["notice_id"]))


async def comment_list(request: Request) -> JSONResponse:
    comments = [
        {"user": "user", "content": "Great product!"},
        {"user": "admin", "content": "Very complete"},
    ]
    return respond(_operated(request, "Comment list loaded").set("comments", comments))


async def comment_detail(request: Request) -> JSONResponse:
    return respond(
        _operated(request, "Comment detail loaded")
        .set("commentId", request.path_params["comment_id"])
        .set("content", "Great product!")
        .set("user", "user")
    )


async def comment_add(request: Request) -> JSONResponse:
    return respond(_operated(request, "Comment added").set("commentId", f"COMMENT{_stamp()}"))


async def comment_delete(request: Request) -> JSONResponse:
    return respond(_operated(request, "Comment deleted").set("commentId", request.path_params["comment_id"]))


ROUTES = [
    Route("/auth/doLogin", do_login, methods=["POST"]),
    Route("/auth/register", register, methods=["POST"]),
    Route("/auth/isLogin", is_login, methods=["GET"]),
    Route("/auth/userInfo", user_info, methods=["GET"]),
    Route("/auth/logout", logout, methods=["POST"]),
    Route("/admin/dashboard", admin_dashboard, methods=["GET"]),
    Route("/admin/settings", admin_settings, methods=["GET"]),
    Route("/admin/settings", admin_update_settings, methods=["PUT"]),
    Route("/admin/users", admin_users, methods=["GET"]),
    Route("/user/list", user_list, methods=["GET"]),
    Route("/user/info/{username}", user_detail, methods=["GET"]),
    Route("/user/create", user_create, methods=["POST"]),
    Route("/user/update", user_update, methods=["PUT"]),
    Route("/user/delete", user_delete, methods=["DELETE"]),
    Route("/goods/list", goods_list, methods=["GET"]),
    Route("/goods/info/{goods_id}", goods_detail, methods=["GET"]),
    Route("/goods/add", goods_add, methods=["POST"]),
    Route("/goods/update", goods_update, methods=["PUT"]),
    Route("/goods/delete/{goods_id}", goods_delete, methods=["DELETE"]),
    Route("/orders/list", orders_list, methods=["GET"]),
    Route("/orders/info/{order_id}", orders_detail, methods=["GET"]),
    Route("/orders/create", orders_create, methods=["POST"]),
    Route("/orders/cancel/{order_id}", orders_cancel, methods=["PUT"]),
    Route("/notice/list", notice_list, methods=["GET"]),
    Route("/notice/info/{notice_id}", notice_detail, methods=["GET"]),
    Route("/notice/publish", notice_publish, methods=["POST"]),
    Route("/notice/delete/{notice_id}", notice_delete, methods=["DELETE"]),
    Route("/comment/list", comment_list, methods=["GET"]),
    Route("/comment/info/{comment_id}", comment_detail, methods=["GET"]),
    Route("/comment/add", comment_add, methods=["POST"]),
    Route("/comment/delete/{comment_id}", comment_delete, methods=["DELETE"]),
]
