"""Endpoint check demos: login helpers under ``/auth`` and decorated endpoints.

``/basic`` shows one check per endpoint, ``/advanced`` the AND/OR modes and
``or_role`` fallbacks, ``/combined`` a group-level login check with
``ignore`` and ``check_or`` exemptions.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenauth.domain.checks import (
    Mode,
    check_disable,
    check_http_basic,
    check_http_digest,
    check_login,
    check_or,
    check_permission,
    check_role,
    check_safe,
    guard_routes,
    ignore,
)
from tokenauth.domain.models.result import Result
from tokenauth.domain.passwords import check_password, hash_password
from tokenauth.web.deps import ANY_METHOD, get_stp
from tokenauth.web.params import optional_param, required_param
from tokenauth.web.responses import respond

PERMISSION_LIST_KEY = "permissionList"
BASIC_ACCOUNT = "sa:123456"

ADMIN_PERMISSIONS = ["user.add", "user.update", "user.delete", "user.all", "system.config"]
USER_PERMISSIONS = ["user.add", "user.update"]


# ---------------------------------------------------------------- /auth helpers


async def login(request: Request) -> JSONResponse:
    username = optional_param("username", "user")
    stp = get_stp(request)
    stp.login(username)
    return respond(Result.of_data(f"Logged in as {username}, token: {stp.get_token_value()}"))


def _login_with(request: Request, login_id: str, role: str, permissions: list[str]) -> str:
    stp = get_stp(request)
    stp.login(login_id)
    session = stp.get_session()
    session.set("role", role)
    session.set(PERMISSION_LIST_KEY, permissions)
    return stp.get_token_value()


async def login_admin(request: Request) -> JSONResponse:
    token = _login_with(request, "admin", "admin", list(ADMIN_PERMISSIONS))
    return respond(Result.of_data(f"Admin logged in, token: {token}"))


async def login_user(request: Request) -> JSONResponse:
    token = _login_with(request, "user", "user", list(USER_PERMISSIONS))
    return respond(Result.of_data(f"User logged in, token: {token}"))


async def login_super_admin(request: Request) -> JSONResponse:
    token = _login_with(request, "super-admin", "super-admin", ["*"])
    return respond(Result.of_data(f"Super admin logged in, token: {token}"))


async def get_info(request: Request) -> JSONResponse:
    stp = get_stp(request)
    if not stp.is_login():
        return respond(Result.error("Not logged in"))
    session = stp.get_session()
    return respond(
        Result.ok()
        .set("loginId", stp.get_login_id_as_string())
        .set("token", stp.get_token_value())
        .set("role", session.get("role"))
        .set("permissions", session.get(PERMISSION_LIST_KEY))
    )


async def logout(request: Request) -> JSONResponse:
    get_stp(request).logout()
    return respond(Result.of_data("Logged out"))


async def open_safe(request: Request) -> JSONResponse:
    get_stp(request).open_safe(safe_time=3600)
    return respond(Result.of_data("Second-level auth passed, sensitive operations are open"))


async def close_safe(request: Request) -> JSONResponse:
    get_stp(request).close_safe()
    return respond(Result.of_data("Second-level auth closed"))


async def check_safe_state(request: Request) -> JSONResponse:
    # Reports the "update-password" service, which open_safe above does not open.
    is_open = get_stp(request).is_safe("update-password")
    return respond(Result.of_data(f"Second-level auth: {'open' if is_open else 'closed'}"))


async def disable_service(request: Request) -> JSONResponse:
    service = required_param("service")
    stp = get_stp(request)
    stp.disable(stp.get_login_id(), service, -1)
    return respond(Result.of_data(f"Service disabled: {service}"))


async def untie_disable_service(request: Request) -> JSONResponse:
    service = required_param("service")
    stp = get_stp(request)
    stp.untie_disable(stp.get_login_id(), service)
    return respond(Result.of_data(f"Service re-enabled: {service}"))


async def check_disable_state(request: Request) -> JSONResponse:
    service = required_param("service")
    stp = get_stp(request)
    disabled = stp.is_disable(stp.get_login_id(), service)
    return respond(Result.of_data(f"Service {service}: {'disabled' if disabled else 'normal'}"))


async def encrypt(request: Request) -> JSONResponse:
    password = str(required_param("password"))
    try:
        hashed = hash_password(password)
    except ValueError as exc:
        return respond(Result.error(str(exc)))
    return respond(Result.of_data(f"Hashed password: {hashed}"))


async def verify(request: Request) -> JSONResponse:
    password = str(required_param("password"))
    hashed = str(required_param("hashed"))
    matches = check_password(password, hashed)
    return respond(Result.of_data(f"Password check: {'correct' if matches else 'wrong'}"))


# ---------------------------------------------------------------- /basic


@check_login()
async def basic_info(request: Request) -> JSONResponse:
    login_id = get_stp(request).get_login_id_as_string()
    return respond(Result.of_data(f"User info loaded, current login id: {login_id}"))


@check_role("super-admin")
async def basic_add(request: Request) -> JSONResponse:
    return respond(Result.of_data("User added"))


@check_permission("user-add")
async def basic_user_add(request: Request) -> JSONResponse:
    return respond(Result.of_data("User added"))


@check_safe()
async def basic_update_pwd(request: Request) -> JSONResponse:
    return respond(Result.of_data("Password updated"))


@check_http_basic(account=BASIC_ACCOUNT)
async def basic_dashboard(request: Request) -> JSONResponse:
    return respond(Result.of_data("Admin dashboard data"))


@check_http_digest(BASIC_ACCOUNT)
async def basic_report(request: Request) -> JSONResponse:
    return respond(Result.of_data("Report data"))


@check_disable("comment")
async def basic_send(request: Request) -> JSONResponse:
    return respond(Result.of_data("Comment posted"))


# ---------------------------------------------------------------- /advanced


@check_permission("user-add", "user-all", "user-delete", mode=Mode.OR)
async def at_jur_or(request: Request) -> JSONResponse:
    return respond(Result.of_data("User info, OR mode: any one permission is enough"))


@check_permission("user-add", "user-update", mode=Mode.AND)
async def at_jur_and(request: Request) -> JSONResponse:
    return respond(Result.of_data("User info, AND mode: every permission is required"))


@check_permission("user.add", or_role="admin")
async def advanced_user_add(request: Request) -> JSONResponse:
    return respond(Result.of_data("User added: user.add permission or admin role"))


@check_permission("user.delete", or_role=["admin", "manager", "staff"])
async def multi_role_or(request: Request) -> JSONResponse:
    return respond(Result.of_data("User deleted: any of admin/manager/staff"))


@check_permission("system.config", or_role=["admin, manager, staff"])
async def multi_role_and(request: Request) -> JSONResponse:
    return respond(Result.of_data("System configured: admin, manager and staff all required"))


@check_permission("user.add")
@check_role("admin")
async def multi_check_and(request: Request) -> JSONResponse:
    return respond(Result.of_data("Done: login, admin role and user.add permission all passed"))


# ---------------------------------------------------------------- /combined


@ignore
async def combined_health(request: Request) -> JSONResponse:
    return respond(Result.of_data("Health check, no login needed"))


async def combined_normal(request: Request) -> JSONResponse:
    return respond(Result.of_data("Normal endpoint, login needed"))


@check_or(
    check_login(),
    check_role("admin"),
    check_safe("update-password"),
    check_http_basic(account=BASIC_ACCOUNT),
    check_disable("submit-orders"),
)
async def combined_test(request: Request) -> JSONResponse:
    return respond(Result.of_data("Access granted: one of the checks passed"))


@ignore
@check_or(check_login(type="login"), check_login(type="user"))
async def combined_multi_account(request: Request) -> JSONResponse:
    return respond(Result.of_data("Access granted: admin or user account system is logged in"))


@check_role("admin")
async def combined_admin_only(request: Request) -> JSONResponse:
    return respond(Result.of_data("Admin only: login and admin role"))


@check_safe()
async def combined_change_password(request: Request) -> JSONResponse:
    return respond(Result.of_data("Password changed"))


AUTH_ROUTES = [
    Route("/auth/login", login, methods=ANY_METHOD),
    Route("/auth/loginAdmin", login_admin, methods=ANY_METHOD),
    Route("/auth/loginUser", login_user, methods=ANY_METHOD),
    Route("/auth/loginSuperAdmin", login_super_admin, methods=ANY_METHOD),
    Route("/auth/getInfo", get_info, methods=ANY_METHOD),
    Route("/auth/logout", logout, methods=ANY_METHOD),
    Route("/auth/openSafe", open_safe, methods=ANY_METHOD),
    Route("/auth/closeSafe", close_safe, methods=ANY_METHOD),
    Route("/auth/checkSafe", check_safe_state, methods=ANY_METHOD),
    Route("/auth/disableService", disable_service, methods=ANY_METHOD),
    Route("/auth/untieDisableService", untie_disable_service, methods=ANY_METHOD),
    Route("/auth/checkDisable", check_disable_state, methods=ANY_METHOD),
    Route("/auth/encrypt", encrypt, methods=ANY_METHOD),
    Route("/auth/verify", verify, methods=ANY_METHOD),
]

BASIC_ROUTES = [
    Route("/basic/info", basic_info, methods=ANY_METHOD),
    Route("/basic/add", basic_add, methods=ANY_METHOD),
    Route("/basic/userAdd", basic_user_add, methods=ANY_METHOD),
    Route("/basic/updatePwd", basic_update_pwd, methods=ANY_METHOD),
    Route("/basic/dashboard", basic_dashboard, methods=ANY_METHOD),
    Route("/basic/report", basic_report, methods=ANY_METHOD),
    Route("/basic/send", basic_send, methods=ANY_METHOD),
]

ADVANCED_ROUTES = [
    Route("/advanced/atJurOr", at_jur_or, methods=ANY_METHOD),
    Route("/advanced/atJurAnd", at_jur_and, methods=ANY_METHOD),
    Route("/advanced/userAdd", advanced_user_add, methods=ANY_METHOD),
    Route("/advanced/multiRoleOr", multi_role_or, methods=ANY_METHOD),
    Route("/advanced/multiRoleAnd", multi_role_and, methods=ANY_METHOD),
    Route("/advanced/multiCheckAnd", multi_check_and, methods=ANY_METHOD),
]

COMBINED_ROUTES = guard_routes(
    [
        Route("/combined/health", combined_health, methods=ANY_METHOD),
        Route("/combined/normal", combined_normal, methods=ANY_METHOD),
        Route("/combined/test", combined_test, methods=ANY_METHOD),
        Route("/combined/multiAccount", combined_multi_account, methods=ANY_METHOD),
        Route("/combined/adminOnly", combined_admin_only, methods=ANY_METHOD),
        Route("/combined/changePassword", combined_change_password, methods=ANY_METHOD),
    ],
    check_login(),
)

ROUTES = AUTH_ROUTES + BASIC_ROUTES + ADVANCED_ROUTES + COMBINED_ROUTES
