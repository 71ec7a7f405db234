"""Application factory for the demo profiles."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncContextManager, AsyncIterator, Callable

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute, Mount

from tokenauth.config import DEMO_PROFILES, ConfigError, Settings
from tokenauth.domain.accounts import AccountRepository
from tokenauth.domain.exceptions import AuthError
from tokenauth.domain.store import TokenStore
from tokenauth.domain.stp import StpManager, set_default_manager
from tokenauth.web.interceptor import AuthInterceptor, RuleSet
from tokenauth.web.params import ParamError
from tokenauth.web.profiles import annotation, interceptor, kickout, quickstart, session
from tokenauth.web.responses import auth_error_handler, param_error_handler

__all__ = ["PROFILE_MEMBERS", "build_lifespan", "create_app", "purge_periodically"]

logger = logging.getLogger(__name__)

Lifespan = Callable[[Any], AsyncContextManager[None]]

PROFILE_ROUTES: dict[str, list[BaseRoute]] = {
    "quickstart": quickstart.ROUTES,
    "annotation": annotation.ROUTES,
    "interceptor": interceptor.ROUTES,
    "kickout": kickout.ROUTES,
    "session": session.ROUTES,
}

PROFILE_RULES: dict[str, list[RuleSet]] = {
    "interceptor": [interceptor.route_rules],
}

# "interceptor" is left out of "all": its /auth paths collide with "annotation".
PROFILE_MEMBERS: dict[str, tuple[str, ...]] = {
    "all": ("quickstart", "annotation", "kickout", "session"),
    **{name: (name,) for name in PROFILE_ROUTES},
}


async def purge_periodically(store: TokenStore, period: float) -> None:
    """Drop expired store keys every ``period`` seconds until cancelled."""

    while True:
        await asyncio.sleep(period)
        purged = store.purge_expired()
        if purged:
            logger.debug("Store refreshed", extra={"purged": purged})


def build_lifespan(manager: StpManager, inner: Lifespan | None = None) -> Lifespan:
    """Run the store refresh task next to an optional inner lifespan (the MCP app's)."""

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        period = manager.config.data_refresh_period
        task = asyncio.create_task(purge_periodically(manager.store, period)) if period > 0 else None
        try:
            if inner is None:
                yield
            else:
                async with inner(app):
                    yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    return lifespan


def create_app(
    settings: Settings | None = None,
    profile: str | None = None,
    *,
    manager: StpManager | None = None,
    accounts: AccountRepository | None = None,
) -> Starlette:
    """Build the Starlette app serving ``profile`` (defaults to ``settings.demo``)."""

    settings = settings or Settings()
    profile = (profile or settings.demo).strip().lower()
    if profile not in DEMO_PROFILES:
        raise ConfigError(f"Unknown demo profile '{profile}', expected one of {', '.join(DEMO_PROFILES)}")

    manager = manager if manager is not None else StpManager(settings.auth)
    set_default_manager(manager)
    accounts = accounts if accounts is not None else AccountRepository(settings.accounts_path)

    routes: list[BaseRoute] = []
    rules: list[RuleSet] = []
    for member in PROFILE_MEMBERS[profile]:
        routes.extend(PROFILE_ROUTES[member])
        rules.extend(PROFILE_RULES.get(member, []))

    app_routes: list[BaseRoute] = list(routes)
    mcp_lifespan: Lifespan | None = None
    if settings.mcp_enabled:
        from tokenauth.mcp import mcp

        if not settings.mcp_token:
            logger.warning("MCP admin tools are mounted without a bearer token")
        mcp_app = mcp.http_app(path="/")
        app_routes.append(Mount("/mcp", app=mcp_app))
        mcp_lifespan = mcp_app.lifespan

    app = Starlette(
        routes=app_routes,
        middleware=[Middleware(AuthInterceptor, manager=manager, routes=routes, rules=rules)],
        exception_handlers={AuthError: auth_error_handler, ParamError: param_error_handler},
        lifespan=build_lifespan(manager, mcp_lifespan),
    )
    app.state.settings = settings
    app.state.profile = profile
    app.state.manager = manager
    app.state.accounts = accounts
    logger.info(
        "Application built",
        extra={"profile": profile, "routes": len(routes), "mcp": settings.mcp_enabled},
    )
    return app
