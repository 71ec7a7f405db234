"""Tests for the application factory and profile composition."""

from __future__ import annotations

import asyncio

import pytest
from starlette.routing import Mount

from tokenauth.config import DEMO_PROFILES, ConfigError, Settings, default_accounts_path
from tokenauth.domain.accounts import AccountRepository, AccountsError
from tokenauth.domain.stp import get_default_manager
from tokenauth.main import render_banner
from tokenauth.web import create_app
from tokenauth.web.app import purge_periodically


def paths(app) -> set[str]:
    return {route.path for route in app.routes}


def test_unknown_profile_is_rejected(manager) -> None:
    with pytest.raises(ConfigError):
        create_app(Settings(), "nope", manager=manager)


def test_missing_accounts_file(manager, tmp_path) -> None:
    with pytest.raises(AccountsError):
        create_app(Settings(accounts_path=tmp_path / "absent.yaml"), "quickstart", manager=manager)


def test_all_profile_combines_demos_without_interceptor(manager) -> None:
    app = create_app(Settings(), "all", manager=manager)

    routes = paths(app)
    assert {"/acc/doLogin", "/basic/info", "/api/auth/login", "/session/login"} <= routes
    assert "/goods/list" not in routes
    assert app.state.profile == "all"
    assert get_default_manager() is manager


def test_profile_defaults_to_settings_demo(manager) -> None:
    app = create_app(Settings(demo="session"), manager=manager)

    assert app.state.profile == "session"
    assert all(path.startswith("/session/") for path in paths(app))


def test_mcp_mount(manager) -> None:
    app = create_app(Settings(mcp_enabled=True, mcp_token="secret"), "quickstart", manager=manager)

    mounts = [route for route in app.routes if isinstance(route, Mount)]
    assert [mount.path for mount in mounts] == ["/mcp"]


@pytest.mark.asyncio
async def test_interceptor_public_path_is_not_guarded(client_for) -> None:
    client = client_for("interceptor")

    response = await client.get("/favicon.ico")

    # Public path: not rejected by the login rule, just missing.
    assert response.status_code == 404


@pytest.mark.parametrize("profile", DEMO_PROFILES)
def test_every_profile_builds_and_announces_itself(manager, profile) -> None:
    settings = Settings(demo=profile, port=8080)

    app = create_app(settings, manager=manager)

    assert app.state.profile == profile
    assert app.routes
    assert f"tokenauth [{profile}] demo started" in render_banner(settings)


def test_injected_manager_and_accounts_are_used(manager) -> None:
    accounts = AccountRepository(default_accounts_path())

    app = create_app(Settings(), "quickstart", manager=manager, accounts=accounts)

    assert app.state.manager is manager
    assert app.state.accounts is accounts


@pytest.mark.asyncio
async def test_purge_task_drops_expired_keys(make_manager, store, clock, request_as, monkeypatch) -> None:
    stp = make_manager(timeout=100).default()
    with request_as(None):
        for login_id in range(1, 6):
            stp.login(login_id)
    clock.advance(1000)

    purged: list[int] = []
    purge = store.purge_expired

    def recording_purge() -> int:
        purged.append(purge())
        return purged[-1]

    monkeypatch.setattr(store, "purge_expired", recording_purge)
    task = asyncio.create_task(purge_periodically(store, 0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert purged[0] >= 10
    assert purge() == 0


@pytest.mark.asyncio
async def test_lifespan_runs_purge_task(manager) -> None:
    app = create_app(Settings(), "quickstart", manager=manager)

    def purge_tasks() -> list[asyncio.Task]:
        return [task for task in asyncio.all_tasks() if task.get_coro().__name__ == "purge_periodically"]

    async with app.router.lifespan_context(app):
        running = purge_tasks()
        assert len(running) == 1

    assert running[0].done()
    assert purge_tasks() == []


@pytest.mark.asyncio
async def test_lifespan_without_refresh_period(make_manager) -> None:
    app = create_app(Settings(), "quickstart", manager=make_manager(data_refresh_period=-1))

    async with app.router.lifespan_context(app):
        assert not [task for task in asyncio.all_tasks() if task.get_coro().__name__ == "purge_periodically"]
