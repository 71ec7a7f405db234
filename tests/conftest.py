"""Shared fixtures for the tokenauth test suite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncIterator, Iterator

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import httpx
import pytest
import pytest_asyncio

from tokenauth.config import AuthConfig, Settings
from tokenauth.domain.context import RequestContext, bind_context
from tokenauth.domain.store import TokenStore
from tokenauth.domain.stp import StpLogic, StpManager
from tokenauth.web import create_app


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> TokenStore:
    return TokenStore(clock=clock)


@pytest.fixture
def make_manager(store: TokenStore):
    """Factory building a manager over the shared fake-clock store."""

    def factory(**config: object) -> StpManager:
        return StpManager(AuthConfig(**config), store=store)

    return factory


@pytest.fixture
def manager(make_manager) -> StpManager:
    return make_manager()


@pytest.fixture
def stp(manager: StpManager) -> StpLogic:
    return manager.default()


@pytest.fixture
def request_context() -> Iterator[RequestContext]:
    """Bind a fresh request context, as the interceptor does per request."""

    with bind_context(RequestContext()) as context:
        yield context


def as_request(token: str | None, name: str = "satoken", **params: object):
    """Context manager binding a request that carries ``token`` in a header."""

    headers = {name: token} if token else {}
    return bind_context(RequestContext(headers=headers, params=dict(params)))


def build_client(profile: str, manager: StpManager, **settings: object) -> httpx.AsyncClient:
    app = create_app(Settings(**settings), profile, manager=manager)
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


@pytest_asyncio.fixture
async def client_for(manager: StpManager) -> AsyncIterator:
    """Factory yielding an httpx client bound to ``create_app(profile)``."""

    clients: list[httpx.AsyncClient] = []

    def factory(profile: str, **settings: object) -> httpx.AsyncClient:
        client = build_client(profile, manager, **settings)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()


@pytest.fixture
def request_as():
    """Return ``as_request`` for tests that switch between several tokens."""

    return as_request
