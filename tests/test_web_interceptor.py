"""HTTP tests for the route-rule demo."""

from __future__ import annotations

import pytest


@pytest.fixture
def client(client_for):
    return client_for("interceptor")


async def login(client, username: str, password: str = "123456") -> dict:
    response = await client.post("/auth/doLogin", json={"username": username, "password": password})
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_login_returns_role_and_permissions(client) -> None:
    body = await login(client, "admin")

    assert body["code"] == 200
    assert body["msg"] == "Login succeeded"
    assert body["role"] == "admin"
    assert body["permissions"] == ["admin", "user", "goods", "orders"]
    assert body["token"] == client.cookies["satoken"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("username", "password", "message"),
    [("ghost", "123456", "User not found"), ("admin", "bad", "Wrong password")],
)
async def test_login_failures(client, username, password, message) -> None:
    body = await login(client, username, password)

    assert body == {"code": 500, "msg": message, "data": None}


@pytest.mark.asyncio
async def test_public_paths_skip_login(client) -> None:
    response = await client.post("/auth/register")

    assert response.json()["msg"] == "Registered (demo only)"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/auth/isLogin", "/user/list", "/admin/dashboard", "/no/such/page"])
async def test_everything_else_needs_login(client, path) -> None:
    response = await client.get(path)

    assert response.status_code == 401
    assert response.json()["code"] == 11011


@pytest.mark.asyncio
async def test_unknown_path_after_login_is_not_found(client) -> None:
    await login(client, "user")

    response = await client.get("/no/such/page")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_user_account(client) -> None:
    await login(client, "user")

    body = (await client.get("/user/list")).json()
    assert body["users"] == ["user", "admin", "super-admin", "goods-admin"]
    assert body["operator"] == "user"
    assert (await client.get("/user/info/neo")).json()["username"] == "neo"

    assert (await client.get("/admin/dashboard")).json()["code"] == 11041
    assert (await client.get("/goods/list")).json()["code"] == 11051
    assert (await client.get("/notice/list")).status_code == 403


@pytest.mark.asyncio
async def test_admin_account(client) -> None:
    await login(client, "admin")

    dashboard = (await client.get("/admin/dashboard")).json()
    assert dashboard["statistics"]["userCount"] == 1000
    assert (await client.put("/admin/settings")).json()["msg"] == "Settings updated"
    assert (await client.get("/goods/info/42")).json()["goodsId"] == "42"
    assert (await client.put("/orders/cancel/ORD001")).json()["orderId"] == "ORD001"
    assert (await client.get("/comment/list")).json()["code"] == 11051


@pytest.mark.asyncio
async def test_super_admin_reaches_every_module(client) -> None:
    await login(client, "super-admin")

    for path in ("/admin/users", "/user/list", "/goods/list", "/orders/list", "/notice/list", "/comment/list"):
        response = await client.get(path)
        assert response.status_code == 200, path
    assert (await client.delete("/notice/delete/7")).json()["noticeId"] == "7"
    assert (await client.post("/comment/add")).json()["commentId"].startswith("COMMENT")


@pytest.mark.asyncio
async def test_admin_role_without_admin_permission(client) -> None:
    await login(client, "goods-admin")

    assert (await client.post("/goods/add")).json()["msg"] == "Goods added"
    response = await client.get("/admin/dashboard")
    assert response.status_code == 403
    assert response.json()["msg"] == "Missing permission: admin"


@pytest.mark.asyncio
async def test_user_info_and_logout(client) -> None:
    await login(client, "admin")

    info = (await client.get("/auth/userInfo")).json()
    assert info["loginId"] == "admin"
    assert info["role"] == "admin"

    await client.post("/auth/logout")
    client.cookies.clear()

    assert (await client.get("/auth/isLogin")).status_code == 401
