"""HTTP tests for the forced-offline demo."""

from __future__ import annotations

import pytest

from tokenauth.domain.exceptions import NotLoginError


@pytest.fixture
def client(client_for):
    return client_for("kickout")


async def login(client, username: str = "admin", device: str | None = None) -> dict:
    form = {"username": username, "password": "123456"}
    if device:
        form["device"] = device
    body = (await client.post("/api/auth/login", data=form)).json()
    assert body["code"] == 200, body
    return body["data"]


def offline_reason(stp, request_as, token: str) -> str:
    with request_as(token):
        with pytest.raises(NotLoginError) as excinfo:
            stp.check_login()
    return excinfo.value.type


@pytest.mark.asyncio
async def test_login_reports_token(client) -> None:
    data = await login(client, device="PC")

    assert data["userId"] == 10001
    assert data["device"] == "PC"
    assert data["tokenName"] == "satoken"
    assert data["tokenValue"] == client.cookies["satoken"]

    check = (await client.get("/api/auth/check")).json()["data"]
    assert check["isLogin"] is True
    assert check["tokenInfo"]["loginDevice"] == "PC"
    info = (await client.get("/api/auth/info")).json()["data"]
    assert info["username"] == "admin"


@pytest.mark.asyncio
async def test_login_defaults_device(client) -> None:
    assert (await login(client, "zhangsan"))["device"] == "default"


@pytest.mark.asyncio
async def test_login_requires_fields(client) -> None:
    response = await client.post("/api/auth/login", data={"username": "admin"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_check_without_login(client) -> None:
    data = (await client.get("/api/auth/check")).json()["data"]

    assert data == {"isLogin": False, "message": "Not logged in"}
    assert (await client.get("/api/auth/info")).json()["msg"] == "Not logged in"


@pytest.mark.asyncio
async def test_login_multi_creates_one_token_per_device(client, stp) -> None:
    body = (await client.post("/api/auth/login/multi", data={"userId": "10002"})).json()

    devices = body["data"]["devices"]
    assert list(devices) == ["PC", "Mobile", "Tablet"]
    assert stp.get_token_value_list_by_login_id(10002) == list(devices.values())


@pytest.mark.asyncio
async def test_kickout_marks_tokens(client, stp, request_as) -> None:
    token = (await login(client))["tokenValue"]

    response = await client.get("/api/kickout/kickout", params={"userId": "10001"})

    assert response.json()["msg"] == "Account 10001 was kicked out (token kept and marked)"
    assert offline_reason(stp, request_as, token) == NotLoginError.KICK_OUT
    check = (await client.get("/api/kickout/check")).json()["data"]
    assert check == {"isLogin": False, "tokenValue": token, "loginId": None}


@pytest.mark.asyncio
async def test_replaced_by_device(client, stp, request_as) -> None:
    pc = (await login(client, device="PC"))["tokenValue"]
    mobile = (await login(client, device="Mobile"))["tokenValue"]

    await client.get("/api/kickout/replaced/device", params={"userId": "10001", "device": "PC"})

    assert offline_reason(stp, request_as, pc) == NotLoginError.BE_REPLACED
    assert stp.get_token_value_list_by_login_id(10001) == [mobile]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "reason"),
    [
        ("/api/kickout/logout/token", NotLoginError.INVALID_TOKEN),
        ("/api/kickout/kickout/token", NotLoginError.KICK_OUT),
        ("/api/kickout/replaced/token", NotLoginError.BE_REPLACED),
    ],
)
async def test_offline_by_token(client, stp, request_as, path, reason) -> None:
    token = (await login(client))["tokenValue"]

    response = await client.get(path, params={"token": token})

    assert token in response.json()["msg"]
    assert offline_reason(stp, request_as, token) == reason


@pytest.mark.asyncio
async def test_logout_by_device(client, stp, request_as) -> None:
    pc = (await login(client, device="PC"))["tokenValue"]
    await login(client, device="Mobile")

    response = await client.get("/api/kickout/logout/device", params={"userId": "10001", "device": "PC"})

    assert response.json()["msg"] == "Account 10001 was logged out on [PC]"
    assert offline_reason(stp, request_as, pc) == NotLoginError.INVALID_TOKEN


@pytest.mark.asyncio
async def test_non_numeric_user_id_is_bad_request(client) -> None:
    response = await client.get("/api/kickout/logout", params={"userId": "abc"})

    assert response.status_code == 400
    assert response.json()["msg"] == "Parameter 'userId' must be an integer"


@pytest.mark.asyncio
async def test_scenarios(client, stp, request_as) -> None:
    token = (await login(client))["tokenValue"]

    url = "/api/kickout/scenario/abnormal-login"
    normal = (await client.post(url, data={"userId": "10001", "location": "Shanghai"})).json()
    assert normal["msg"] == "Login looks normal"
    with request_as(token):
        assert stp.is_login()

    abnormal = (await client.post(url, data={"userId": "10001", "location": "Paris"})).json()
    assert abnormal["currentLocation"] == "Paris"
    assert offline_reason(stp, request_as, token) == NotLoginError.KICK_OUT

    token = (await login(client))["tokenValue"]
    banned = (await client.post("/api/kickout/scenario/ban-user", data={"userId": "10001", "reason": "spam"})).json()
    assert banned["reason"] == "spam"
    assert offline_reason(stp, request_as, token) == NotLoginError.INVALID_TOKEN

    token = (await login(client))["tokenValue"]
    await client.post("/api/kickout/scenario/account-hijacked", data={"userId": "10001"})
    assert offline_reason(stp, request_as, token) == NotLoginError.KICK_OUT

    token = (await login(client))["tokenValue"]
    await client.post("/api/kickout/scenario/password-change", data={"userId": "10001"})
    assert offline_reason(stp, request_as, token) == NotLoginError.INVALID_TOKEN


@pytest.mark.asyncio
async def test_comparison(client) -> None:
    data = (await client.get("/api/kickout/comparison")).json()["data"]

    assert set(data) == {"logout", "kickout", "replaced", "summary"}
