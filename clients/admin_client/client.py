"""Multi-stage smoke client: logs in over HTTP, then drives the MCP admin tools."""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import asdict, is_dataclass
from typing import Any

import httpx
from fastmcp import Client

BASE_URL = os.getenv("TOKENAUTH_URL", "http://127.0.0.1:8080")
SERVER = os.getenv("MCP_SERVER", f"{BASE_URL}/mcp/")
AUTH_TOKEN = os.getenv("MCP_AUTH_TOKEN") or os.getenv("MCP_ACCESS_TOKEN")
USERNAME = os.getenv("TOKENAUTH_TEST_USERNAME", "admin")
PASSWORD = os.getenv("TOKENAUTH_TEST_PASSWORD", "123456")
DEVICE = os.getenv("TOKENAUTH_TEST_DEVICE", "PC")


def _serialize(value: Any) -> Any:
    """Convert FastMCP client objects into JSON-friendly structures."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump())
    if is_dataclass(value):
        return _serialize(asdict(value))
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(v) for v in value]
    return str(value)


def _print_header(title: str) -> None:
    line = "=" * len(title)
    print(f"\n{title}\n{line}")


def _dump(label: str, payload: Any) -> None:
    print(f"{label}:")
    print(json.dumps(_serialize(payload), indent=2, ensure_ascii=False))


async def _stage_login(http: httpx.AsyncClient) -> dict[str, Any] | None:
    _print_header("Stage 1: HTTP login")
    response = await http.post(
        "/api/auth/login",
        data={"username": USERNAME, "password": PASSWORD, "device": DEVICE},
    )
    body = response.json()
    _dump("Login Result", body)
    if response.status_code != 200 or body.get("code") != 200:
        print("Login failed; start the server with the kickout or all profile.")
        return None
    return body["data"]


async def _stage_inventory(client: Client) -> None:
    _print_header("Stage 2: MCP inventory")
    tools = await client.list_tools()
    templates = await client.list_resource_templates()
    resources = await client.list_resources()
    print(f"Discovered {len(resources)} resources, {len(templates)} templates, {len(tools)} tools.")
    _dump("Config", await client.read_resource("tokenauth://config"))


async def _stage_admin(client: Client, login: dict[str, Any]) -> None:
    _print_header("Stage 3: MCP admin tools")
    token = login["tokenValue"]
    user_id = str(login["userId"])
    _dump("Token Info", (await client.call_tool("token_info", {"token": token})).data)
    _dump(
        "Terminals",
        await client.read_resource(f"tokenauth://accounts/{user_id}/terminals"),
    )
    _dump(
        "Kickout",
        (await client.call_tool("force_offline", {"login_id": user_id, "mode": "kickout"})).data,
    )
    _dump("Token Info After Kickout", (await client.call_tool("token_info", {"token": token})).data)


async def main() -> None:
    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        login = await _stage_login(http)
    if login is None:
        return

    print(f"Connecting to MCP server at {SERVER}")
    client_kwargs: dict[str, Any] = {}
    if AUTH_TOKEN:
        client_kwargs["auth"] = AUTH_TOKEN
    async with Client(SERVER, **client_kwargs) as client:
        await client.ping()
        await _stage_inventory(client)
        await _stage_admin(client, login)


if __name__ == "__main__":
    asyncio.run(main())
