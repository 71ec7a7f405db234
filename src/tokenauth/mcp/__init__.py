"""MCP admin surface for the tokenauth server."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from fastmcp import FastMCP

from tokenauth.config import parse_scopes
from tokenauth.domain.authentication import AdminTokenAuthProvider

__all__ = ["mcp"]

load_dotenv()


def _build_auth_provider() -> AdminTokenAuthProvider | None:
    # Without a static token the mount stays open; create_app logs a warning.
    token = os.getenv("MCP_AUTH_TOKEN") or os.getenv("MCP_ACCESS_TOKEN")
    if not token:
        return None
    return AdminTokenAuthProvider(
        static_token=token,
        base_url=os.getenv("MCP_PUBLIC_URL"),
        required_scopes=parse_scopes(os.getenv("MCP_AUTH_SCOPES")) or ["tokenauth:admin"],
    )


mcp = FastMCP(
    name="tokenauth admin",
    instructions="Inspect tokens and sessions, force accounts offline and manage service bans.",
    auth=_build_auth_provider(),
)

# Register resources and tools on import.
from tokenauth.mcp import resources as _mcp_resources  # noqa: F401,E402
from tokenauth.mcp import tools as _mcp_tools  # noqa: F401,E402
