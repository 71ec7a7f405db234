"""Main entrypoint: build the demo app and serve it with uvicorn."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

import uvicorn

from tokenauth.config import DEMO_PROFILES, ConfigError, Settings
from tokenauth.domain.accounts import AccountsError
from tokenauth.web import create_app

logger = logging.getLogger(__name__)

BANNER = """
==========================================
  tokenauth [{demo}] demo started
  Visit http://localhost:{port} to try the endpoints
==========================================
"""


def render_banner(settings: Settings) -> str:
    return BANNER.format(demo=settings.demo, port=settings.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tokenauth", description="Token authentication demo server.")
    parser.add_argument("--host", help="Interface to bind (TOKENAUTH_HOST).")
    parser.add_argument("--port", type=int, help="Port to bind (TOKENAUTH_PORT).")
    parser.add_argument("--demo", choices=DEMO_PROFILES, help="Demo profile to serve (TOKENAUTH_DEMO).")
    parser.add_argument("--log-level", help="Logging level (LOG_LEVEL).")
    parser.add_argument("--accounts", help="Accounts YAML file (TOKENAUTH_ACCOUNTS_PATH).")
    parser.add_argument("--mcp", action="store_true", default=None, help="Mount the MCP admin server at /mcp.")
    return parser


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Environment settings with command-line overrides applied."""

    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    overrides = {
        "host": args.host,
        "port": args.port,
        "demo": args.demo,
        "log_level": args.log_level,
        "accounts_path": args.accounts,
        "mcp_enabled": args.mcp,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return settings
    try:
        return Settings.model_validate({**settings.model_dump(), **overrides})
    except ValueError as exc:
        raise ConfigError(f"Invalid command-line settings: {exc}") from exc


def run(argv: Sequence[str] | None = None) -> int:
    """Start the server; returns the process exit code."""

    try:
        settings = load_settings(argv)
    except ConfigError as exc:
        logging.basicConfig(level="INFO")
        logger.error("Startup failed: %s", exc)
        return 2

    logging.basicConfig(level=settings.log_level)
    try:
        app = create_app(settings)
    except (ConfigError, AccountsError) as exc:
        logger.error("Startup failed: %s", exc)
        return 2

    logger.info(render_banner(settings))
    logger.debug("Token settings: %s", settings.auth.describe())
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    except OSError as exc:
        logger.error("Server failed: %s", exc)
        return 1
    except SystemExit as exc:
        # uvicorn exits instead of raising when the port cannot be bound.
        return exc.code if isinstance(exc.code, int) else 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
