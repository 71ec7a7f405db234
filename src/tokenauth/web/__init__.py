"""Starlette web layer: app factory, auth interceptor and demo profiles."""

from tokenauth.web.app import create_app

__all__ = ["create_app"]
