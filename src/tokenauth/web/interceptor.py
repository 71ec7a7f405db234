"""ASGI middleware that authorizes every HTTP request before it reaches an endpoint."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Match
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tokenauth.domain.checks import is_ignored, run_checks
from tokenauth.domain.context import RequestContext, bind_context
from tokenauth.domain.exceptions import AuthError, BackResult, StopMatch
from tokenauth.domain.router import RouteRules, is_match_any
from tokenauth.domain.stp import StpManager
from tokenauth.web.responses import auth_error_response, back_response

__all__ = ["AuthInterceptor", "RuleSet"]

logger = logging.getLogger(__name__)

RuleSet = Callable[[RouteRules, StpManager], None]

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_JSON_TYPE = "application/json"


class AuthInterceptor:
    """Bind the request context, run endpoint checks and route rules, then call the app.

    Cookies and headers queued on the context (for example by ``login``) are
    appended to whatever response the app sends.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        manager: StpManager,
        routes: Sequence[BaseRoute],
        rules: Iterable[RuleSet] = (),
        skip_paths: Sequence[str] = ("/mcp", "/mcp/**"),
    ) -> None:
        self.app = app
        self.manager = manager
        self.routes = list(routes)
        self.rules = list(rules)
        self.skip_paths = list(skip_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or is_match_any(self.skip_paths, scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        body = await request.body()
        context = RequestContext(
            method=request.method,
            path=request.url.path,
            headers=dict(request.headers),
            cookies=dict(request.cookies),
            params=await _collect_params(request, body),
        )
        replay = _replaying_receive(body, receive)

        async def send_with_auth(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for cookie in _render_cookies(context.response_cookies):
                    headers.append("set-cookie", cookie)
                for name, value in context.response_headers.items():
                    headers[name] = value
            await send(message)

        with bind_context(context):
            try:
                self._authorize(scope)
            except AuthError as exc:
                logger.info(
                    "Request rejected",
                    extra={"path": context.path, "method": context.method, "code": exc.code},
                )
                await auth_error_response(exc)(scope, replay, send_with_auth)
                return
            except BackResult as exc:
                await back_response(exc.result)(scope, replay, send_with_auth)
                return
            await self.app(scope, replay, send_with_auth)

    def _authorize(self, scope: Scope) -> None:
        endpoint = self._resolve_endpoint(scope)
        if endpoint is not None:
            if is_ignored(endpoint):
                logger.debug("Auth skipped for ignored endpoint", extra={"path": scope["path"]})
                return
            run_checks(endpoint, self.manager)
        if not self.rules:
            return
        rules = RouteRules(scope["path"], scope["method"])
        for rule_set in self.rules:
            try:
                rule_set(rules, self.manager)
            except StopMatch:
                break

    def _resolve_endpoint(self, scope: Scope) -> Any:
        for route in self.routes:
            match, child_scope = route.matches(scope)
            if match == Match.FULL:
                return child_scope.get("endpoint")
        return None


async def _collect_params(request: Request, body: bytes) -> dict[str, Any]:
    params: dict[str, Any] = dict(request.query_params)
    if not body:
        return params
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    try:
        if content_type in _FORM_TYPES:
            async with request.form() as form:
                params.update((key, value) for key, value in form.multi_items() if isinstance(value, str))
        elif content_type == _JSON_TYPE:
            payload = await request.json()
            if isinstance(payload, dict):
                params.update(payload)
    except (HTTPException, ValueError):
        logger.debug("Ignoring malformed request body", extra={"path": request.url.path})
    return params


def _render_cookies(cookies: Iterable[dict[str, Any]]) -> list[str]:
    """Serialize queued cookies exactly as ``Response.set_cookie`` does."""

    response = Response()
    for cookie in cookies:
        response.set_cookie(**cookie)
    return [value.decode("latin-1") for key, value in response.raw_headers if key == b"set-cookie"]


def _replaying_receive(body: bytes, receive: Receive) -> Receive:
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
