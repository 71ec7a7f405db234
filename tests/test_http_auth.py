"""Tests for HTTP Basic and Digest credential checks."""

from __future__ import annotations

import base64

import pytest

from tokenauth.domain.context import RequestContext
from tokenauth.domain.exceptions import NotHttpBasicAuthError, NotHttpDigestAuthError
from tokenauth.domain.http_auth import (
    check_http_basic,
    check_http_digest,
    digest_challenge,
    digest_response,
    parse_digest_header,
)


def basic_context(credentials: str) -> RequestContext:
    encoded = base64.b64encode(credentials.encode()).decode()
    return RequestContext(headers={"Authorization": f"Basic {encoded}"})


def digest_header(**values: str) -> str:
    return "Digest " + ", ".join(f'{key}="{value}"' for key, value in values.items())


def test_basic_accepts_matching_account() -> None:
    check_http_basic(basic_context("sa:123456"), "sa:123456")


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer abc"},
        {"Authorization": "Basic !!!not-base64"},
        {"Authorization": "Basic " + base64.b64encode(b"sa:wrong").decode()},
    ],
)
def test_basic_rejects_bad_credentials(headers) -> None:
    with pytest.raises(NotHttpBasicAuthError) as excinfo:
        check_http_basic(RequestContext(headers=headers), "sa:123456", realm="demo")

    assert excinfo.value.headers()["WWW-Authenticate"] == 'Basic Realm="demo"'
    assert excinfo.value.status_code == 401


def test_parse_digest_header() -> None:
    parsed = parse_digest_header('Digest username="sa", qop=auth, nc=00000001, uri="/basic/report"')

    assert parsed == {"username": "sa", "qop": "auth", "nc": "00000001", "uri": "/basic/report"}
    assert parse_digest_header("Basic abc") == {}


def test_digest_challenge_names_realm() -> None:
    challenge = digest_challenge("demo")

    assert challenge.startswith('Digest realm="demo", qop="auth", nonce="')
    assert 'opaque="' in challenge


def test_digest_accepts_qop_response() -> None:
    values = {
        "username": "sa",
        "realm": "Sa-Token",
        "nonce": "abc123",
        "uri": "/basic/report",
        "qop": "auth",
        "nc": "00000001",
        "cnonce": "xyz",
    }
    response = digest_response(password="123456", method="GET", **values)
    context = RequestContext(method="GET", headers={"Authorization": digest_header(response=response, **values)})

    check_http_digest(context, "sa:123456")


def test_digest_accepts_legacy_response() -> None:
    values = {"username": "sa", "realm": "Sa-Token", "nonce": "n1", "uri": "/basic/report"}
    response = digest_response(password="123456", method="POST", **values)
    context = RequestContext(method="POST", headers={"Authorization": digest_header(response=response, **values)})

    check_http_digest(context, "sa:123456")


@pytest.mark.parametrize(
    "override",
    [
        {"username": "other"},
        {"realm": "elsewhere"},
        {"response": "0" * 32},
    ],
)
def test_digest_rejects_mismatch(override) -> None:
    values = {"username": "sa", "realm": "Sa-Token", "nonce": "n1", "uri": "/basic/report"}
    values["response"] = digest_response(password="123456", method="GET", **values)
    values.update(override)
    context = RequestContext(method="GET", headers={"Authorization": digest_header(**values)})

    with pytest.raises(NotHttpDigestAuthError) as excinfo:
        check_http_digest(context, "sa:123456")

    assert excinfo.value.headers()["WWW-Authenticate"].startswith('Digest realm="Sa-Token"')


def test_digest_requires_header() -> None:
    with pytest.raises(NotHttpDigestAuthError):
        check_http_digest(RequestContext(), "sa:123456")


def test_digest_account_must_have_password() -> None:
    with pytest.raises(ValueError):
        check_http_digest(RequestContext(), "no-colon")
