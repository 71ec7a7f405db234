"""HTTP Basic and HTTP Digest (RFC 2617, MD5) credential checks."""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
import secrets

from tokenauth.domain.context import RequestContext
from tokenauth.domain.exceptions import NotHttpBasicAuthError, NotHttpDigestAuthError
from tokenauth.domain.token_factory import random_string

__all__ = [
    "DEFAULT_REALM",
    "check_http_basic",
    "check_http_digest",
    "digest_challenge",
    "digest_response",
    "parse_digest_header",
]

DEFAULT_REALM = "Sa-Token"

_DIGEST_PARAM_RE = re.compile(r'(\w+)=(?:"([^"]*)"|([^,\s]*))')


def _split_account(account: str) -> tuple[str, str]:
    username, sep, password = account.partition(":")
    if not sep:
        raise ValueError("Account must be written as 'username:password'.")
    return username, password


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def check_http_basic(context: RequestContext, account: str, realm: str = DEFAULT_REALM) -> None:
    """Require ``Authorization: Basic`` credentials equal to ``account``."""

    header = context.header("Authorization") or ""
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        raise NotHttpBasicAuthError(realm)
    try:
        supplied = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise NotHttpBasicAuthError(realm) from exc
    if not secrets.compare_digest(supplied, account):
        raise NotHttpBasicAuthError(realm)


def digest_challenge(realm: str = DEFAULT_REALM) -> str:
    """``WWW-Authenticate`` value sent when digest credentials are missing."""

    return f'Digest realm="{realm}", qop="auth", nonce="{random_string(32)}", opaque="{random_string(32)}"'


def parse_digest_header(header: str) -> dict[str, str]:
    scheme, _, params = header.partition(" ")
    if scheme.lower() != "digest":
        return {}
    parsed: dict[str, str] = {}
    for match in _DIGEST_PARAM_RE.finditer(params):
        key, quoted, bare = match.groups()
        parsed[key.lower()] = quoted if quoted is not None else bare
    return parsed


def digest_response(
    *,
    username: str,
    password: str,
    realm: str,
    method: str,
    uri: str,
    nonce: str,
    qop: str | None = None,
    nc: str | None = None,
    cnonce: str | None = None,
) -> str:
    """Compute the expected ``response`` value of a digest request."""

    ha1 = _md5(f"{username}:{realm}:{password}")
    ha2 = _md5(f"{method.upper()}:{uri}")
    if qop:
        return _md5(f"{ha1}:{nonce}:{nc}:{cnonce}:{qop}:{ha2}")
    return _md5(f"{ha1}:{nonce}:{ha2}")


def check_http_digest(
    context: RequestContext,
    account: str,
    realm: str = DEFAULT_REALM,
) -> None:
    """Require digest credentials matching ``account`` (``username:password``)."""

    username, password = _split_account(account)
    params = parse_digest_header(context.header("Authorization") or "")
    required = ("username", "realm", "nonce", "uri", "response")
    if not params or any(not params.get(name) for name in required):
        raise NotHttpDigestAuthError(digest_challenge(realm))
    if params["username"] != username or params["realm"] != realm:
        raise NotHttpDigestAuthError(digest_challenge(realm))

    expected = digest_response(
        username=username,
        password=password,
        realm=realm,
        method=context.method,
        uri=params["uri"],
        nonce=params["nonce"],
        qop=params.get("qop"),
        nc=params.get("nc"),
        cnonce=params.get("cnonce"),
    )
    if not secrets.compare_digest(expected, params["response"].lower()):
        raise NotHttpDigestAuthError(digest_challenge(realm))
