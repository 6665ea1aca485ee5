from __future__ import annotations

import pytest
from starlette.requests import Request

from storefront_access.auth.request_scope import get_current_request, request_scope
from storefront_access.observability.logging import REDACTED, redact_sensitive
from storefront_access.observability.middleware import client_ip
from storefront_access.security.csrf import generate_csrf_token, validate_csrf_token
from storefront_access.security.middleware import (
    is_public_path,
    is_static_path,
    protected_prefix,
)


def _request(headers: dict[str, str], client: tuple[str, int] | None = ("10.1.2.3", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


@pytest.mark.parametrize(
    ("headers", "client", "expected"),
    [
        ({"x-forwarded-for": "203.0.113.9, 10.0.0.1"}, ("10.1.2.3", 1), "203.0.113.9"),
        ({"x-real-ip": "198.51.100.4"}, ("10.1.2.3", 1), "198.51.100.4"),
        ({"x-client-ip": "192.0.2.8"}, None, "192.0.2.8"),
        ({}, ("10.1.2.3", 1), "10.1.2.3"),
        ({}, None, "unknown"),
    ],
)
def test_client_ip(headers, client, expected) -> None:
    assert client_ip(_request(headers, client)) == expected


def test_path_classification() -> None:
    assert is_public_path("/")
    assert is_public_path("/products/42")
    assert not is_public_path("/profile")

    assert is_static_path("/static/app.js")
    assert is_static_path("/favicon.ico")
    assert is_static_path("/images/logo.png")
    assert not is_static_path("/admin/users")

    assert protected_prefix("/admin") == "/admin"
    assert protected_prefix("/checkout/confirm") == "/checkout"
    assert protected_prefix("/administrator") is None
    assert protected_prefix("/products") is None


def test_request_scope_nests_and_restores() -> None:
    assert get_current_request() is None
    with request_scope("outer"):
        assert get_current_request() == "outer"
        with request_scope("inner"):
            assert get_current_request() == "inner"
        assert get_current_request() == "outer"
    assert get_current_request() is None


def test_csrf_tokens() -> None:
    token = generate_csrf_token()
    assert len(token) >= 32
    assert token != generate_csrf_token()
    assert validate_csrf_token(token, token)
    assert not validate_csrf_token(token, generate_csrf_token())
    assert not validate_csrf_token(None, token)
    assert not validate_csrf_token("", "")


def test_log_redaction() -> None:
    event = {
        "event": "api.failed",
        "Authorization": "Bearer abc",
        "payload": {"email": "a@b.c", "password": "hunter2", "items": [{"token": "t"}]},
        "user_id": "u1",
    }
    assert redact_sensitive(None, "warning", event) == {
        "event": "api.failed",
        "Authorization": REDACTED,
        "payload": {"email": "a@b.c", "password": REDACTED, "items": [{"token": REDACTED}]},
        "user_id": "u1",
    }
