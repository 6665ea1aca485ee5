"""
storefront_access.security.csrf

CSRF token helpers for form posts.
"""

from __future__ import annotations

import hmac
import secrets


def generate_csrf_token(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)


def validate_csrf_token(token: str | None, expected: str | None) -> bool:
    if not token or not expected:
        return False
    return hmac.compare_digest(token.encode(), expected.encode())
