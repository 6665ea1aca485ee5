"""
storefront_access.auth.session

Session transport: "given a request, expose `get_user()`".

Responsibilities:
- Define the session contract consumed by principal resolution.
- Provide the JWT implementation (bearer header or session cookie).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from storefront_access.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    TokenRejection,
    decode_and_validate,
)
from storefront_access.security.errors import SessionTransportError


@dataclass(frozen=True, slots=True)
class SessionUser:
    id: str
    email: str = ""
    user_metadata: dict[str, Any] = field(default_factory=dict)
    app_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SessionUserResult:
    # `error` set means "no usable session" (missing/expired/invalid token).
    user: SessionUser | None = None
    error: str | None = None


class SessionClient(Protocol):
    async def get_user(self) -> SessionUserResult: ...


class SessionTransport(Protocol):
    def client_for(self, request: Any) -> SessionClient: ...


def _bearer_token(request: Any) -> str | None:
    headers = getattr(request, "headers", None)
    if headers is None:
        return None
    value = headers.get("authorization") or ""
    scheme, _, credentials = value.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def _cookie_token(request: Any, cookie_name: str) -> str | None:
    cookies = getattr(request, "cookies", None) or {}
    value = cookies.get(cookie_name)
    return value or None


def session_user_from_claims(claims: dict[str, Any]) -> SessionUser:
    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise SessionTransportError("session subject missing")
    email = claims.get("email") or ""
    user_metadata = claims.get("user_metadata") or {}
    app_metadata = claims.get("app_metadata") or {}
    if not isinstance(email, str):
        raise SessionTransportError("session email is not a string")
    if not isinstance(user_metadata, dict) or not isinstance(app_metadata, dict):
        raise SessionTransportError("session metadata is not an object")
    return SessionUser(
        id=subject,
        email=email,
        user_metadata=user_metadata,
        app_metadata=app_metadata,
    )


class JwtSessionClient:
    def __init__(self, *, cfg: JwtConfig, token: str | None) -> None:
        self._cfg = cfg
        self._token = token

    async def get_user(self) -> SessionUserResult:
        if not self._token:
            return SessionUserResult(error="Auth session missing")
        try:
            claims = decode_and_validate(cfg=self._cfg, token=self._token)
        except JwtValidationError as e:
            if e.reason is TokenRejection.expired:
                return SessionUserResult(error="Session expired")
            return SessionUserResult(error=f"Invalid session token: {e.detail}")
        return SessionUserResult(user=session_user_from_claims(claims))


class JwtSessionTransport:
    """
    Reads the session token from `Authorization: Bearer ...`, falling back to
    the session cookie.
    """

    def __init__(self, *, cfg: JwtConfig, cookie_name: str) -> None:
        self._cfg = cfg
        self._cookie_name = cookie_name

    def client_for(self, request: Any) -> JwtSessionClient:
        token = None
        if request is not None:
            token = _bearer_token(request) or _cookie_token(request, self._cookie_name)
        return JwtSessionClient(cfg=self._cfg, token=token)


# --- Module Notes -----------------------------------------------------------
# Structurally broken claims raise `SessionTransportError`; resolution callers
# log it and continue as if no principal were present.
