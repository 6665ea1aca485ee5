"""
storefront_access.auth.jwt

Session token issuing and validation (PyJWT).

Responsibilities:
- Mint session tokens with the identity provider's claim layout
  (`sub`, `email`, `user_metadata`, `app_metadata`).
- Validate signature and registered claims, reporting *why* a token was
  rejected (`expired` vs `invalid`).

Note:
- The identity provider owns issuance in production; `issue_token` backs the
  dev token endpoint and the test suite.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

REQUIRED_CLAIMS = ("exp", "iat", "iss", "aud", "sub")


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str
    # Clock skew tolerated on exp/iat, in seconds.
    leeway_s: int = 0


class TokenRejection(enum.StrEnum):
    expired = "expired"
    invalid = "invalid"


class JwtValidationError(Exception):
    def __init__(self, reason: TokenRejection, detail: str) -> None:
        super().__init__(f"{reason.value}: {detail}")
        self.reason = reason
        self.detail = detail


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str = "",
    user_metadata: dict[str, Any] | None = None,
    app_metadata: dict[str, Any] | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    issued_at = datetime.now(tz=UTC)
    claims: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "email": email,
        "user_metadata": user_metadata or {},
        "app_metadata": app_metadata or {},
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(claims, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            leeway=cfg.leeway_s,
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except ExpiredSignatureError as e:
        raise JwtValidationError(TokenRejection.expired, str(e)) from e
    except InvalidTokenError as e:
        raise JwtValidationError(TokenRejection.invalid, str(e)) from e
