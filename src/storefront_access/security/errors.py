"""
storefront_access.security.errors

Error taxonomy for the access-control layer.

Responsibilities:
- Tag every failure with an `ErrorKind` so callers can branch on `err.kind`
  instead of runtime type tests.
- Carry a stable machine-readable `code` and optional `details`.
- Map kinds to HTTP status codes for the API pipeline.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class ErrorKind(enum.StrEnum):
    auth = "AuthError"
    permission = "PermissionError"
    validation = "ValidationError"
    rate_limit = "RateLimitError"
    unknown = "UnknownError"


class ErrorCode(enum.StrEnum):
    not_authenticated = "NOT_AUTHENTICATED"
    insufficient_role = "INSUFFICIENT_ROLE"
    insufficient_permissions = "INSUFFICIENT_PERMISSIONS"
    resource_access_denied = "RESOURCE_ACCESS_DENIED"
    validation_error = "VALIDATION_ERROR"
    rate_limited = "RATE_LIMITED"
    method_not_allowed = "METHOD_NOT_ALLOWED"
    invalid_request_body = "INVALID_REQUEST_BODY"
    invalid_csrf_token = "INVALID_CSRF_TOKEN"
    internal_error = "INTERNAL_ERROR"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.auth: HTTP_401_UNAUTHORIZED,
    ErrorKind.permission: HTTP_403_FORBIDDEN,
    ErrorKind.validation: HTTP_400_BAD_REQUEST,
    ErrorKind.rate_limit: HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.unknown: HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND[kind]


@dataclass(frozen=True, slots=True)
class FieldIssue:
    path: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


class SecurityError(Exception):
    """
    Base class for failures surfaced by the pipelines and guards.
    """

    kind: ErrorKind = ErrorKind.unknown
    default_code: ErrorCode = ErrorCode.internal_error

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = str(code or self.default_code)
        self.details = details

    def to_envelope(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthError(SecurityError):
    kind = ErrorKind.auth
    default_code = ErrorCode.not_authenticated


class PermissionDeniedError(SecurityError):
    # Authenticated but forbidden (role, permission or resource ownership).
    kind = ErrorKind.permission
    default_code = ErrorCode.insufficient_permissions


class InputValidationError(SecurityError):
    kind = ErrorKind.validation
    default_code = ErrorCode.validation_error

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        issues: list[FieldIssue] | None = None,
        code: ErrorCode | str | None = None,
    ) -> None:
        self.issues = list(issues or [])
        details = [i.as_dict() for i in self.issues] or None
        super().__init__(message, code=code, details=details)

    @classmethod
    def from_issues(cls, issues: list[FieldIssue]) -> InputValidationError:
        summary = ", ".join(f"{i.path}: {i.message}" if i.path else i.message for i in issues)
        return cls(f"Validation failed: {summary}", issues=issues)


class RateLimitError(SecurityError):
    kind = ErrorKind.rate_limit
    default_code = ErrorCode.rate_limited

    def __init__(self, message: str = "Too many requests. Please try again later.") -> None:
        super().__init__(message)


class ActionFailedError(SecurityError):
    # Generic stand-in for unexpected exceptions; never carries the original message.
    kind = ErrorKind.unknown
    default_code = ErrorCode.internal_error


class SessionTransportError(Exception):
    """
    Malformed session data. Callers treat it as "no principal".
    """


# --- Module Notes -----------------------------------------------------------
# `PermissionDeniedError`/`InputValidationError` avoid shadowing the builtin
# `PermissionError` and pydantic's `ValidationError`; their `kind` values keep
# the canonical names.
