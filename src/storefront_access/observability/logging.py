"""
storefront_access.observability.logging

Structured logging for security decisions.

Responsibilities:
- Configure `structlog` to emit one JSON object per event.
- Mask credential-bearing fields before anything is rendered.
- Provide bound loggers and a duration helper for pipeline timing.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog

REDACTED = "[REDACTED]"

# Matched case-insensitively against event keys (and nested mapping keys).
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"authorization", "cookie", "password", "token", "access_token", "jwt_secret", "secret"}
)


def configure_logging(*, service_name: str, level: str) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _mask(v) for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [_mask(v) for v in value]
    return value


def redact_sensitive(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    structlog processor: replace values of `SENSITIVE_KEYS` with a marker.
    """

    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS else _mask(value)
        for key, value in event_dict.items()
    }


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def elapsed_ms(started: float, now: float) -> int:
    # Both arguments come from `time.perf_counter()`.
    return int((now - started) * 1000)


# --- Module Notes -----------------------------------------------------------
# Request-scoped metadata (request id, path, client ip) is bound via contextvars
# in `observability.middleware`.
