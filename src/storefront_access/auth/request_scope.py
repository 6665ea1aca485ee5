"""
storefront_access.auth.request_scope

Request-scoped handle for code paths that receive no request argument.

Responsibilities:
- Publish the in-flight request through a context variable.
- Let server actions resolve the principal of the request that invoked them.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any

_current_request: ContextVar[Any | None] = ContextVar("storefront_current_request", default=None)


def bind_request(request: Any) -> Token:
    return _current_request.set(request)


def reset_request(token: Token) -> None:
    _current_request.reset(token)


def get_current_request() -> Any | None:
    return _current_request.get()


@contextmanager
def request_scope(request: Any) -> Iterator[Any]:
    """
    Bind `request` for the duration of the block.
    Used by the HTTP middleware and by callers (workers, tests) outside HTTP.
    """

    token = bind_request(request)
    try:
        yield request
    finally:
        reset_request(token)


# --- Module Notes -----------------------------------------------------------
# ContextVar values are copied into tasks spawned from the request, so handlers
# that fan out with asyncio still see the originating request.
