"""
storefront_access.api.routers.session

Session introspection API.

Responsibilities:
- `GET /api/auth/session`: return the signed-in principal through the secure
  API-route pipeline (rate limited per client IP).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from starlette.requests import Request

from storefront_access.security.api_routes import RouteOptions
from storefront_access.security.context import ApiContext
from storefront_access.security.errors import AuthError
from storefront_access.security.services import SecurityServices


def build_router(security: SecurityServices) -> APIRouter:
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @security.api.secure(
        RouteOptions(
            name="auth.session",
            method="GET",
            require_auth=True,
            rate_limit_key="auth.session",
        )
    )
    async def current_session(_: Any, ctx: ApiContext, __: Request) -> dict[str, Any]:
        if ctx.principal is None:
            raise AuthError("Authentication required")
        return {"user": ctx.principal.as_dict()}

    router.add_api_route("/session", current_session, methods=["GET"])
    return router
