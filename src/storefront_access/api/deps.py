"""
storefront_access.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, the DB engine and security services.
- Turn route-guard denials into `GuardRedirect` for page endpoints.
"""

from __future__ import annotations

from collections.abc import Sequence

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.rbac import Permission
from storefront_access.security.guards import GuardOptions, GuardRedirect
from storefront_access.security.services import SecurityServices
from storefront_access.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # Prefer the settings the app was built with; fall back to env settings.
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def security_from_app(request: Request) -> SecurityServices:
    # Built once in `storefront_access.api.app.create_app`.
    return request.app.state.security  # type: ignore[attr-defined]


def engine_from_app(request: Request) -> AsyncEngine:
    return request.app.state.engine  # type: ignore[attr-defined]


def guard_page(options: GuardOptions):
    async def _dep(
        request: Request,
        security: SecurityServices = Depends(security_from_app),
    ) -> Principal | None:
        result = await security.guard.guard_route(request, options)
        if not result.allowed:
            raise GuardRedirect(result)
        return result.principal

    return _dep


def require_auth():
    return guard_page(GuardOptions(require_auth=True))


def require_role(role: Role):
    return guard_page(GuardOptions(required_role=role))


def require_permissions(permissions: Sequence[Permission]):
    return guard_page(GuardOptions(required_permissions=tuple(permissions)))


def require_admin():
    return require_role(Role.admin)


def require_moderator():
    return require_role(Role.moderator)


def require_customer():
    return require_role(Role.customer)


# --- Module Notes -----------------------------------------------------------
# `GuardRedirect` is mapped to a 302 by the exception handler registered in
# `api.app.create_app`.
