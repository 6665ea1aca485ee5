"""
storefront_access.api.routers.profile

Customer profile API.

Responsibilities:
- `GET /api/profile/csrf`: issue a CSRF token (body + cookie) for form posts.
- `PUT /api/profile`: update the caller's own profile row. Requires a session,
  `profile:write`, and a CSRF header matching the cookie.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import JSONResponse

from storefront_access.auth.rbac import Permission
from storefront_access.db.repositories.customers import CustomerRepo
from storefront_access.observability.logging import get_logger
from storefront_access.security.api_routes import RouteOptions
from storefront_access.security.context import ApiContext
from storefront_access.security.csrf import generate_csrf_token, validate_csrf_token
from storefront_access.security.errors import AuthError, ErrorCode, PermissionDeniedError
from storefront_access.security.schemas import UpdateProfileInput
from storefront_access.security.services import SecurityServices
from storefront_access.settings import Settings

log = get_logger(__name__)


def build_router(security: SecurityServices, settings: Settings) -> APIRouter:
    router = APIRouter(prefix="/api/profile", tags=["profile"])

    @security.api.secure(RouteOptions(name="profile.csrf", method="GET"))
    async def issue_csrf_token(_: Any, __: ApiContext, ___: Request) -> JSONResponse:
        token = generate_csrf_token()
        response = JSONResponse({"csrfToken": token})
        response.set_cookie(
            settings.csrf_cookie_name,
            token,
            httponly=False,
            samesite="strict",
            secure=settings.env == "prod",
        )
        return response

    @security.api.secure(
        RouteOptions(
            name="profile.update",
            method="PUT",
            schema=UpdateProfileInput,
            require_auth=True,
            required_permissions=(Permission.profile_write,),
            rate_limit_key="profile.update",
        )
    )
    async def update_profile(
        data: UpdateProfileInput, ctx: ApiContext, request: Request
    ) -> dict[str, Any]:
        if ctx.principal is None:
            raise AuthError("Authentication required")
        # Double-submit check: the header must echo the cookie set by /csrf.
        if not validate_csrf_token(
            request.headers.get(settings.csrf_header_name),
            request.cookies.get(settings.csrf_cookie_name),
        ):
            raise PermissionDeniedError("Invalid CSRF token", code=ErrorCode.invalid_csrf_token)

        async with request.app.state.sessionmaker() as session:
            await CustomerRepo(session).update_profile(
                customer_id=ctx.principal.id,
                email=ctx.principal.email,
                **data.model_dump(),
            )
            await session.commit()
        log.info("profile.updated", user_id=ctx.principal.id)
        return {"profile": data.model_dump(by_alias=True)}

    router.add_api_route("/csrf", issue_csrf_token, methods=["GET"])
    router.add_api_route("", update_profile, methods=["PUT"])
    return router
