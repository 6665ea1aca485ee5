"""
storefront_access.security.guards

Page-level route guard.

Responsibilities:
- Decide allow/deny for a page render and name the redirect target.
- Stay side-effect free: callers turn a denial into a redirect themselves
  (see `api.deps` for the FastAPI dependency that does so).
- Provide a JSON variant for API handlers that guard manually.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.rbac import Permission, has_permission, is_role_at_least
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GuardOptions:
    required_role: Role | None = None
    required_permissions: Sequence[Permission] = ()
    allowed_roles: Sequence[Role] = ()
    require_auth: bool = True
    # None means the guard's configured login path.
    redirect_to: str | None = None


@dataclass(frozen=True, slots=True)
class GuardResult:
    allowed: bool
    principal: Principal | None = None
    redirect_to: str | None = None
    error: str | None = None


class GuardRedirect(Exception):
    """
    Raised by page dependencies when a guard denies access.
    The app maps it to a 302 towards `result.redirect_to`.
    """

    def __init__(self, result: GuardResult) -> None:
        super().__init__(result.error or "Access denied")
        self.result = result

    @property
    def location(self) -> str:
        return self.result.redirect_to or "/"


ROUTE_GUARD_PRESETS: Mapping[str, GuardOptions] = {
    "public": GuardOptions(require_auth=False),
    "authenticated": GuardOptions(require_auth=True),
    "admin_only": GuardOptions(required_role=Role.admin),
    "moderator_or_admin": GuardOptions(allowed_roles=(Role.moderator, Role.admin)),
    "customer_or_higher": GuardOptions(required_role=Role.customer),
    "product_management": GuardOptions(required_permissions=(Permission.products_write,)),
    "order_management": GuardOptions(required_permissions=(Permission.orders_manage_all,)),
    "user_management": GuardOptions(required_permissions=(Permission.users_manage_all,)),
}


class RouteGuard:
    def __init__(
        self,
        *,
        resolver: PrincipalResolver,
        login_path: str = "/login",
        unauthorized_path: str = "/unauthorized",
        error_path: str = "/error",
    ) -> None:
        self._resolver = resolver
        self._login_path = login_path
        self._unauthorized_path = unauthorized_path
        self._error_path = error_path

    async def guard_route(self, request: Any, options: GuardOptions | None = None) -> GuardResult:
        options = options or GuardOptions()
        try:
            principal = await self._resolver.resolve_or_none(request, action="guard_route")
            return self._decide(principal, options)
        except Exception:
            log.exception("guard.error", options=repr(options))
            return GuardResult(
                allowed=False, redirect_to=self._error_path, error="Route guard error"
            )

    def _decide(self, principal: Principal | None, options: GuardOptions) -> GuardResult:
        if principal is None:
            if options.require_auth:
                log.warning("guard.denied", reason="not_authenticated")
                return GuardResult(
                    allowed=False,
                    redirect_to=options.redirect_to or self._login_path,
                    error="Authentication required",
                )
            return GuardResult(allowed=True)

        if options.required_role is not None and not is_role_at_least(
            principal.role, options.required_role
        ):
            log.warning(
                "guard.denied",
                reason="insufficient_role",
                user_id=principal.id,
                user_role=principal.role,
                required_role=options.required_role,
            )
            return self._forbidden(principal, f"Role {options.required_role.value} required")

        if options.allowed_roles and principal.role not in options.allowed_roles:
            log.warning(
                "guard.denied",
                reason="role_not_allowed",
                user_id=principal.id,
                user_role=principal.role,
                allowed_roles=[r.value for r in options.allowed_roles],
            )
            return self._forbidden(principal, "Access denied for this role")

        for permission in options.required_permissions:
            if not has_permission(principal.role, permission):
                log.warning(
                    "guard.denied",
                    reason="missing_permission",
                    user_id=principal.id,
                    user_role=principal.role,
                    required_permission=permission,
                )
                return self._forbidden(principal, f"Permission {permission} required")

        log.debug("guard.allowed", user_id=principal.id, user_role=principal.role)
        return GuardResult(allowed=True, principal=principal)

    def _forbidden(self, principal: Principal, error: str) -> GuardResult:
        return GuardResult(
            allowed=False, principal=principal, redirect_to=self._unauthorized_path, error=error
        )

    async def preset(self, request: Any, name: str) -> GuardResult:
        return await self.guard_route(request, ROUTE_GUARD_PRESETS[name])

    async def can_access_admin(self, request: Any) -> bool:
        result = await self.guard_route(request, GuardOptions(required_role=Role.admin))
        return result.allowed

    async def can_access_moderator(self, request: Any) -> bool:
        result = await self.guard_route(request, GuardOptions(required_role=Role.moderator))
        return result.allowed

    async def api_route_guard(
        self, request: Any, options: GuardOptions | None = None
    ) -> tuple[GuardResult, JSONResponse | None]:
        """
        Guard for API handlers that do not use the secure route pipeline.
        Returns the decision and, on denial, a ready 401/403 JSON response.
        """

        result = await self.guard_route(request, options)
        if result.allowed:
            return result, None
        if result.principal is None:
            body = {"error": result.error or "Access denied", "code": "UNAUTHORIZED"}
            return result, JSONResponse(body, status_code=HTTP_401_UNAUTHORIZED)
        body = {"error": result.error or "Access denied", "code": "FORBIDDEN"}
        return result, JSONResponse(body, status_code=HTTP_403_FORBIDDEN)


# --- Module Notes -----------------------------------------------------------
# A guard failure that is not a session problem (e.g. the profile store is down)
# denies with the error path rather than letting the page render.
