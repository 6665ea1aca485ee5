"""
storefront_access.security.authorization

Authentication/authorization step shared by the action and API pipelines.

Responsibilities:
- Describe what a wrapped handler requires (`AccessRequirements`).
- Check a resolved principal against it, raising `AuthError` or
  `PermissionDeniedError` with a stable code.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.rbac import Permission, has_permission, is_role_at_least
from storefront_access.security.errors import AuthError, ErrorCode, PermissionDeniedError


@dataclass(frozen=True, slots=True)
class AccessRequirements:
    require_auth: bool = False
    required_role: Role | None = None
    required_permissions: Sequence[Permission] = field(default_factory=tuple)
    allow_self: bool = False

    @property
    def needs_principal(self) -> bool:
        # Any role/permission/ownership rule implies authentication.
        return (
            self.require_auth
            or self.required_role is not None
            or bool(self.required_permissions)
            or self.allow_self
        )


def authorize(
    principal: Principal | None,
    requirements: AccessRequirements,
    *,
    owner_id: str | None = None,
) -> Principal | None:
    if not requirements.needs_principal:
        return principal
    if principal is None:
        raise AuthError("Authentication required", code=ErrorCode.not_authenticated)

    role = requirements.required_role
    if role is not None and not is_role_at_least(principal.role, role):
        raise PermissionDeniedError(f"Role {role.value} required", code=ErrorCode.insufficient_role)

    if requirements.allow_self and owner_id is not None:
        if principal.id == owner_id:
            return principal
        if not requirements.required_permissions and not has_permission(
            principal.role, Permission.all
        ):
            raise PermissionDeniedError(
                "Access denied to this resource", code=ErrorCode.resource_access_denied
            )

    for permission in requirements.required_permissions:
        if not has_permission(principal.role, permission):
            raise PermissionDeniedError(
                f"Permission {Permission(permission).value} required",
                code=ErrorCode.insufficient_permissions,
            )
    return principal


# --- Module Notes -----------------------------------------------------------
# Without an owner id, `allow_self` adds nothing: the permission checks apply
# exactly as if it were unset.
