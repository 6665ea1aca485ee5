"""
storefront_access.auth.rbac

Role-based permission engine.

Responsibilities:
- Define the closed `Permission` enumeration (`*` grants everything).
- Map every `Role` to its own permission set and its inherited roles.
- Answer permission and role-order questions deterministically.

All functions are pure. Values that are not a known `Role` resolve to an empty
permission set (deny-by-default).
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping

from storefront_access.auth.models import Role


class Permission(enum.StrEnum):
    products_read = "products:read"
    products_write = "products:write"
    products_delete = "products:delete"

    categories_read = "categories:read"
    categories_write = "categories:write"
    categories_delete = "categories:delete"

    orders_read = "orders:read"
    orders_write = "orders:write"
    orders_create = "orders:create"
    orders_update = "orders:update"
    orders_delete = "orders:delete"
    orders_manage_all = "orders:manage_all"

    cart_read = "cart:read"
    cart_write = "cart:write"

    profile_read = "profile:read"
    profile_write = "profile:write"
    users_read = "users:read"
    users_write = "users:write"
    users_delete = "users:delete"
    users_manage_all = "users:manage_all"

    admin_dashboard = "admin:dashboard"
    admin_settings = "admin:settings"
    admin_reports = "admin:reports"

    system_logs = "system:logs"
    system_monitoring = "system:monitoring"

    all = "*"


# Permissions granted directly to each role (inheritance is applied separately).
ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = {
    Role.admin: frozenset({Permission.all}),
    Role.moderator: frozenset(
        {
            Permission.products_read,
            Permission.products_write,
            Permission.categories_read,
            Permission.categories_write,
            Permission.orders_read,
            Permission.orders_update,
            Permission.orders_manage_all,
            Permission.users_read,
            Permission.admin_reports,
        }
    ),
    Role.customer: frozenset(
        {
            Permission.cart_read,
            Permission.cart_write,
            Permission.orders_read,
            Permission.orders_create,
            Permission.profile_read,
            Permission.profile_write,
            Permission.products_read,
            Permission.categories_read,
        }
    ),
}

# Roles whose permissions a role inherits.
ROLE_HIERARCHY: Mapping[Role, frozenset[Role]] = {
    Role.admin: frozenset({Role.moderator, Role.customer}),
    Role.moderator: frozenset({Role.customer}),
    Role.customer: frozenset(),
}

PERMISSION_GROUPS: Mapping[str, tuple[Permission, ...]] = {
    "product_management": (
        Permission.products_read,
        Permission.products_write,
        Permission.products_delete,
        Permission.categories_read,
        Permission.categories_write,
        Permission.categories_delete,
    ),
    "order_management": (
        Permission.orders_read,
        Permission.orders_write,
        Permission.orders_create,
        Permission.orders_update,
        Permission.orders_delete,
        Permission.orders_manage_all,
    ),
    "user_management": (
        Permission.users_read,
        Permission.users_write,
        Permission.users_delete,
        Permission.users_manage_all,
    ),
    "admin_features": (
        Permission.admin_dashboard,
        Permission.admin_settings,
        Permission.admin_reports,
        Permission.system_logs,
        Permission.system_monitoring,
    ),
    "customer_features": (
        Permission.cart_read,
        Permission.cart_write,
        Permission.profile_read,
        Permission.profile_write,
        Permission.orders_read,
        Permission.orders_create,
    ),
}


def _build_effective() -> dict[Role, frozenset[Permission]]:
    effective: dict[Role, frozenset[Permission]] = {}
    for role in Role:
        perms = set(ROLE_PERMISSIONS[role])
        for inherited in ROLE_HIERARCHY[role]:
            perms |= ROLE_PERMISSIONS[inherited]
        effective[role] = frozenset(perms)
    return effective


# Total over `Role`: building it fails at import time if a role is left unmapped.
_EFFECTIVE_PERMISSIONS = _build_effective()


def role_permissions(role: Role | str | None) -> frozenset[Permission]:
    parsed = Role.parse(role)
    if parsed is None:
        return frozenset()
    return _EFFECTIVE_PERMISSIONS[parsed]


def _coerce_permission(permission: Permission | str) -> Permission | None:
    try:
        return Permission(permission)
    except ValueError:
        return None


def has_permission(role: Role | str | None, permission: Permission | str) -> bool:
    granted = role_permissions(role)
    if Permission.all in granted:
        return True
    wanted = _coerce_permission(permission)
    return wanted is not None and wanted in granted


def has_any_permission(role: Role | str | None, permissions: Iterable[Permission | str]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: Role | str | None, permissions: Iterable[Permission | str]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def is_role_at_least(role: Role | str | None, required: Role | str) -> bool:
    actual = Role.parse(role)
    wanted = Role.parse(required)
    if actual is None or wanted is None:
        return False
    return actual == wanted or wanted in ROLE_HIERARCHY[actual]


def get_highest_role(roles: Iterable[Role | str]) -> Role:
    parsed = {Role.parse(r) for r in roles}
    if Role.admin in parsed:
        return Role.admin
    if Role.moderator in parsed:
        return Role.moderator
    return Role.customer


def has_permission_group(role: Role | str | None, group: str) -> bool:
    permissions = PERMISSION_GROUPS.get(group)
    if permissions is None:
        raise KeyError(f"unknown permission group: {group}")
    return has_all_permissions(role, permissions)


def can_access_resource(
    role: Role | str | None,
    user_id: str,
    *,
    resource: str,
    action: str,
    owner_id: str | None = None,
) -> bool:
    """
    Resource-level check: `<resource>:<action>` is required in every case;
    acting on somebody else's resource additionally needs `<resource>:manage_all`.
    """

    if not has_permission(role, f"{resource}:{action}"):
        return False
    if owner_id is None or owner_id == user_id:
        return True
    return has_permission(role, f"{resource}:manage_all")


# --- Module Notes -----------------------------------------------------------
# Admin holds only `*`; every admin pass goes through the wildcard branch of
# `has_permission` or through `ROLE_HIERARCHY`, never a role-name comparison.
