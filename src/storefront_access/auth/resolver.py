"""
storefront_access.auth.resolver

Principal resolution.

Responsibilities:
- Turn a request handle into zero-or-one `Principal` via the session transport.
- Read the role claim (`user_metadata.role`, then `app_metadata.role`).
- Augment the principal with profile names when a profile exists.
"""

from __future__ import annotations

from typing import Any

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.profiles import ProfileLookup
from storefront_access.auth.session import SessionTransport, SessionUser
from storefront_access.observability.logging import get_logger
from storefront_access.security.errors import SessionTransportError

log = get_logger(__name__)


def _role_claim(user: SessionUser) -> Any:
    return user.user_metadata.get("role") or user.app_metadata.get("role")


def _str_claim(metadata: dict[str, Any], key: str) -> str:
    value = metadata.get(key)
    return value if isinstance(value, str) else ""


class PrincipalResolver:
    def __init__(
        self,
        *,
        transport: SessionTransport,
        profiles: ProfileLookup | None = None,
    ) -> None:
        self._transport = transport
        self._profiles = profiles

    async def resolve(self, request: Any) -> Principal | None:
        """
        Return the authenticated principal, or None when there is no session.

        Raises `SessionTransportError` only for malformed session data.
        """

        if request is None:
            return None
        result = await self._transport.client_for(request).get_user()
        if result.error:
            log.debug("principal.no_session", reason=result.error)
            return None
        if result.user is None:
            return None
        return await self._to_principal(result.user)

    async def resolve_or_none(self, request: Any, *, action: str) -> Principal | None:
        # Deny-by-default: a broken session is treated exactly like no session.
        try:
            return await self.resolve(request)
        except SessionTransportError as e:
            log.warning("principal.session_malformed", action=action, error=str(e))
            return None
        except Exception as e:
            # Unreachable or failing session backends count as "no session" too.
            log.warning(
                "principal.resolve_failed",
                action=action,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    async def _to_principal(self, user: SessionUser) -> Principal:
        raw_role = _role_claim(user)
        if raw_role is None:
            role = Role.customer
        else:
            parsed = Role.parse(raw_role)
            if parsed is None:
                raise SessionTransportError(f"unrecognized role claim: {raw_role!r}")
            role = parsed

        first_name = _str_claim(user.user_metadata, "first_name")
        last_name = _str_claim(user.user_metadata, "last_name")
        if self._profiles is not None:
            profile = await self._profiles.get(user.id)
            if profile is None:
                log.debug("principal.profile_missing", user_id=user.id)
            else:
                first_name = profile.first_name or first_name
                last_name = profile.last_name or last_name

        avatar = user.user_metadata.get("avatar_url")
        return Principal(
            id=user.id,
            email=user.email,
            role=role,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar if isinstance(avatar, str) else None,
        )


# --- Module Notes -----------------------------------------------------------
# Missing role claims default to `customer`; an unknown role value is treated as
# a malformed session so it can never reach the permission engine.
