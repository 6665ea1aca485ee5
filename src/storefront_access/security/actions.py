"""
storefront_access.security.actions

Secure server-action pipeline.

Responsibilities:
- Wrap `handler(input, ActionContext)` into `action(input)` that always runs:
  rate limit -> sanitize -> validate -> authenticate/authorize -> handler.
- Log start, completion and failure with timing.
- Re-raise known `SecurityError`s unchanged; replace anything else with a
  generic `ActionFailedError` so internals never reach the UI layer.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.rbac import Permission
from storefront_access.auth.request_scope import get_current_request
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.observability.logging import elapsed_ms, get_logger
from storefront_access.security.authorization import AccessRequirements, authorize
from storefront_access.security.context import ActionContext
from storefront_access.security.errors import ActionFailedError, RateLimitError, SecurityError
from storefront_access.security.rate_limit import RateLimiter
from storefront_access.security.sanitize import InputLimits, enforce_input_limits, sanitize_input
from storefront_access.security.validation import as_schema, validate_input

log = get_logger(__name__)

ActionHandler = Callable[[Any, ActionContext], Awaitable[Any] | Any]
SecureAction = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class ActionOptions:
    name: str
    schema: Any = None
    require_auth: bool = False
    required_role: Role | None = None
    required_permissions: Sequence[Permission] = ()
    allow_self: bool = False
    # Extracts the resource-owner id from the validated input (used with allow_self).
    owner_id_from: Callable[[Any], str | None] | None = None
    rate_limit_key: str | None = None
    rate_limit_max: int | None = None
    rate_limit_window_ms: int | None = None

    @property
    def requirements(self) -> AccessRequirements:
        return AccessRequirements(
            require_auth=self.require_auth,
            required_role=self.required_role,
            required_permissions=tuple(self.required_permissions),
            allow_self=self.allow_self,
        )


class ActionPipeline:
    def __init__(
        self,
        *,
        resolver: PrincipalResolver,
        limiter: RateLimiter,
        default_rate_limit_max: int = 100,
        default_rate_limit_window_ms: int = 60_000,
        request_provider: Callable[[], Any] = get_current_request,
        limits: InputLimits | None = None,
    ) -> None:
        self._resolver = resolver
        self._limiter = limiter
        self._default_max = default_rate_limit_max
        self._default_window_ms = default_rate_limit_window_ms
        self._request_provider = request_provider
        self._limits = limits or InputLimits()

    def secure(self, options: ActionOptions) -> Callable[[ActionHandler], SecureAction]:
        schema = as_schema(options.schema) if options.schema is not None else None
        requirements = options.requirements

        def decorator(handler: ActionHandler) -> SecureAction:
            async def secure_action(payload: Any) -> Any:
                started = time.perf_counter()
                principal: Principal | None = None
                try:
                    await self._check_rate_limit(options)
                    enforce_input_limits(payload, self._limits)
                    data = validate_input(schema, sanitize_input(payload))

                    principal = await self._resolver.resolve_or_none(
                        self._request_provider(), action=options.name
                    )
                    owner_id = None
                    if options.allow_self and options.owner_id_from is not None:
                        owner_id = options.owner_id_from(data)
                    principal = authorize(principal, requirements, owner_id=owner_id)

                    context = ActionContext(
                        action_name=options.name,
                        timestamp=datetime.now(tz=UTC),
                        user_id=principal.id if principal else None,
                        user_role=principal.role if principal else None,
                    )
                    log.info(
                        "action.started",
                        action=options.name,
                        user_id=context.user_id,
                        user_role=context.user_role,
                    )

                    result = handler(data, context)
                    if inspect.isawaitable(result):
                        result = await result

                    log.info(
                        "action.completed",
                        action=options.name,
                        user_id=context.user_id,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    return result
                except SecurityError as e:
                    log.warning(
                        "action.failed",
                        action=options.name,
                        kind=e.kind.value,
                        code=e.code,
                        error=e.message,
                        user_id=principal.id if principal else None,
                        user_role=principal.role if principal else None,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    raise
                except Exception as e:
                    log.exception(
                        "action.failed",
                        action=options.name,
                        kind="UnknownError",
                        user_id=principal.id if principal else None,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    raise ActionFailedError(f"Action failed: {options.name}") from e

            functools.update_wrapper(secure_action, handler)
            secure_action.options = options  # type: ignore[attr-defined]
            return secure_action

        return decorator

    async def _check_rate_limit(self, options: ActionOptions) -> None:
        if not options.rate_limit_key:
            return
        allowed = await self._limiter.check(
            options.rate_limit_key,
            options.rate_limit_max or self._default_max,
            options.rate_limit_window_ms or self._default_window_ms,
        )
        if not allowed:
            log.warning("action.rate_limited", action=options.name, key=options.rate_limit_key)
            raise RateLimitError()

    # Presets ---------------------------------------------------------------

    def public(self, name: str, schema: Any = None) -> Callable[[ActionHandler], SecureAction]:
        return self.secure(ActionOptions(name=name, schema=schema))

    def authenticated(
        self, name: str, schema: Any = None
    ) -> Callable[[ActionHandler], SecureAction]:
        return self.secure(ActionOptions(name=name, schema=schema, require_auth=True))

    def admin(self, name: str, schema: Any = None) -> Callable[[ActionHandler], SecureAction]:
        return self.secure(
            ActionOptions(name=name, schema=schema, require_auth=True, required_role=Role.admin)
        )

    def moderator(self, name: str, schema: Any = None) -> Callable[[ActionHandler], SecureAction]:
        return self.secure(
            ActionOptions(
                name=name, schema=schema, require_auth=True, required_role=Role.moderator
            )
        )

    def with_permissions(
        self,
        name: str,
        permissions: Sequence[Permission],
        schema: Any = None,
    ) -> Callable[[ActionHandler], SecureAction]:
        return self.secure(
            ActionOptions(
                name=name,
                schema=schema,
                require_auth=True,
                required_permissions=tuple(permissions),
            )
        )


# --- Module Notes -----------------------------------------------------------
# Validation runs before authentication: a malformed payload is rejected with
# VALIDATION_ERROR whether or not the caller is signed in.
