"""
storefront_access.security.services

Composition of the security components.

Responsibilities:
- Build the resolver, rate limiter, pipelines and guard from settings.
- Accept injected collaborators (session transport, profile lookup, counter
  store, clock) so tests and multi-instance deployments can swap them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from storefront_access.auth.jwt import JwtConfig
from storefront_access.auth.profiles import ProfileLookup
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.auth.session import JwtSessionTransport, SessionTransport
from storefront_access.security.actions import ActionPipeline
from storefront_access.security.api_routes import ApiRoutePipeline
from storefront_access.security.guards import RouteGuard
from storefront_access.security.rate_limit import InMemoryRateLimitStore, RateLimiter, RateLimitStore
from storefront_access.security.sanitize import InputLimits
from storefront_access.settings import Settings


@dataclass(frozen=True, slots=True)
class SecurityServices:
    resolver: PrincipalResolver
    limiter: RateLimiter
    actions: ActionPipeline
    api: ApiRoutePipeline
    guard: RouteGuard


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
        leeway_s=settings.jwt_leeway_s,
    )


def input_limits(settings: Settings) -> InputLimits:
    return InputLimits(
        max_string_length=settings.max_input_string_length,
        max_total_chars=settings.max_input_chars,
        max_depth=settings.max_input_depth,
        max_items=settings.max_input_items,
    )


def build_security_services(
    settings: Settings,
    *,
    transport: SessionTransport | None = None,
    profiles: ProfileLookup | None = None,
    store: RateLimitStore | None = None,
    clock: Callable[[], float] | None = None,
) -> SecurityServices:
    if transport is None:
        transport = JwtSessionTransport(
            cfg=jwt_config(settings), cookie_name=settings.session_cookie_name
        )
    resolver = PrincipalResolver(transport=transport, profiles=profiles)

    store = store if store is not None else InMemoryRateLimitStore()
    limiter = RateLimiter(store, clock=clock) if clock is not None else RateLimiter(store)
    limits = input_limits(settings)

    return SecurityServices(
        resolver=resolver,
        limiter=limiter,
        actions=ActionPipeline(
            resolver=resolver,
            limiter=limiter,
            default_rate_limit_max=settings.rate_limit_max,
            default_rate_limit_window_ms=settings.rate_limit_window_ms,
            limits=limits,
        ),
        api=ApiRoutePipeline(
            resolver=resolver,
            limiter=limiter,
            default_rate_limit_max=settings.rate_limit_max,
            default_rate_limit_window_ms=settings.rate_limit_window_ms,
            limits=limits,
            max_body_bytes=settings.max_body_bytes,
        ),
        guard=RouteGuard(
            resolver=resolver,
            login_path=settings.login_path,
            unauthorized_path=settings.unauthorized_path,
            error_path=settings.error_path,
        ),
    )


# --- Module Notes -----------------------------------------------------------
# The action and API pipelines share one limiter, so a key used by both counts
# against a single counter.
