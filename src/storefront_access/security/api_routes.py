"""
storefront_access.security.api_routes

Secure API-route pipeline.

Responsibilities:
- Wrap `handler(input, ApiContext, request)` into a Starlette/FastAPI endpoint
  `endpoint(request) -> Response`.
- Apply the same check order as server actions, plus HTTP method restriction
  and request/response marshalling.
- Map every failure to a JSON envelope `{error, code, details?}` and status.
"""

from __future__ import annotations

import inspect
import json
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_405_METHOD_NOT_ALLOWED, HTTP_500_INTERNAL_SERVER_ERROR

from storefront_access.auth.models import Principal, Role
from storefront_access.auth.rbac import Permission
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.observability.logging import elapsed_ms, get_logger
from storefront_access.observability.middleware import client_ip
from storefront_access.security.authorization import AccessRequirements, authorize
from storefront_access.security.context import ApiContext
from storefront_access.security.errors import (
    ErrorCode,
    InputValidationError,
    RateLimitError,
    SecurityError,
    status_for,
)
from storefront_access.security.rate_limit import RateLimiter
from storefront_access.security.sanitize import InputLimits, enforce_input_limits, sanitize_input
from storefront_access.security.validation import as_schema, validate_input

log = get_logger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
ApiHandler = Callable[[Any, ApiContext, Request], Awaitable[Any] | Any]
Endpoint = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True, slots=True)
class RouteOptions:
    name: str | None = None
    method: HttpMethod | None = None
    schema: Any = None
    require_auth: bool = False
    required_role: Role | None = None
    required_permissions: Sequence[Permission] = ()
    allow_self: bool = False
    owner_id_from: Callable[[Any], str | None] | None = None
    rate_limit_key: str | None = None
    rate_limit_max: int | None = None
    rate_limit_window_ms: int | None = None
    success_status: int = 200

    @property
    def requirements(self) -> AccessRequirements:
        return AccessRequirements(
            require_auth=self.require_auth,
            required_role=self.required_role,
            required_permissions=tuple(self.required_permissions),
            allow_self=self.allow_self,
        )


def error_response(
    message: str, status_code: int, code: str, details: Any = None
) -> JSONResponse:
    body: dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


def _invalid_body(message: str = "Invalid request body") -> InputValidationError:
    return InputValidationError(message, code=ErrorCode.invalid_request_body)


async def read_input(request: Request, *, max_body_bytes: int = 1_048_576) -> Any:
    """
    GET input is the query string (last value wins for repeated keys);
    everything else is the JSON body.
    """

    if request.method == "GET":
        return dict(request.query_params)
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_body_bytes:
        raise _invalid_body("Request body too large")
    body = await request.body()
    if len(body) > max_body_bytes:
        raise _invalid_body("Request body too large")
    try:
        return json.loads(body)
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the JSON decoder can follow.
        raise _invalid_body() from e


class ApiRoutePipeline:
    def __init__(
        self,
        *,
        resolver: PrincipalResolver,
        limiter: RateLimiter,
        default_rate_limit_max: int = 100,
        default_rate_limit_window_ms: int = 60_000,
        limits: InputLimits | None = None,
        max_body_bytes: int = 1_048_576,
    ) -> None:
        self._resolver = resolver
        self._limiter = limiter
        self._default_max = default_rate_limit_max
        self._default_window_ms = default_rate_limit_window_ms
        self._limits = limits or InputLimits()
        self._max_body_bytes = max_body_bytes

    def secure(self, options: RouteOptions | None = None) -> Callable[[ApiHandler], Endpoint]:
        options = options or RouteOptions()
        schema = as_schema(options.schema) if options.schema is not None else None
        requirements = options.requirements

        def decorator(handler: ApiHandler) -> Endpoint:
            route_name = options.name or getattr(handler, "__name__", "api_route")

            async def endpoint(request: Request) -> Response:
                started = time.perf_counter()
                method = request.method
                url = str(request.url)
                ip = client_ip(request)
                principal: Principal | None = None
                try:
                    if options.method and method != options.method:
                        log.warning(
                            "api.method_not_allowed",
                            route=route_name,
                            method=method,
                            allowed=options.method,
                            duration_ms=elapsed_ms(started, time.perf_counter()),
                        )
                        return error_response(
                            f"Method {method} not allowed",
                            HTTP_405_METHOD_NOT_ALLOWED,
                            ErrorCode.method_not_allowed,
                        )

                    await self._check_rate_limit(options, route_name=route_name, ip=ip)
                    raw = await read_input(request, max_body_bytes=self._max_body_bytes)
                    enforce_input_limits(raw, self._limits)
                    data = validate_input(schema, sanitize_input(raw))

                    principal = await self._resolver.resolve_or_none(request, action=route_name)
                    owner_id = None
                    if options.allow_self and options.owner_id_from is not None:
                        owner_id = options.owner_id_from(data)
                    principal = authorize(principal, requirements, owner_id=owner_id)

                    context = ApiContext(
                        route_name=route_name,
                        method=method,
                        url=url,
                        client_ip=ip,
                        timestamp=datetime.now(tz=UTC),
                        principal=principal,
                    )
                    log.info(
                        "api.started",
                        route=route_name,
                        method=method,
                        url=url,
                        user_id=context.user_id,
                        user_role=principal.role if principal else None,
                        client_ip=ip,
                    )

                    result = handler(data, context, request)
                    if inspect.isawaitable(result):
                        result = await result

                    log.info(
                        "api.completed",
                        route=route_name,
                        method=method,
                        user_id=context.user_id,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    if isinstance(result, Response):
                        return result
                    return JSONResponse(jsonable_encoder(result), status_code=options.success_status)
                except SecurityError as e:
                    log.warning(
                        "api.failed",
                        route=route_name,
                        method=method,
                        url=url,
                        kind=e.kind.value,
                        code=e.code,
                        error=e.message,
                        user_id=principal.id if principal else None,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    return JSONResponse(e.to_envelope(), status_code=status_for(e.kind))
                except Exception:
                    log.exception(
                        "api.failed",
                        route=route_name,
                        method=method,
                        url=url,
                        kind="UnknownError",
                        user_id=principal.id if principal else None,
                        duration_ms=elapsed_ms(started, time.perf_counter()),
                    )
                    return error_response(
                        "Internal server error",
                        HTTP_500_INTERNAL_SERVER_ERROR,
                        ErrorCode.internal_error,
                    )

            # No functools.wraps: FastAPI must see `endpoint(request)`, not the handler signature.
            endpoint.__name__ = route_name
            endpoint.__doc__ = handler.__doc__
            endpoint.options = options  # type: ignore[attr-defined]
            return endpoint

        return decorator

    async def _check_rate_limit(self, options: RouteOptions, *, route_name: str, ip: str) -> None:
        if not options.rate_limit_key:
            return
        key = f"{options.rate_limit_key}:{ip}"
        allowed = await self._limiter.check(
            key,
            options.rate_limit_max or self._default_max,
            options.rate_limit_window_ms or self._default_window_ms,
        )
        if not allowed:
            log.warning("api.rate_limited", route=route_name, key=key, client_ip=ip)
            raise RateLimitError()

    # Presets ---------------------------------------------------------------

    def public(
        self, schema: Any = None, *, name: str | None = None, method: HttpMethod | None = None
    ) -> Callable[[ApiHandler], Endpoint]:
        return self.secure(RouteOptions(name=name, method=method, schema=schema))

    def authenticated(
        self, schema: Any = None, *, name: str | None = None, method: HttpMethod | None = None
    ) -> Callable[[ApiHandler], Endpoint]:
        return self.secure(
            RouteOptions(name=name, method=method, schema=schema, require_auth=True)
        )

    def admin(
        self, schema: Any = None, *, name: str | None = None, method: HttpMethod | None = None
    ) -> Callable[[ApiHandler], Endpoint]:
        return self.secure(
            RouteOptions(
                name=name,
                method=method,
                schema=schema,
                require_auth=True,
                required_role=Role.admin,
            )
        )

    def moderator(
        self, schema: Any = None, *, name: str | None = None, method: HttpMethod | None = None
    ) -> Callable[[ApiHandler], Endpoint]:
        return self.secure(
            RouteOptions(
                name=name,
                method=method,
                schema=schema,
                require_auth=True,
                required_role=Role.moderator,
            )
        )

    def with_permissions(
        self,
        permissions: Sequence[Permission],
        schema: Any = None,
        *,
        name: str | None = None,
        method: HttpMethod | None = None,
    ) -> Callable[[ApiHandler], Endpoint]:
        return self.secure(
            RouteOptions(
                name=name,
                method=method,
                schema=schema,
                require_auth=True,
                required_permissions=tuple(permissions),
            )
        )


# --- Module Notes -----------------------------------------------------------
# The status table lives in `security.errors.status_for`; 405 is the only
# status decided here because method mismatch is not an error kind.
