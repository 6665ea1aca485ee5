"""
storefront_access.security.middleware

Edge middleware for page requests.

Responsibilities:
- Add baseline security headers to every response.
- Send unauthenticated visitors of protected page prefixes to the login page
  before any page code runs.
"""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.status import HTTP_302_FOUND
from starlette.types import ASGIApp

from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.observability.logging import get_logger

log = get_logger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

PROTECTED_PREFIXES: tuple[str, ...] = ("/admin", "/profile", "/cart", "/checkout")

PUBLIC_ROUTES: tuple[str, ...] = (
    "/",
    "/products*",
    "/login",
    "/register",
    "/about",
    "/contact",
)


def is_public_path(path: str, public_routes: Sequence[str] = PUBLIC_ROUTES) -> bool:
    for route in public_routes:
        if route == path:
            return True
        if route.endswith("*") and path.startswith(route[:-1]):
            return True
    return False


def is_static_path(path: str) -> bool:
    last_segment = path.rsplit("/", 1)[-1]
    return path.startswith("/static/") or path.startswith("/favicon") or "." in last_segment


def protected_prefix(path: str, prefixes: Sequence[str] = PROTECTED_PREFIXES) -> str | None:
    for prefix in prefixes:
        if path == prefix or path.startswith(prefix + "/"):
            return prefix
    return None


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class ProtectedPathsMiddleware(BaseHTTPMiddleware):
    """
    Authentication only; role and permission rules stay with the page guards.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        resolver: PrincipalResolver,
        login_path: str = "/login",
        prefixes: Sequence[str] = PROTECTED_PREFIXES,
        public_routes: Sequence[str] = PUBLIC_ROUTES,
    ) -> None:
        super().__init__(app)
        self._resolver = resolver
        self._login_path = login_path
        self._prefixes = tuple(prefixes)
        self._public_routes = tuple(public_routes)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if is_static_path(path) or is_public_path(path, self._public_routes):
            return await call_next(request)
        if protected_prefix(path, self._prefixes) is None:
            return await call_next(request)

        principal = await self._resolver.resolve_or_none(request, action="protected_paths")
        if principal is None:
            log.info("protected_path.redirect", path=path)
            target = f"{self._login_path}?{urlencode({'redirect': path})}"
            return RedirectResponse(target, status_code=HTTP_302_FOUND)
        return await call_next(request)
