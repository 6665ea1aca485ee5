"""
storefront_access.api.app

FastAPI app factory for the storefront access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Build the security services once and stash them on `app.state`.
- Initialize and dispose shared infrastructure (DB engine/session factory).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.responses import RedirectResponse
from starlette.status import HTTP_302_FOUND

from storefront_access.api.routers.dev_auth import router as dev_auth_router
from storefront_access.api.routers.health import router as health_router
from storefront_access.api.routers.pages import router as pages_router
from storefront_access.api.routers.profile import build_router as build_profile_router
from storefront_access.api.routers.session import build_router as build_session_router
from storefront_access.auth.profiles import SqlProfileLookup
from storefront_access.db.init_db import init_db
from storefront_access.db.session import create_engine, create_sessionmaker
from storefront_access.observability.logging import configure_logging, get_logger
from storefront_access.observability.middleware import RequestContextMiddleware
from storefront_access.security.guards import GuardRedirect
from storefront_access.security.middleware import (
    ProtectedPathsMiddleware,
    SecurityHeadersMiddleware,
)
from storefront_access.security.services import SecurityServices, build_security_services
from storefront_access.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, security: SecurityServices | None = None) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    # The engine is created eagerly so the profile lookup can be wired into the
    # resolver before the first request.
    engine = create_engine(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        if settings.env in ("dev", "test"):
            # Prod schemas are owned by migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Storefront Access",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)

    if security is None:
        security = build_security_services(
            settings, profiles=SqlProfileLookup(app.state.sessionmaker)
        )
    app.state.security = security

    # Last added runs first: request context wraps everything else.
    app.add_middleware(
        ProtectedPathsMiddleware,
        resolver=security.resolver,
        login_path=settings.login_path,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(build_session_router(security))
    app.include_router(build_profile_router(security, settings))
    app.include_router(pages_router)

    @app.exception_handler(GuardRedirect)
    async def _guard_redirect(_: Request, exc: GuardRedirect) -> RedirectResponse:
        return RedirectResponse(exc.location, status_code=HTTP_302_FOUND)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; checks live in `security`, identity in `auth`.
