"""
storefront_access.db.session

Async engine and session factory for the profile store.

Responsibilities:
- Build the engine from `Settings.database_url` (SQL echo behind `db_echo`).
- Build the sessionmaker used by profile lookups and request dependencies.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront_access.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    kwargs: dict[str, object] = {"echo": settings.db_echo}
    if not settings.database_url.startswith("sqlite"):
        # Pre-ping only matters for networked databases.
        kwargs["pool_pre_ping"] = True
    return create_async_engine(settings.database_url, **kwargs)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Profile rows are read after the session closes; keep them loaded.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
