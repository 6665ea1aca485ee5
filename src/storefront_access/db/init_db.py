"""
storefront_access.db.init_db

Schema bootstrap and inspection.

Responsibilities:
- Create the profile tables for local development and tests.
- Report which expected tables are missing (readiness probe). Production
  schemas are applied with Alembic (`alembic upgrade head`).
"""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront_access.db import models  # noqa: F401  # register models on Base.metadata
from storefront_access.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def missing_tables(engine: AsyncEngine) -> list[str]:
    async with engine.connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return sorted(set(Base.metadata.tables) - existing)
