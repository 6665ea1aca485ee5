"""
storefront_access.auth.profiles

Secondary profile lookup used to augment resolved principals.

Responsibilities:
- Define the lookup contract (`get(user_id) -> CustomerProfile | None`).
- Provide the SQL implementation over the `customers` table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront_access.db.repositories.customers import CustomerRepo
from storefront_access.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CustomerProfile:
    first_name: str = ""
    last_name: str = ""


class ProfileLookup(Protocol):
    async def get(self, user_id: str) -> CustomerProfile | None: ...


class SqlProfileLookup:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: str) -> CustomerProfile | None:
        try:
            async with self._session_factory() as session:
                row = await CustomerRepo(session).get(user_id)
        except SQLAlchemyError as e:
            # Profile data is optional; resolution continues without it.
            log.debug("profile.lookup_failed", user_id=user_id, error=str(e))
            return None
        if row is None:
            return None
        return CustomerProfile(first_name=row.first_name or "", last_name=row.last_name or "")
