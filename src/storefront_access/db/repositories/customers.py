"""
storefront_access.db.repositories.customers

Repository for `Customer` profile rows.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from storefront_access.db.models import Customer


class CustomerRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, customer_id: str) -> Customer | None:
        return await self._session.get(Customer, customer_id)

    async def upsert_names(
        self,
        *,
        customer_id: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Customer:
        row = await self._session.get(Customer, customer_id)
        if row is None:
            row = Customer(id=customer_id)
            self._session.add(row)
        if email is not None:
            row.email = email
        if first_name is not None:
            row.first_name = first_name
        if last_name is not None:
            row.last_name = last_name
        await self._session.flush()
        return row

    async def update_profile(self, *, customer_id: str, email: str, **fields: str | None) -> Customer:
        row = await self._session.get(Customer, customer_id)
        if row is None:
            row = Customer(id=customer_id, email=email)
            self._session.add(row)
        for name, value in fields.items():
            setattr(row, name, value)
        await self._session.flush()
        return row
