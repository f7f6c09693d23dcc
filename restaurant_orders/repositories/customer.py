"""
Customer data access.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_orders.models import Customer


class CustomerRepository:
    """Reads and writes customers inside the caller's session."""

    async def create(
        self,
        session: AsyncSession,
        name: str,
        email: str,
        phone: str,
    ) -> Customer:
        """
        Insert a customer and flush so the id is assigned.

        Raises:
            IntegrityError: If the email is already registered
        """
        customer = Customer(name=name, email=email, phone=phone)
        session.add(customer)
        await session.flush()
        await session.refresh(customer)
        return customer

    async def find_by_id(self, session: AsyncSession, customer_id: int) -> Optional[Customer]:
        return await session.get(Customer, customer_id)

    async def find_by_email(self, session: AsyncSession, email: str) -> Optional[Customer]:
        result = await session.execute(select(Customer).where(Customer.email == email))
        return result.scalar_one_or_none()
