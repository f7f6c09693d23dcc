"""
Menu item data access.
"""

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_orders.models import MenuItem, MenuItemCategory


class MenuRepository:
    """Reads and writes menu items inside the caller's session."""

    async def create(
        self,
        session: AsyncSession,
        name: str,
        description: str,
        price: Decimal,
        category: MenuItemCategory,
    ) -> MenuItem:
        menu_item = MenuItem(
            name=name,
            description=description,
            price=price,
            category=category,
        )
        session.add(menu_item)
        await session.flush()
        await session.refresh(menu_item)
        return menu_item

    async def find_all(
        self,
        session: AsyncSession,
        limit: int,
        offset: int,
        category: Optional[MenuItemCategory] = None,
    ) -> tuple[int, list[MenuItem]]:
        """
        One page of menu items ordered by name, plus the unpaged count.

        Args:
            limit: Page size
            offset: Rows to skip
            category: Restrict to one section when given

        Returns:
            (total matching rows, rows on this page)
        """
        query = select(MenuItem).order_by(MenuItem.name.asc(), MenuItem.id.asc())
        count_query = select(func.count(MenuItem.id))

        if category is not None:
            query = query.where(MenuItem.category == category)
            count_query = count_query.where(MenuItem.category == category)

        total_result = await session.execute(count_query)
        total = total_result.scalar() or 0

        result = await session.execute(query.offset(offset).limit(limit))
        return total, list(result.scalars().all())

    async def find_by_ids(self, session: AsyncSession, menu_item_ids: Iterable[int]) -> list[MenuItem]:
        """Batch lookup. Ids that do not exist are simply absent from the result."""
        ids = set(menu_item_ids)
        if not ids:
            return []
        result = await session.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
        return list(result.scalars().all())
