"""
Order Repository

Atomic building blocks over the Order + OrderItem aggregate.

Every method runs inside the session (and therefore the transaction) the
caller passes in. Nothing here commits, rolls back, or opens a transaction
of its own; the order lifecycle service decides the transaction boundary.
Store errors are surfaced unchanged.
"""

import logging
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from restaurant_orders.models import MenuItem, Order, OrderItem, OrderStatus, to_money

logger = logging.getLogger(__name__)


class OrderLine(NamedTuple):
    """A validated request line: menu item id and a positive integer quantity."""
    menu_item_id: int
    quantity: int


class UnresolvedMenuItemError(LookupError):
    """
    Raised when an item write receives a menu item id that is missing from
    the resolved menu items. Callers must resolve every id before writing.
    """

    def __init__(self, menu_item_id: int):
        super().__init__(f"Menu item {menu_item_id} was not resolved before writing order items")
        self.menu_item_id = menu_item_id


def _with_items(query):
    """Eager-load items and their menu items; async sessions cannot lazy-load."""
    return query.options(
        selectinload(Order.items).selectinload(OrderItem.menu_item)
    )


class OrderRepository:
    """Reads and writes orders and their items inside the caller's session."""

    async def create_empty_order(self, session: AsyncSession, customer_id: int) -> Order:
        """
        Insert a new pending order with a zero total.

        The row is flushed so its id can be used for item writes in the same
        transaction.
        """
        order = Order(
            customer_id=customer_id,
            status=OrderStatus.PENDING,
            total_amount=Decimal("0.00"),
        )
        session.add(order)
        await session.flush()
        logger.debug(f"Order #{order.id} created for customer #{customer_id}")
        return order

    async def find_order_with_items(self, session: AsyncSession, order_id: int) -> Optional[Order]:
        """
        Fetch one order with its items (by id) and each item's menu item.

        Returns None when the order does not exist.
        """
        query = (
            _with_items(select(Order))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def lock_order(self, session: AsyncSession, order_id: int) -> Optional[Order]:
        """
        Load the order row with SELECT ... FOR UPDATE.

        Concurrent writers on the same order wait here until the holder's
        transaction ends. Backends without row locks (SQLite) skip the clause.
        """
        query = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def replace_items(
        self,
        session: AsyncSession,
        order_id: int,
        items: Sequence[OrderLine],
        resolved_menu_items: Iterable[MenuItem],
    ) -> list[OrderItem]:
        """
        Write a new set of items for an order and recompute its total.

        Each line snapshots the menu item's current price as unit_price and
        stores subtotal = quantity * unit_price. The caller clears previous
        items first when replacing an existing set.

        Args:
            order_id: Owning order
            items: Lines to write, quantities already validated
            resolved_menu_items: Menu items covering every line's menu_item_id

        Returns:
            The written order items

        Raises:
            UnresolvedMenuItemError: If a line references a menu item that is
                not in resolved_menu_items. Nothing is written in that case.
        """
        menu_by_id = {menu_item.id: menu_item for menu_item in resolved_menu_items}

        order_items = []
        for line in items:
            menu_item = menu_by_id.get(line.menu_item_id)
            if menu_item is None:
                raise UnresolvedMenuItemError(line.menu_item_id)

            unit_price = to_money(menu_item.price)
            order_items.append(
                OrderItem(
                    order_id=order_id,
                    menu_item_id=menu_item.id,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=to_money(unit_price * line.quantity),
                )
            )

        session.add_all(order_items)
        await session.flush()

        await self.recompute_total(session, order_id)
        return order_items

    async def recompute_total(self, session: AsyncSession, order_id: int) -> Decimal:
        """
        Set the order's total_amount to the sum of its items' subtotals.

        Runs in the caller's transaction so the total and the items commit
        (or roll back) together.
        """
        sum_result = await session.execute(
            select(func.coalesce(func.sum(OrderItem.subtotal), 0))
            .where(OrderItem.order_id == order_id)
        )
        total = to_money(sum_result.scalar_one())

        await session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(total_amount=total)
        )
        logger.debug(f"Order #{order_id} total recomputed: {total}")
        return total

    async def clear_items(self, session: AsyncSession, order_id: int) -> int:
        """Delete every item of the order. Returns how many were removed."""
        result = await session.execute(
            delete(OrderItem).where(OrderItem.order_id == order_id)
        )
        return result.rowcount or 0

    async def set_status(
        self,
        session: AsyncSession,
        order_id: int,
        status: OrderStatus,
    ) -> Optional[Order]:
        """Persist a new status. Returns None when the order does not exist."""
        order = await self.lock_order(session, order_id)
        if order is None:
            return None

        order.status = status
        await session.flush()
        return order

    async def list_customer_orders(
        self,
        session: AsyncSession,
        customer_id: int,
        limit: int,
        offset: int,
    ) -> tuple[int, list[Order]]:
        """
        One page of a customer's orders, newest first, with items loaded.

        Returns:
            (total orders of the customer, orders on this page)
        """
        count_result = await session.execute(
            select(func.count(Order.id)).where(Order.customer_id == customer_id)
        )
        total = count_result.scalar() or 0

        query = (
            _with_items(select(Order))
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return total, list(result.scalars().all())
