"""
Order repository tests. Each test drives the repository directly inside
its own unit of work, the way the lifecycle service does.
"""
from decimal import Decimal

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from restaurant_orders.database import unit_of_work
from restaurant_orders.models import MenuItem, Order, OrderItem, OrderStatus
from restaurant_orders.repositories import (
    MenuRepository,
    OrderLine,
    OrderRepository,
    UnresolvedMenuItemError,
)
from restaurant_orders.schemas import OrderItemInput

orders = OrderRepository()
menu = MenuRepository()


async def resolve(session_factory, *ids):
    async with session_factory() as session:
        return await menu.find_by_ids(session, ids)


@pytest.mark.asyncio
async def test_create_empty_order(session_factory, customer):
    async with unit_of_work(session_factory) as session:
        order = await orders.create_empty_order(session, customer.id)
        order_id = order.id

    async with session_factory() as session:
        stored = await orders.find_order_with_items(session, order_id)
        assert stored.status == OrderStatus.PENDING
        assert stored.total_amount == Decimal("0.00")
        assert stored.items == []


@pytest.mark.asyncio
async def test_replace_items_writes_snapshots_and_total(session_factory, customer, burger, fries):
    menu_items = await resolve(session_factory, burger.id, fries.id)

    async with unit_of_work(session_factory) as session:
        order = await orders.create_empty_order(session, customer.id)
        written = await orders.replace_items(
            session,
            order.id,
            [OrderLine(burger.id, 2), OrderLine(fries.id, 3)],
            menu_items,
        )
        order_id = order.id

    assert [(item.unit_price, item.subtotal) for item in written] == [
        (Decimal("10.00"), Decimal("20.00")),
        (Decimal("5.00"), Decimal("15.00")),
    ]

    async with session_factory() as session:
        stored = await orders.find_order_with_items(session, order_id)
        assert stored.total_amount == Decimal("35.00")
        assert [item.menu_item.name for item in stored.items] == ["Burger", "Fries"]


@pytest.mark.asyncio
async def test_replace_items_fails_loudly_on_unresolved_menu_item(session_factory, customer, burger, row_count):
    menu_items = await resolve(session_factory, burger.id)

    with pytest.raises(UnresolvedMenuItemError) as excinfo:
        async with unit_of_work(session_factory) as session:
            order = await orders.create_empty_order(session, customer.id)
            await orders.replace_items(
                session,
                order.id,
                [OrderLine(burger.id, 1), OrderLine(777, 1)],
                menu_items,
            )

    assert excinfo.value.menu_item_id == 777
    assert await row_count(Order) == 0
    assert await row_count(OrderItem) == 0


@pytest.mark.asyncio
async def test_clear_items_returns_removed_count(session_factory, order):
    async with unit_of_work(session_factory) as session:
        removed = await orders.clear_items(session, order.id)
        assert removed == 2
        assert await orders.clear_items(session, order.id) == 0


@pytest.mark.asyncio
async def test_recompute_total_after_clear_is_zero(session_factory, order):
    async with unit_of_work(session_factory) as session:
        await orders.clear_items(session, order.id)
        total = await orders.recompute_total(session, order.id)

    assert total == Decimal("0.00")


@pytest.mark.asyncio
async def test_find_order_with_items_absent(session_factory):
    async with session_factory() as session:
        assert await orders.find_order_with_items(session, 12345) is None


@pytest.mark.asyncio
async def test_set_status(session_factory, order):
    async with unit_of_work(session_factory) as session:
        updated = await orders.set_status(session, order.id, OrderStatus.READY)
        assert updated.status == OrderStatus.READY
        assert await orders.set_status(session, 12345, OrderStatus.READY) is None

    async with session_factory() as session:
        stored = await orders.find_order_with_items(session, order.id)
        assert stored.status == OrderStatus.READY


@pytest.mark.asyncio
async def test_list_customer_orders_newest_first(session_factory, services, customer, burger):
    created = []
    for quantity in (1, 2, 3):
        result = await services.orders.create_order(
            customer.id, [OrderItemInput(menu_item_id=burger.id, quantity=quantity)]
        )
        created.append(result.data.id)

    async with session_factory() as session:
        count, page = await orders.list_customer_orders(session, customer.id, limit=2, offset=0)

    assert count == 3
    assert [o.id for o in page] == [created[2], created[1]]
    assert page[0].items[0].menu_item.name == "Burger"


@pytest.mark.asyncio
async def test_menu_items_cannot_be_deleted_while_referenced(session_factory, order, burger):
    with pytest.raises(IntegrityError):
        async with unit_of_work(session_factory) as session:
            await session.execute(delete(MenuItem).where(MenuItem.id == burger.id))
