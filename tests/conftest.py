"""
Shared fixtures.

Every test gets its own on-disk SQLite database (aiosqlite) with the full
schema, and a fresh set of services wired around it.
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from restaurant_orders.core.config import Settings
from restaurant_orders.database import (
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from restaurant_orders.schemas import OrderItemInput
from restaurant_orders.services import build_services


# ─── Infrastructure ────────────────────────────────────────────────────────────
@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        debug=True,
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def services(session_factory, settings):
    return build_services(session_factory, settings)


@pytest.fixture
def row_count(session_factory):
    """Count rows of a mapped class straight from the database."""
    async def count(model) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()
    return count


# ─── Domain data ───────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def customer(services):
    result = await services.customers.register_customer("Ann", "ann@x.com", "555")
    assert result.success, result.error_message
    return result.data


@pytest_asyncio.fixture
async def burger(services):
    result = await services.menu.add_menu_item("Burger", "Beef burger", Decimal("10.00"), "main_course")
    assert result.success, result.error_message
    return result.data


@pytest_asyncio.fixture
async def fries(services):
    result = await services.menu.add_menu_item("Fries", "French fries", Decimal("5.00"), "starter")
    assert result.success, result.error_message
    return result.data


@pytest_asyncio.fixture
async def cola(services):
    result = await services.menu.add_menu_item("Cola", "Chilled cola", Decimal("2.49"), "drink")
    assert result.success, result.error_message
    return result.data


@pytest_asyncio.fixture
async def order(services, customer, burger, fries):
    """Ann's pending order: 2 burgers and 1 fries."""
    result = await services.orders.create_order(
        customer.id,
        [
            OrderItemInput(menu_item_id=burger.id, quantity=2),
            OrderItemInput(menu_item_id=fries.id, quantity=1),
        ],
    )
    assert result.success, result.error_message
    return result.data
