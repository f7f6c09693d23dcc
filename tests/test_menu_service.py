"""
Menu service tests.
"""
from decimal import Decimal

import pytest

from restaurant_orders.models import MenuItem, MenuItemCategory
from restaurant_orders.services import ErrorKind

CATEGORY_MESSAGE = "Category must be one of: starter, main_course, dessert, drink"


@pytest.mark.asyncio
async def test_add_menu_item(services):
    result = await services.menu.add_menu_item("Tiramisu", "Coffee dessert", "8.99", "dessert")

    assert result.success
    assert result.data.price == Decimal("8.99")
    assert result.data.category == MenuItemCategory.DESSERT


@pytest.mark.asyncio
async def test_add_menu_item_accepts_free_items(services):
    result = await services.menu.add_menu_item("Water", "Tap water", 0, "drink")

    assert result.success
    assert result.data.price == Decimal("0.00")


@pytest.mark.asyncio
async def test_add_menu_item_requires_all_fields(services, row_count):
    result = await services.menu.add_menu_item("Soup", None, "4.50", "starter")

    assert result.error_kind == ErrorKind.VALIDATION_FAILED
    assert result.error_message == "All fields are required: name, description, price, category"
    assert await row_count(MenuItem) == 0


@pytest.mark.asyncio
async def test_add_menu_item_rejects_negative_price(services, row_count):
    result = await services.menu.add_menu_item("Soup", "Tomato soup", Decimal("-0.01"), "starter")

    assert result.error_kind == ErrorKind.VALIDATION_FAILED
    assert result.error_message == "Price must be greater than or equal to zero"
    assert await row_count(MenuItem) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("price", ["abc", "NaN", True])
async def test_add_menu_item_rejects_non_numeric_price(services, price):
    result = await services.menu.add_menu_item("Soup", "Tomato soup", price, "starter")

    assert result.error_kind == ErrorKind.VALIDATION_FAILED
    assert result.error_message == "Price must be a number"


@pytest.mark.asyncio
@pytest.mark.parametrize("category", ["beverage", "MAIN_COURSE", "snack"])
async def test_add_menu_item_rejects_unknown_category(services, category):
    result = await services.menu.add_menu_item("Soda", "Fizzy", "1.99", category)

    assert result.error_kind == ErrorKind.INVALID_CATEGORY
    assert result.error_message == CATEGORY_MESSAGE


@pytest.mark.asyncio
async def test_list_menu_items_ordered_by_name(services, burger, fries, cola):
    result = await services.menu.list_menu_items()

    assert result.success
    assert [item.name for item in result.data.menu_items] == ["Burger", "Cola", "Fries"]
    assert result.data.total_items == 3
    assert result.data.total_pages == 1
    assert result.data.current_page == 1


@pytest.mark.asyncio
async def test_list_menu_items_by_category(services, burger, fries, cola):
    result = await services.menu.list_menu_items(category="starter")

    assert [item.name for item in result.data.menu_items] == ["Fries"]
    assert result.data.total_items == 1


@pytest.mark.asyncio
async def test_list_menu_items_rejects_unknown_category(services):
    result = await services.menu.list_menu_items(category="beverage")

    assert result.error_kind == ErrorKind.INVALID_CATEGORY
    assert result.error_message == CATEGORY_MESSAGE


@pytest.mark.asyncio
async def test_list_menu_items_second_page(services):
    for n in range(15):
        created = await services.menu.add_menu_item(f"Dish {n:02d}", "House special", "9.50", "main_course")
        assert created.success

    result = await services.menu.list_menu_items(page=2, limit=10)

    assert len(result.data.menu_items) == 5
    assert result.data.total_items == 15
    assert result.data.total_pages == 2
    assert result.data.menu_items[0].name == "Dish 10"


@pytest.mark.asyncio
async def test_list_menu_items_empty_menu(services):
    result = await services.menu.list_menu_items(page=3, limit=5)

    assert result.data.menu_items == []
    assert result.data.total_pages == 0
    assert result.data.current_page == 3
