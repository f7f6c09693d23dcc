"""
Menu Service

Adding items to the menu and paging through it.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_orders.database import unit_of_work
from restaurant_orders.models import MenuItemCategory, enum_values, to_money
from restaurant_orders.repositories import MenuRepository
from restaurant_orders.schemas import MenuItemPage, MenuItemRead
from restaurant_orders.services.pagination import DEFAULT_LIMIT, resolve_page
from restaurant_orders.services.result import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)


def category_error_message() -> str:
    return f"Category must be one of: {', '.join(enum_values(MenuItemCategory))}"


def parse_price(value: Any) -> Optional[Decimal]:
    """Parse a price into a finite Decimal, or None when it is not a number."""
    if isinstance(value, bool):
        return None
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return price if price.is_finite() else None


class MenuService:
    """Curates and lists menu items."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        menu: MenuRepository,
        default_page_size: int = DEFAULT_LIMIT,
    ):
        self._session_factory = session_factory
        self.menu = menu
        self.default_page_size = default_page_size

    async def add_menu_item(
        self,
        name: Optional[str],
        description: Optional[str],
        price: Any,
        category: Optional[str],
    ) -> ServiceResult[MenuItemRead]:
        """
        Add an item to the menu.

        Failure kinds: VALIDATION_FAILED, INVALID_CATEGORY, PERSISTENCE_ERROR.
        """
        if not name or not description or price is None or not category:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED,
                "All fields are required: name, description, price, category",
            )

        parsed_price = parse_price(price)
        if parsed_price is None:
            return ServiceResult.fail(ErrorKind.VALIDATION_FAILED, "Price must be a number")
        if parsed_price < 0:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED,
                "Price must be greater than or equal to zero",
            )

        if category not in enum_values(MenuItemCategory):
            return ServiceResult.fail(ErrorKind.INVALID_CATEGORY, category_error_message())

        try:
            async with unit_of_work(self._session_factory) as session:
                menu_item = await self.menu.create(
                    session,
                    name=name,
                    description=description,
                    price=to_money(parsed_price),
                    category=MenuItemCategory(category),
                )
                created = MenuItemRead.model_validate(menu_item)
        except IntegrityError as e:
            logger.warning(f"Menu item rejected by the database: {e.orig}")
            return ServiceResult.fail(ErrorKind.VALIDATION_FAILED, "Invalid menu item", str(e.orig))
        except Exception as e:
            logger.exception(f"Error adding menu item: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to add menu item", str(e))

        logger.info(f"Menu item #{created.id} added: {created.name} ({created.category.value})")
        return ServiceResult.ok(created)

    async def list_menu_items(
        self,
        category: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult[MenuItemPage]:
        """
        One page of the menu ordered by name, optionally for one category.

        Failure kinds: INVALID_CATEGORY, PERSISTENCE_ERROR.
        """
        category_filter = None
        if category:
            if category not in enum_values(MenuItemCategory):
                return ServiceResult.fail(ErrorKind.INVALID_CATEGORY, category_error_message())
            category_filter = MenuItemCategory(category)

        page_request = resolve_page(page, limit, self.default_page_size)

        try:
            async with self._session_factory() as session:
                count, menu_items = await self.menu.find_all(
                    session,
                    limit=page_request.limit,
                    offset=page_request.offset,
                    category=category_filter,
                )
                return ServiceResult.ok(
                    MenuItemPage(
                        menu_items=[MenuItemRead.model_validate(item) for item in menu_items],
                        total_items=count,
                        total_pages=page_request.total_pages(count),
                        current_page=page_request.page,
                    )
                )
        except Exception as e:
            logger.exception(f"Error listing menu items: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to list menu items", str(e))
