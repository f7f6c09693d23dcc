"""
Order Lifecycle Service

The single authority that decides whether an order mutation is legal and
executes it transactionally.

Flow of every mutation:
    1. Validate inputs against current state (read-only session)
    2. Open one write transaction, perform the repository writes, commit
    3. Re-read the committed aggregate and return it

Validation never runs inside the write transaction, so the transaction only
holds locks for the writes themselves. Any failure after the transaction is
opened rolls it back before a result is returned; callers never see a
partially written order.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_orders.database import unit_of_work
from restaurant_orders.models import (
    MAX_AMOUNT,
    MAX_QUANTITY,
    MODIFIABLE_STATUSES,
    MenuItem,
    OrderStatus,
    enum_values,
)
from restaurant_orders.repositories import (
    CustomerRepository,
    MenuRepository,
    OrderLine,
    OrderRepository,
)
from restaurant_orders.schemas import OrderItemInput, OrderRead
from restaurant_orders.services.result import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

MSG_CUSTOMER_NOT_FOUND = "Customer not found"
MSG_ORDER_NOT_FOUND = "Order not found"
MSG_EMPTY_ITEM_LIST = "At least one item is required"
MSG_INVALID_QUANTITY = "Quantity must be a positive integer for all items"
MSG_MENU_ITEM_NOT_FOUND = "One or more menu items do not exist"
MSG_AMOUNT_TOO_LARGE = f"Order amounts may not exceed {MAX_AMOUNT}"


def status_error_message() -> str:
    return f"Status must be one of: {', '.join(enum_values(OrderStatus))}"


def not_modifiable_message() -> str:
    allowed = " or ".join(f'"{status.value}"' for status in MODIFIABLE_STATUSES)
    return f"Only orders with status {allowed} can be modified"


class RejectedWrite(Exception):
    """A business rule failed inside the write transaction."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def validate_quantities(items: Sequence[OrderItemInput]) -> Optional[list[OrderLine]]:
    """
    Turn request lines into OrderLines.

    Returns None if any quantity is missing, not a whole number, below 1, or
    above MAX_QUANTITY.
    Whole floats (2.0) are accepted as their integer value.
    """
    lines = []
    for item in items:
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
            return None
        if isinstance(quantity, float):
            if not quantity.is_integer():
                return None
            quantity = int(quantity)
        if quantity < 1 or quantity > MAX_QUANTITY:
            return None
        lines.append(OrderLine(menu_item_id=item.menu_item_id, quantity=quantity))
    return lines


def exceeds_amount_limit(lines: Sequence[OrderLine], menu_items: Sequence[MenuItem]) -> bool:
    """True if any line subtotal or the order total would not fit a money column."""
    prices = {menu_item.id: menu_item.price for menu_item in menu_items}
    subtotals = [prices[line.menu_item_id] * line.quantity for line in lines]
    return any(subtotal > MAX_AMOUNT for subtotal in subtotals) or sum(subtotals) > MAX_AMOUNT


class OrderService:
    """
    Creates orders, replaces their items and moves their status.

    Attributes:
        transaction_timeout: Seconds a write transaction may take before it
            is cancelled and rolled back
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        orders: OrderRepository,
        customers: CustomerRepository,
        menu: MenuRepository,
        transaction_timeout: float = 10.0,
    ):
        self._session_factory = session_factory
        self.orders = orders
        self.customers = customers
        self.menu = menu
        self.transaction_timeout = transaction_timeout

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    async def create_order(
        self,
        customer_id: int,
        items: Sequence[OrderItemInput],
    ) -> ServiceResult[OrderRead]:
        """
        Create a pending order populated with the requested items.

        Failure kinds: CUSTOMER_NOT_FOUND, EMPTY_ITEM_LIST, INVALID_QUANTITY,
        MENU_ITEM_NOT_FOUND, PERSISTENCE_ERROR.
        """
        try:
            async with self._session_factory() as session:
                customer = await self.customers.find_by_id(session, customer_id)
                if customer is None:
                    return ServiceResult.fail(ErrorKind.CUSTOMER_NOT_FOUND, MSG_CUSTOMER_NOT_FOUND)

                if not items:
                    return ServiceResult.fail(ErrorKind.EMPTY_ITEM_LIST, MSG_EMPTY_ITEM_LIST)

                lines = validate_quantities(items)
                if lines is None:
                    return ServiceResult.fail(ErrorKind.INVALID_QUANTITY, MSG_INVALID_QUANTITY)

                menu_items = await self._resolve_menu_items(session, lines)
                if menu_items is None:
                    return ServiceResult.fail(ErrorKind.MENU_ITEM_NOT_FOUND, MSG_MENU_ITEM_NOT_FOUND)

                if exceeds_amount_limit(lines, menu_items):
                    return ServiceResult.fail(ErrorKind.INVALID_QUANTITY, MSG_AMOUNT_TOO_LARGE)

            order_id = await self._in_transaction(self._write_new_order, customer_id, lines, menu_items)
            result = await self._load_order(order_id, failure_message="Failed to create order")

        except Exception as e:
            logger.exception(f"Error creating order for customer #{customer_id}: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to create order", str(e))

        if result.success:
            logger.info(
                f"Order #{order_id} created for customer #{customer_id} "
                f"({len(lines)} items, total {result.data.total_amount})"
            )
        return result

    async def update_order_status(self, order_id: int, status: Any) -> ServiceResult[OrderRead]:
        """
        Set an order's status.

        Any status may follow any other; no transition graph is enforced,
        so a canceled order can be moved back to pending.

        Failure kinds: INVALID_STATUS, ORDER_NOT_FOUND, PERSISTENCE_ERROR.
        """
        if not status or status not in enum_values(OrderStatus):
            return ServiceResult.fail(ErrorKind.INVALID_STATUS, status_error_message())
        new_status = OrderStatus(status)

        try:
            order = await self._in_transaction(self.orders.set_status, order_id, new_status)
            if order is None:
                return ServiceResult.fail(ErrorKind.ORDER_NOT_FOUND, MSG_ORDER_NOT_FOUND)

            result = await self._load_order(order_id, failure_message="Failed to update order status")

        except Exception as e:
            logger.exception(f"Error updating status of order #{order_id}: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to update order status", str(e))

        logger.info(f"Order #{order_id} status -> {new_status.value}")
        return result

    async def modify_order(
        self,
        order_id: int,
        items: Sequence[OrderItemInput],
    ) -> ServiceResult[OrderRead]:
        """
        Replace an order's whole item set and recompute its total.

        This is a full replace, not a merge: afterwards the order holds
        exactly the requested lines.

        Failure kinds: EMPTY_ITEM_LIST, ORDER_NOT_FOUND, ORDER_NOT_MODIFIABLE,
        INVALID_QUANTITY, MENU_ITEM_NOT_FOUND, PERSISTENCE_ERROR.
        """
        if not items:
            return ServiceResult.fail(ErrorKind.EMPTY_ITEM_LIST, MSG_EMPTY_ITEM_LIST)

        try:
            async with self._session_factory() as session:
                order = await self.orders.find_order_with_items(session, order_id)
                if order is None:
                    return ServiceResult.fail(ErrorKind.ORDER_NOT_FOUND, MSG_ORDER_NOT_FOUND)

                if not order.is_modifiable:
                    logger.debug(f"Order #{order_id} is {order.status.value}, modification refused")
                    return ServiceResult.fail(ErrorKind.ORDER_NOT_MODIFIABLE, not_modifiable_message())

                lines = validate_quantities(items)
                if lines is None:
                    return ServiceResult.fail(ErrorKind.INVALID_QUANTITY, MSG_INVALID_QUANTITY)

                menu_items = await self._resolve_menu_items(session, lines)
                if menu_items is None:
                    return ServiceResult.fail(ErrorKind.MENU_ITEM_NOT_FOUND, MSG_MENU_ITEM_NOT_FOUND)

                if exceeds_amount_limit(lines, menu_items):
                    return ServiceResult.fail(ErrorKind.INVALID_QUANTITY, MSG_AMOUNT_TOO_LARGE)

            await self._in_transaction(self._write_replacement, order_id, lines, menu_items)
            result = await self._load_order(order_id, failure_message="Failed to update order")

        except RejectedWrite as rejected:
            return ServiceResult.fail(rejected.kind, rejected.message)
        except Exception as e:
            logger.exception(f"Error modifying order #{order_id}: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to modify order", str(e))

        if result.success:
            logger.info(
                f"Order #{order_id} items replaced "
                f"({len(lines)} items, total {result.data.total_amount})"
            )
        return result

    async def get_order(self, order_id: int) -> ServiceResult[OrderRead]:
        """Fetch one order with its items. Failure kinds: ORDER_NOT_FOUND, PERSISTENCE_ERROR."""
        try:
            async with self._session_factory() as session:
                order = await self.orders.find_order_with_items(session, order_id)
                if order is None:
                    return ServiceResult.fail(ErrorKind.ORDER_NOT_FOUND, MSG_ORDER_NOT_FOUND)
                return ServiceResult.ok(OrderRead.model_validate(order))
        except Exception as e:
            logger.exception(f"Error fetching order #{order_id}: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to fetch order", str(e))

    # =========================================================================
    # TRANSACTIONAL WRITES
    # =========================================================================

    async def _write_new_order(
        self,
        session: AsyncSession,
        customer_id: int,
        lines: list[OrderLine],
        menu_items: list[MenuItem],
    ) -> int:
        order = await self.orders.create_empty_order(session, customer_id)
        await self.orders.replace_items(session, order.id, lines, menu_items)
        return order.id

    async def _write_replacement(
        self,
        session: AsyncSession,
        order_id: int,
        lines: list[OrderLine],
        menu_items: list[MenuItem],
    ) -> None:
        # Re-check under the row lock: another request may have moved the
        # order since validation.
        order = await self.orders.lock_order(session, order_id)
        if order is None:
            raise RejectedWrite(ErrorKind.ORDER_NOT_FOUND, MSG_ORDER_NOT_FOUND)
        if not order.is_modifiable:
            raise RejectedWrite(ErrorKind.ORDER_NOT_MODIFIABLE, not_modifiable_message())

        removed = await self.orders.clear_items(session, order_id)
        logger.debug(f"Order #{order_id}: removed {removed} items before replacement")
        await self.orders.replace_items(session, order_id, lines, menu_items)

    async def _in_transaction(self, work: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """
        Run `work(session, *args)` in one transaction bounded by the deadline.

        On timeout the task is cancelled, the transaction rolled back and
        asyncio.TimeoutError propagates.
        """
        async def run() -> Any:
            async with unit_of_work(self._session_factory) as session:
                return await work(session, *args)

        return await asyncio.wait_for(run(), timeout=self.transaction_timeout)

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _resolve_menu_items(
        self,
        session: AsyncSession,
        lines: list[OrderLine],
    ) -> Optional[list[MenuItem]]:
        """One batch lookup; None unless every distinct requested id exists."""
        requested_ids = {line.menu_item_id for line in lines}
        menu_items = await self.menu.find_by_ids(session, requested_ids)
        if len(menu_items) != len(requested_ids):
            logger.debug(
                f"Unknown menu items requested: "
                f"{sorted(requested_ids - {m.id for m in menu_items})}"
            )
            return None
        return menu_items

    async def _load_order(self, order_id: int, failure_message: str) -> ServiceResult[OrderRead]:
        """Re-read a committed order in a fresh session."""
        async with self._session_factory() as session:
            order = await self.orders.find_order_with_items(session, order_id)
            if order is None:
                return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, failure_message)
            return ServiceResult.ok(OrderRead.model_validate(order))
