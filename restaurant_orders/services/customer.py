"""
Customer Service

Registration and order history lookups.
"""

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_orders.database import unit_of_work
from restaurant_orders.repositories import CustomerRepository, OrderRepository
from restaurant_orders.schemas import (
    CustomerCreate,
    CustomerOrdersPage,
    CustomerRead,
    OrderRead,
)
from restaurant_orders.services.pagination import DEFAULT_LIMIT, resolve_page
from restaurant_orders.services.result import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)


def describe_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one message, e.g. "email: value is not a valid email address"."""
    parts = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        parts.append(f"{field}: {err['msg']}" if field else err["msg"])
    return "; ".join(parts)


class CustomerService:
    """Registers customers and lists their orders."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        customers: CustomerRepository,
        orders: OrderRepository,
        default_page_size: int = DEFAULT_LIMIT,
    ):
        self._session_factory = session_factory
        self.customers = customers
        self.orders = orders
        self.default_page_size = default_page_size

    async def register_customer(
        self,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
    ) -> ServiceResult[CustomerRead]:
        """
        Register a new customer.

        Failure kinds: VALIDATION_FAILED, EMAIL_ALREADY_EXISTS, PERSISTENCE_ERROR.
        """
        if not name or not email or not phone:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED,
                "All fields are required: name, email, phone",
            )

        try:
            data = CustomerCreate(name=name, email=email, phone=phone)
        except ValidationError as e:
            return ServiceResult.fail(ErrorKind.VALIDATION_FAILED, describe_validation_error(e))

        try:
            async with unit_of_work(self._session_factory) as session:
                customer = await self.customers.create(session, data.name, data.email, data.phone)
                registered = CustomerRead.model_validate(customer)
        except IntegrityError as e:
            # email is the only unique column on customers
            logger.info(f"Registration refused, email already exists: {data.email}")
            return ServiceResult.fail(ErrorKind.EMAIL_ALREADY_EXISTS, "Email already exists", str(e.orig))
        except Exception as e:
            logger.exception(f"Error registering customer: {e}")
            return ServiceResult.fail(ErrorKind.PERSISTENCE_ERROR, "Failed to register customer", str(e))

        logger.info(f"Customer #{registered.id} registered")
        return ServiceResult.ok(registered)

    async def list_customer_orders(
        self,
        customer_id: int,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult[CustomerOrdersPage]:
        """
        One page of a customer's orders with their items, newest first.

        Failure kinds: CUSTOMER_NOT_FOUND, PERSISTENCE_ERROR.
        """
        page_request = resolve_page(page, limit, self.default_page_size)

        try:
            async with self._session_factory() as session:
                customer = await self.customers.find_by_id(session, customer_id)
                if customer is None:
                    return ServiceResult.fail(ErrorKind.CUSTOMER_NOT_FOUND, "Customer not found")

                count, orders = await self.orders.list_customer_orders(
                    session,
                    customer_id,
                    limit=page_request.limit,
                    offset=page_request.offset,
                )
                return ServiceResult.ok(
                    CustomerOrdersPage(
                        orders=[OrderRead.model_validate(order) for order in orders],
                        total_orders=count,
                        total_pages=page_request.total_pages(count),
                        current_page=page_request.page,
                    )
                )
        except Exception as e:
            logger.exception(f"Error fetching orders of customer #{customer_id}: {e}")
            return ServiceResult.fail(
                ErrorKind.PERSISTENCE_ERROR, "Failed to fetch customer orders", str(e)
            )
