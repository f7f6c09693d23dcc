"""
                        Services Module

Business logic behind the HTTP layer. Every operation returns a
ServiceResult; nothing raises past this boundary.

Services:
    - customer: registration and order history
    - menu: menu curation and listing
    - order: order lifecycle (create, modify, status)

Services are plain objects built once by build_services() and handed to the
request layer; there are no module-level instances.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_orders.core.config import Settings
from restaurant_orders.repositories import (
    CustomerRepository,
    MenuRepository,
    OrderRepository,
)
from restaurant_orders.services.customer import CustomerService
from restaurant_orders.services.menu import MenuService
from restaurant_orders.services.order import OrderService
from restaurant_orders.services.result import ErrorKind, ServiceResult


@dataclass
class ServiceContainer:
    """The service objects one application instance works with."""
    customers: CustomerService
    menu: MenuService
    orders: OrderService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> ServiceContainer:
    """
    Wire repositories and services around one session factory.

    Args:
        session_factory: Factory bound to the application's engine
        settings: Supplies page size and transaction deadline
    """
    customer_repository = CustomerRepository()
    menu_repository = MenuRepository()
    order_repository = OrderRepository()

    return ServiceContainer(
        customers=CustomerService(
            session_factory,
            customers=customer_repository,
            orders=order_repository,
            default_page_size=settings.default_page_size,
        ),
        menu=MenuService(
            session_factory,
            menu=menu_repository,
            default_page_size=settings.default_page_size,
        ),
        orders=OrderService(
            session_factory,
            orders=order_repository,
            customers=customer_repository,
            menu=menu_repository,
            transaction_timeout=settings.transaction_timeout_seconds,
        ),
    )


__all__ = [
    "ServiceContainer",
    "build_services",
    "CustomerService",
    "MenuService",
    "OrderService",
    "ErrorKind",
    "ServiceResult",
]
