"""
Data access layer. Repositories are stateless and take the caller's session.
"""

from restaurant_orders.repositories.customer import CustomerRepository
from restaurant_orders.repositories.menu import MenuRepository
from restaurant_orders.repositories.order import (
    OrderLine,
    OrderRepository,
    UnresolvedMenuItemError,
)

__all__ = [
    "CustomerRepository",
    "MenuRepository",
    "OrderLine",
    "OrderRepository",
    "UnresolvedMenuItemError",
]
