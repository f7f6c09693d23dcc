"""
Seed Script

Creates the schema and loads a demo menu and a handful of demo customers.
Safe to run more than once: the menu is only loaded into an empty database,
and customers whose email is already registered are skipped.

Run from project root: python scripts/seed.py
"""

import asyncio
import logging
import sys
from decimal import Decimal

from restaurant_orders.core.config import get_settings, setup_logging
from restaurant_orders.database import (
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from restaurant_orders.repositories import CustomerRepository, MenuRepository
from restaurant_orders.services import build_services

logger = logging.getLogger("restaurant_orders.seed")

MENU_ITEMS = [
    ("Bruschetta", "Toasted bread topped with tomatoes, garlic, and basil", "8.99", "starter"),
    ("Mozzarella Sticks", "Breaded mozzarella with marinara sauce", "7.99", "starter"),
    ("Spinach Artichoke Dip", "Creamy dip served with tortilla chips", "9.99", "starter"),
    ("Spaghetti Bolognese", "Pasta with slow-cooked meat sauce", "14.99", "main_course"),
    ("Grilled Salmon", "Salmon fillet with seasonal vegetables", "18.99", "main_course"),
    ("Chicken Parmesan", "Breaded chicken with marinara and melted cheese", "16.99", "main_course"),
    ("Vegetable Stir Fry", "Seasonal vegetables wok-fried in soy ginger sauce", "13.99", "main_course"),
    ("Chocolate Lava Cake", "Warm chocolate cake with a molten center", "7.99", "dessert"),
    ("Cheesecake", "New York style cheesecake with berry compote", "6.99", "dessert"),
    ("Tiramisu", "Coffee-soaked ladyfingers layered with mascarpone", "8.99", "dessert"),
    ("Fresh Lemonade", "House-made lemonade", "3.99", "drink"),
    ("Iced Tea", "Freshly brewed and chilled", "2.99", "drink"),
    ("Espresso", "Double shot", "3.49", "drink"),
    ("Red Wine", "Glass of house red", "8.99", "drink"),
]

CUSTOMERS = [
    ("John Doe", "john.doe@example.com", "555-123-4567"),
    ("Jane Smith", "jane.smith@example.com", "555-234-5678"),
    ("Robert Johnson", "robert.johnson@example.com", "555-345-6789"),
    ("Maria Garcia", "maria.garcia@example.com", "555-456-7890"),
    ("David Kim", "david.kim@example.com", "555-567-8901"),
]


async def seed() -> int:
    settings = get_settings()
    setup_logging(settings)

    engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)
    services = build_services(session_factory, settings)
    failures = 0

    try:
        await init_db(engine)

        async with session_factory() as session:
            menu_count, _ = await MenuRepository().find_all(session, limit=1, offset=0)

        if menu_count:
            logger.info(f"Menu already has {menu_count} items, skipping menu")
        else:
            for name, description, price, category in MENU_ITEMS:
                result = await services.menu.add_menu_item(name, description, Decimal(price), category)
                if not result.success:
                    failures += 1
                    logger.error(f"Could not add {name}: {result.error_message}")
            logger.info(f"Added {len(MENU_ITEMS) - failures} menu items")

        customers = CustomerRepository()
        for name, email, phone in CUSTOMERS:
            async with session_factory() as session:
                existing = await customers.find_by_email(session, email)
            if existing is not None:
                logger.info(f"Customer {email} already registered as #{existing.id}")
                continue

            result = await services.customers.register_customer(name, email, phone)
            if result.success:
                logger.info(f"Registered {name} as #{result.data.id}")
            else:
                failures += 1
                logger.error(f"Could not register {email}: {result.error_message}")
    finally:
        await engine.dispose()

    return failures


if __name__ == "__main__":
    sys.exit(1 if asyncio.run(seed()) else 0)
