"""
SQLAlchemy Database Models

Four relations:
- customers: people who place orders (unique email)
- menu_items: the sellable catalog
- orders: a customer's purchase, its status and derived total
- order_items: one line of an order with a price snapshot

Money columns are NUMERIC(10, 2) and are always handled as Decimal.
"""

import enum
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from restaurant_orders.database import Base

CENT = Decimal("0.01")

# Largest values the INTEGER quantity and NUMERIC(10, 2) money columns hold
MAX_QUANTITY = 2_147_483_647
MAX_AMOUNT = Decimal("99999999.99")


def to_money(value: Any) -> Decimal:
    """Convert a number to a Decimal rounded to whole cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderStatus(str, enum.Enum):
    """Order status values. No transition graph is enforced between them."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELED = "canceled"


# Item sets may only be replaced while the kitchen has not finished the order
MODIFIABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING)


class MenuItemCategory(str, enum.Enum):
    """Menu sections."""
    STARTER = "starter"
    MAIN_COURSE = "main_course"
    DESSERT = "dessert"
    DRINK = "drink"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Stored (and user-facing) values of an enum, in declaration order."""
    return [member.value for member in enum_cls]


class Customer(Base):
    """A registered customer. Created once, never updated or deleted here."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return f"<Customer #{self.id} - {self.email}>"


class MenuItem(Base):
    """
    A sellable catalog entry.

    Referenced (not owned) by order items. Deleting a referenced row is
    refused by the foreign key on order_items.
    """
    __tablename__ = "menu_items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_menu_items_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(
        Enum(
            MenuItemCategory,
            name="menu_item_category",
            values_callable=enum_values,
            create_constraint=True,
        ),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class Order(Base):
    """
    A customer's purchase aggregate.

    total_amount is derived: it always equals the sum of the subtotals of the
    order's current items, and is rewritten by the repository in the same
    transaction as every item write.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(
        Integer,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            values_callable=enum_values,
            create_constraint=True,
        ),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    total_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    customer = relationship("Customer", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    @property
    def is_modifiable(self) -> bool:
        """Whether the item set may currently be replaced."""
        return self.status in MODIFIABLE_STATUSES

    def __repr__(self):
        return f"<Order #{self.id} - customer {self.customer_id} - {self.status.value} - {self.total_amount}>"


class OrderItem(Base):
    """
    One line of an order.

    unit_price is a snapshot of the menu price when the line was written,
    so later menu price changes never touch existing orders.
    subtotal = quantity * unit_price, computed once at write time.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
        CheckConstraint("subtotal >= 0", name="ck_order_items_subtotal_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(
        Integer,
        ForeignKey("menu_items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    def __repr__(self):
        return f"<OrderItem #{self.id} - order {self.order_id} - {self.quantity} x {self.unit_price}>"
