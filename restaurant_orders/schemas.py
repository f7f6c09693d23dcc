"""
Pydantic Schemas for Request/Response Validation

Request schemas are deliberately lenient: presence, quantity, status and
category rules are business rules checked by the services, which report
them as typed failures. Response schemas are built from ORM rows while
their session is still open.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, PlainSerializer

from restaurant_orders.models import MenuItemCategory, OrderStatus

# Decimal in Python, a plain number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CustomerCreate(BaseModel):
    """A fully valid customer registration."""
    name: str = Field(..., min_length=1, max_length=100, examples=["John Doe"])
    email: EmailStr = Field(..., examples=["john.doe@example.com"])
    phone: str = Field(..., min_length=1, max_length=30, examples=["555-123-4567"])


class CustomerRegisterRequest(BaseModel):
    """Body of POST /customer."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class MenuItemCreateRequest(BaseModel):
    """Body of POST /menu."""
    name: Optional[str] = Field(None, examples=["Grilled Salmon"])
    description: Optional[str] = Field(None, examples=["Salmon fillet with seasonal vegetables"])
    price: Optional[Decimal] = Field(None, examples=["18.99"])
    category: Optional[str] = Field(None, examples=["main_course"])


class OrderItemInput(BaseModel):
    """Single requested line: which menu item and how many."""
    menu_item_id: int = Field(..., examples=[1])
    # Raw JSON value; the order service decides what is a valid quantity
    quantity: Any = Field(None, examples=[2])


class OrderCreateRequest(BaseModel):
    """Body of POST /order."""
    customer_id: int = Field(..., examples=[1])
    items: List[OrderItemInput] = Field(default_factory=list)


class OrderModifyRequest(BaseModel):
    """Body of PATCH /order/modify/{order_id}."""
    items: List[OrderItemInput] = Field(default_factory=list)


class OrderStatusUpdateRequest(BaseModel):
    """Body of PATCH /order/{order_id}."""
    status: Optional[str] = Field(None, examples=["preparing"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CustomerRead(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MenuItemRead(BaseModel):
    id: int
    name: str
    description: str
    price: Money
    category: MenuItemCategory
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MenuItemSummary(BaseModel):
    """Menu item fields joined onto an order line for display."""
    id: int
    name: str
    price: Money
    category: MenuItemCategory

    class Config:
        from_attributes = True


class OrderItemRead(BaseModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int
    unit_price: Money
    subtotal: Money
    menu_item: MenuItemSummary

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: int
    customer_id: int
    status: OrderStatus
    total_amount: Money
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead]

    class Config:
        from_attributes = True


class MenuItemPage(BaseModel):
    """One page of the menu."""
    menu_items: List[MenuItemRead]
    total_items: int
    total_pages: int
    current_page: int


class CustomerOrdersPage(BaseModel):
    """One page of a customer's orders, newest first."""
    orders: List[OrderRead]
    total_orders: int
    total_pages: int
    current_page: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    environment: str
    timestamp: datetime
