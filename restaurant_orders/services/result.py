"""
Service Result Types

Every service operation returns a ServiceResult instead of raising, so the
request layer never has to guess which exceptions a call may throw.
A result is either a success carrying its payload or a failure carrying an
ErrorKind and one human-readable message.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Typed failure reasons, grouped by how callers should react."""
    # Input validation
    VALIDATION_FAILED = "validation_failed"
    EMPTY_ITEM_LIST = "empty_item_list"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_STATUS = "invalid_status"
    INVALID_CATEGORY = "invalid_category"

    # Referential
    CUSTOMER_NOT_FOUND = "customer_not_found"
    ORDER_NOT_FOUND = "order_not_found"
    MENU_ITEM_NOT_FOUND = "menu_item_not_found"

    # State
    ORDER_NOT_MODIFIABLE = "order_not_modifiable"

    # Persistence / integrity
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    PERSISTENCE_ERROR = "persistence_error"

    @property
    def is_not_found(self) -> bool:
        return self in (
            ErrorKind.CUSTOMER_NOT_FOUND,
            ErrorKind.ORDER_NOT_FOUND,
        )


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Attributes:
        success: Whether the operation succeeded
        data: Payload on success
        error_kind: Failure reason on failure
        error_message: User-facing description of the failure
        error_detail: Underlying cause, for diagnostics only
    """
    success: bool
    data: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    error_detail: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        message: str,
        detail: Optional[str] = None,
    ) -> "ServiceResult[T]":
        return cls(success=False, error_kind=kind, error_message=message, error_detail=detail)
