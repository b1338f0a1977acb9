"""Pure domain model for slot-based food sales: no I/O, no frameworks."""

from .errors import (
    DomainError,
    DuplicateInventoryError,
    ErrorCode,
    InsufficientInventoryError,
    InvalidOrderStatusError,
    InvalidTimeRangeError,
    NotFoundError,
    RepositoryError,
    ReservationConflictError,
    SlotNotActiveError,
    UniqueViolationError,
)
from .inventory import ProductInventory
from .order import Order, OrderItem, OrderItemDraft, OrderStatus, PaymentMethod
from .product import Product
from .sales_slot import SalesSlot

__all__ = [
    "DomainError",
    "DuplicateInventoryError",
    "ErrorCode",
    "InsufficientInventoryError",
    "InvalidOrderStatusError",
    "InvalidTimeRangeError",
    "NotFoundError",
    "RepositoryError",
    "ReservationConflictError",
    "SlotNotActiveError",
    "UniqueViolationError",
    "ProductInventory",
    "Order",
    "OrderItem",
    "OrderItemDraft",
    "OrderStatus",
    "PaymentMethod",
    "Product",
    "SalesSlot",
]
