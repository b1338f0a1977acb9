"""
Domain: error taxonomy.

Every failure a caller can act on is a DomainError carrying a stable code and a
client-safe message. Persistence/transport failures are RepositoryError: opaque
to the client and never retried by the core.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    INVALID_ORDER_STATUS = "INVALID_ORDER_STATUS"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    SLOT_NOT_ACTIVE = "SLOT_NOT_ACTIVE"
    DUPLICATE_INVENTORY = "DUPLICATE_INVENTORY"
    RESERVATION_CONFLICT = "RESERVATION_CONFLICT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a product, sales slot, inventory row or order does not exist."""

    def __init__(self, entity: str, key: Any) -> None:
        super().__init__(ErrorCode.NOT_FOUND, f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class InsufficientInventoryError(DomainError):
    """Raised when a requested quantity exceeds the available stock of a ledger row."""

    def __init__(
        self,
        requested: int,
        available: int,
        product_id: Optional[Any] = None,
    ) -> None:
        target = f" for product {product_id}" if product_id is not None else ""
        super().__init__(
            ErrorCode.INSUFFICIENT_INVENTORY,
            f"Insufficient inventory{target}. Requested: {requested}, Available: {available}",
        )
        self.requested = requested
        self.available = available
        self.product_id = product_id


class InvalidOrderStatusError(DomainError):
    """Raised when a transition or item addition is attempted outside its legal source state."""

    def __init__(self, current: Any, requested: Optional[Any] = None) -> None:
        current_value = getattr(current, "value", current)
        if requested is None:
            message = f"Order status {current_value} does not allow this operation"
        else:
            requested_value = getattr(requested, "value", requested)
            message = f"Cannot change order status from {current_value} to {requested_value}"
        super().__init__(ErrorCode.INVALID_ORDER_STATUS, message)
        self.current = current
        self.requested = requested


class InvalidTimeRangeError(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_TIME_RANGE, "end_time must not precede start_time")


class SlotNotActiveError(DomainError):
    def __init__(self, slot_id: Any) -> None:
        super().__init__(ErrorCode.SLOT_NOT_ACTIVE, f"Sales slot is not active: {slot_id}")
        self.slot_id = slot_id


class DuplicateInventoryError(DomainError):
    def __init__(self, slot_id: Any, product_id: Any) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_INVENTORY,
            f"Product {product_id} is already registered for sales slot {slot_id}",
        )
        self.slot_id = slot_id
        self.product_id = product_id


class ReservationConflictError(DomainError):
    """Raised when an adjustment would drop reserved stock below what RESERVED orders hold."""

    def __init__(self, reserved: int, held: int, product_id: Optional[Any] = None) -> None:
        target = f" for product {product_id}" if product_id is not None else ""
        super().__init__(
            ErrorCode.RESERVATION_CONFLICT,
            f"Reserved quantity{target} cannot be {reserved}; open orders hold {held}",
        )
        self.reserved = reserved
        self.held = held
        self.product_id = product_id


class RepositoryError(RuntimeError):
    """Persistence/transport failure surfaced as an opaque internal error."""

    def __init__(self, operation: str, detail: Any) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class UniqueViolationError(RepositoryError):
    """A write was rejected by a uniqueness constraint (e.g. duplicate ticket number)."""


__all__ = [
    "ErrorCode",
    "DomainError",
    "NotFoundError",
    "InsufficientInventoryError",
    "InvalidOrderStatusError",
    "InvalidTimeRangeError",
    "SlotNotActiveError",
    "DuplicateInventoryError",
    "ReservationConflictError",
    "RepositoryError",
    "UniqueViolationError",
]
