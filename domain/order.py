"""
Domain: Orders and order items.

Contract excerpts implemented here:
- An Order belongs to exactly one SalesSlot and starts RESERVED.
- RESERVED -> CONFIRMED | CANCELLED, exactly once; both targets are terminal.
- Items may only be added while RESERVED; they are appended and their subtotal is
  added to total_amount.
- OrderItem.price is a snapshot of the product price at the moment the item was
  added, never a live reference.
- is_paid / is_delivered only move false -> true and carry no status guard.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple
from uuid import UUID

from .errors import InvalidOrderStatusError
from .time import require_utc_timestamp


class OrderStatus(str, Enum):
    RESERVED = "RESERVED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value: object) -> "OrderStatus":
        """Total conversion: unrecognised values fall back to RESERVED."""

        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.RESERVED

    @classmethod
    def from_name(cls, value: str) -> "OrderStatus":
        """Strict conversion for caller input; raises ValueError when unknown."""

        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Invalid order status: {value!r}") from None


class PaymentMethod(str, Enum):
    CASH = "CASH"
    PAYPAY = "PAYPAY"
    SQUARE = "SQUARE"

    @classmethod
    def parse(cls, value: object) -> "PaymentMethod":
        """Total conversion: unrecognised values fall back to CASH."""

        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.CASH

    @classmethod
    def from_name(cls, value: str) -> "PaymentMethod":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Invalid payment method: {value!r}") from None


# Legal transitions of the order state machine.
_TRANSITIONS = {
    OrderStatus.RESERVED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class OrderItemDraft:
    """A validated, priced line waiting to be written together with its reservation."""

    product_id: UUID
    quantity: int
    price: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True, slots=True)
class OrderItem:
    item_id: UUID
    order_id: UUID
    product_id: UUID
    quantity: int
    price: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True, slots=True)
class Order:
    """
    Order aggregate. Owns its items (composition); items never outlive the order.
    """

    order_id: UUID
    slot_id: UUID
    ticket_number: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: OrderStatus = OrderStatus.RESERVED
    total_amount: int = 0
    transaction_id: Optional[str] = None
    is_paid: bool = False
    is_delivered: bool = False
    items: Tuple[OrderItem, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.ticket_number or not self.ticket_number.strip():
            raise ValueError("ticket_number must not be empty")
        if self.total_amount < 0:
            raise ValueError("total_amount must be >= 0")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.status]

    def calculate_total_amount(self) -> int:
        return sum(item.subtotal for item in self.items)

    def ensure_can_add_items(self) -> None:
        if self.status is not OrderStatus.RESERVED:
            raise InvalidOrderStatusError(self.status)

    def ensure_can_transition(self, new_status: OrderStatus) -> None:
        if new_status not in _TRANSITIONS[self.status]:
            raise InvalidOrderStatusError(self.status, new_status)

    def transitioned_to(self, new_status: OrderStatus, at: Optional[datetime] = None) -> "Order":
        self.ensure_can_transition(new_status)
        return replace(self, status=new_status, updated_at=at or self.updated_at)

    def with_items(self, new_items: Iterable[OrderItem], at: Optional[datetime] = None) -> "Order":
        self.ensure_can_add_items()
        added = tuple(new_items)
        return replace(
            self,
            items=self.items + added,
            total_amount=self.total_amount + sum(item.subtotal for item in added),
            updated_at=at or self.updated_at,
        )

    def mark_paid(self, transaction_id: str, at: Optional[datetime] = None) -> "Order":
        return replace(self, is_paid=True, transaction_id=transaction_id, updated_at=at or self.updated_at)

    def mark_delivered(self, at: Optional[datetime] = None) -> "Order":
        return replace(self, is_delivered=True, updated_at=at or self.updated_at)


def build_items(order_id: UUID, drafts: Iterable[OrderItemDraft], new_id) -> Tuple[OrderItem, ...]:
    """Materialize drafts as OrderItems of `order_id`, using `new_id()` for identities."""

    return tuple(
        OrderItem(
            item_id=new_id(),
            order_id=order_id,
            product_id=draft.product_id,
            quantity=draft.quantity,
            price=draft.price,
        )
        for draft in drafts
    )
