"""
Domain: Inventory ledger for sales slots.

Contract excerpts implemented here:
- Inventory rows are defined per (sales_slot_id, product_id).
- Uniqueness constraint: never more than one row for the same (slot, product) pair.
- InitialQuantity is set once at creation and never changes.
- Invariant: 0 <= reserved + sold <= initial, and
  available = initial - reserved - sold >= 0.
- Reservation holds stock at order time; it is released on cancellation or
  converted to a sale on confirmation.

This module contains only pure domain entities: no I/O, no database, no frameworks.
Every transition returns a new ProductInventory; persistence backends decide how
the new values are written atomically.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from .errors import InsufficientInventoryError, ReservationConflictError
from .time import require_utc_timestamp


def _require_non_negative(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if value <= 0:
        raise ValueError(f"{name} must be > 0")


@dataclass(frozen=True, slots=True)
class ProductInventory:
    """
    Immutable ledger row holding initial/reserved/sold counts for one product in one slot.
    """

    inventory_id: UUID
    slot_id: UUID
    product_id: UUID
    initial_quantity: int
    reserved_quantity: int = 0
    sold_quantity: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        _require_non_negative("initial_quantity", self.initial_quantity)
        _require_non_negative("reserved_quantity", self.reserved_quantity)
        _require_non_negative("sold_quantity", self.sold_quantity)
        if self.reserved_quantity + self.sold_quantity > self.initial_quantity:
            raise InsufficientInventoryError(
                requested=self.reserved_quantity + self.sold_quantity,
                available=self.initial_quantity,
                product_id=self.product_id,
            )
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def available_quantity(self) -> int:
        return self.initial_quantity - self.reserved_quantity - self.sold_quantity

    def with_quantities(self, reserved: int, sold: int, held: int = 0) -> "ProductInventory":
        """
        Return a copy with absolute reserved/sold values.

        `held` is the stock still reserved by RESERVED orders of this row; the
        new reserved value may not drop below it.

        Raises:
            InsufficientInventoryError: reserved + sold would exceed initial.
            ReservationConflictError: reserved is below `held`.
        """

        _require_non_negative("reserved_quantity", reserved)
        _require_non_negative("sold_quantity", sold)
        if reserved < held:
            raise ReservationConflictError(reserved=reserved, held=held, product_id=self.product_id)
        if reserved + sold > self.initial_quantity:
            raise InsufficientInventoryError(
                requested=reserved + sold,
                available=self.initial_quantity,
                product_id=self.product_id,
            )
        return replace(self, reserved_quantity=reserved, sold_quantity=sold)

    def reserve(self, quantity: int) -> "ProductInventory":
        """Hold `quantity` units for an order. Sold is untouched."""

        _require_positive("quantity", quantity)
        if quantity > self.available_quantity:
            raise InsufficientInventoryError(
                requested=quantity,
                available=self.available_quantity,
                product_id=self.product_id,
            )
        return replace(self, reserved_quantity=self.reserved_quantity + quantity)

    def release(self, quantity: int) -> "ProductInventory":
        """Give back a reservation (order cancelled)."""

        _require_positive("quantity", quantity)
        if quantity > self.reserved_quantity:
            raise ValueError(
                f"Cannot release {quantity} units; only {self.reserved_quantity} reserved"
            )
        return replace(self, reserved_quantity=self.reserved_quantity - quantity)

    def fulfill(self, quantity: int) -> "ProductInventory":
        """Convert a reservation into a sale (order confirmed)."""

        _require_positive("quantity", quantity)
        if quantity > self.reserved_quantity:
            raise ValueError(
                f"Cannot fulfill {quantity} units; only {self.reserved_quantity} reserved"
            )
        return replace(
            self,
            reserved_quantity=self.reserved_quantity - quantity,
            sold_quantity=self.sold_quantity + quantity,
        )
