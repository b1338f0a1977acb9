"""
Repository interfaces (persistence capabilities consumed by the services).

Each entity's storage access is an abstract capability so the order state machine
can run against Supabase in production and against the in-memory store in tests.

Implementations return domain models and raise domain errors:
- NotFoundError when a referenced row does not exist,
- DuplicateInventoryError / UniqueViolationError for uniqueness violations,
- RepositoryError for any other persistence failure.

Multi-row writes on OrderRepository are single units of work: either every row
changes or none does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from domain.inventory import ProductInventory
from domain.order import Order, OrderItemDraft, OrderStatus
from domain.product import Product
from domain.sales_slot import SalesSlot


class ProductRepository(ABC):
    @abstractmethod
    def create(self, product: Product) -> Product:
        ...

    @abstractmethod
    def find_by_id(self, product_id: UUID, *, include_deleted: bool = False) -> Product:
        """Return the product or raise NotFoundError (deleted rows hidden by default)."""
        ...

    @abstractmethod
    def find_all(self) -> List[Product]:
        """Return all non-deleted products ordered by created_at."""
        ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Product]:
        ...

    @abstractmethod
    def update(self, product: Product) -> Product:
        ...

    @abstractmethod
    def delete(self, product_id: UUID, deleted_at: datetime) -> None:
        """Logical delete; raises NotFoundError if absent or already deleted."""
        ...


class SalesSlotRepository(ABC):
    @abstractmethod
    def create(self, slot: SalesSlot) -> SalesSlot:
        ...

    @abstractmethod
    def find_by_id(self, slot_id: UUID) -> SalesSlot:
        ...

    @abstractmethod
    def find_all(self) -> List[SalesSlot]:
        """Return all slots ordered by start_time."""
        ...

    @abstractmethod
    def find_active(self) -> List[SalesSlot]:
        ...

    @abstractmethod
    def find_by_time_range(self, start: datetime, end: datetime) -> List[SalesSlot]:
        """Return slots overlapping [start, end): slot.start < end and slot.end > start."""
        ...

    @abstractmethod
    def set_active(self, slot_id: UUID, is_active: bool) -> SalesSlot:
        """Flip the active flag unconditionally; raises NotFoundError if absent."""
        ...


class ProductInventoryRepository(ABC):
    @abstractmethod
    def create(self, inventory: ProductInventory) -> ProductInventory:
        """Insert a ledger row; raises DuplicateInventoryError if (slot, product) exists."""
        ...

    @abstractmethod
    def find_by_id(self, inventory_id: UUID) -> ProductInventory:
        ...

    @abstractmethod
    def find_by_slot_and_product(self, slot_id: UUID, product_id: UUID) -> ProductInventory:
        """Absence is NotFoundError, never a zero-stock row."""
        ...

    @abstractmethod
    def find_by_slot(self, slot_id: UUID) -> List[ProductInventory]:
        ...

    @abstractmethod
    def find_by_product(self, product_id: UUID) -> List[ProductInventory]:
        ...

    @abstractmethod
    def update_quantities(self, inventory_id: UUID, reserved: int, sold: int) -> ProductInventory:
        """
        Set absolute reserved/sold values.

        Raises InsufficientInventoryError if reserved + sold > initial_quantity and
        ReservationConflictError if reserved is below the units RESERVED orders of
        the row still hold. The checks and the write happen atomically for the row.
        """
        ...


class OrderRepository(ABC):
    @abstractmethod
    def find_by_id(self, order_id: UUID) -> Order:
        ...

    @abstractmethod
    def find_all(self) -> List[Order]:
        ...

    @abstractmethod
    def find_by_status(self, status: OrderStatus) -> List[Order]:
        ...

    @abstractmethod
    def find_by_slot(self, slot_id: UUID) -> List[Order]:
        ...

    @abstractmethod
    def find_by_ticket_number(self, ticket_number: str) -> Order:
        ...

    @abstractmethod
    def held_quantity(self, slot_id: UUID, product_id: UUID) -> int:
        """Units of `product_id` reserved by RESERVED orders of `slot_id`."""
        ...

    @abstractmethod
    def create_with_items(self, order: Order, items: Sequence[OrderItemDraft]) -> Order:
        """
        Persist `order` with `items` and reserve each item's quantity on the
        (order.slot_id, product_id) ledger row, as one unit of work.

        Raises InsufficientInventoryError / NotFoundError (nothing written) or
        UniqueViolationError for a duplicate ticket number.
        """
        ...

    @abstractmethod
    def add_items(self, order_id: UUID, items: Sequence[OrderItemDraft]) -> Order:
        """
        Append items, add their subtotal to total_amount and reserve their
        quantities, as one unit of work. The order must still be RESERVED when
        the unit runs (InvalidOrderStatusError otherwise).
        """
        ...

    @abstractmethod
    def update_status(self, order_id: UUID, expected: OrderStatus, new_status: OrderStatus) -> Order:
        """
        Compare-and-swap the status from `expected` to `new_status` and apply the
        matching ledger move per item (CONFIRMED: reserved -> sold,
        CANCELLED: release reserved), as one unit of work.
        """
        ...

    @abstractmethod
    def update_flags(
        self,
        order_id: UUID,
        *,
        is_paid: Optional[bool] = None,
        transaction_id: Optional[str] = None,
        is_delivered: Optional[bool] = None,
    ) -> Order:
        ...


__all__ = [
    "ProductRepository",
    "SalesSlotRepository",
    "ProductInventoryRepository",
    "OrderRepository",
]
