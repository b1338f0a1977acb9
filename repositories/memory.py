"""
In-memory persistence backend.

Implements every repository interface on top of one InMemoryStore. A single
re-entrant lock serializes all writes, so each unit of work (order creation,
item addition, status transition, quantity update) is isolated per store.
Units are copy-on-write: new row values are computed first and only published
once every check has passed, so a failure leaves the store untouched.

Used by the test-suite and by STORAGE_BACKEND=memory for local demos.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from domain.errors import (
    DuplicateInventoryError,
    InvalidOrderStatusError,
    NotFoundError,
    UniqueViolationError,
)
from domain.inventory import ProductInventory
from domain.order import Order, OrderItemDraft, OrderStatus, build_items
from domain.product import Product
from domain.sales_slot import SalesSlot
from domain.time import utc_now
from repositories.interfaces import (
    OrderRepository,
    ProductInventoryRepository,
    ProductRepository,
    SalesSlotRepository,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(entity) -> datetime:
    return entity.created_at or _EPOCH


@dataclass
class InMemoryStore:
    """Tables of the in-memory backend, guarded by one lock."""

    products: Dict[UUID, Product] = field(default_factory=dict)
    slots: Dict[UUID, SalesSlot] = field(default_factory=dict)
    inventories: Dict[UUID, ProductInventory] = field(default_factory=dict)
    orders: Dict[UUID, Order] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)

    def inventory_for(self, slot_id: UUID, product_id: UUID) -> ProductInventory:
        for row in self.inventories.values():
            if row.slot_id == slot_id and row.product_id == product_id:
                return row
        raise NotFoundError("ProductInventory", f"slot={slot_id} product={product_id}")

    def held_quantity(self, slot_id: UUID, product_id: UUID) -> int:
        return sum(
            item.quantity
            for order in self.orders.values()
            if order.slot_id == slot_id and order.status is OrderStatus.RESERVED
            for item in order.items
            if item.product_id == product_id
        )

    def close(self) -> None:
        with self.lock:
            logger.info(
                "Releasing in-memory store",
                extra={"orders": len(self.orders), "inventories": len(self.inventories)},
            )


class InMemoryProductRepository(ProductRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def create(self, product: Product) -> Product:
        with self._store.lock:
            self._store.products[product.product_id] = product
        return product

    def find_by_id(self, product_id: UUID, *, include_deleted: bool = False) -> Product:
        product = self._store.products.get(product_id)
        if product is None or (product.is_deleted and not include_deleted):
            raise NotFoundError("Product", product_id)
        return product

    def find_all(self) -> List[Product]:
        with self._store.lock:
            products = [p for p in self._store.products.values() if not p.is_deleted]
        return sorted(products, key=_created_key)

    def find_by_name(self, name: str) -> Optional[Product]:
        with self._store.lock:
            for product in self._store.products.values():
                if product.name == name and not product.is_deleted:
                    return product
        return None

    def update(self, product: Product) -> Product:
        with self._store.lock:
            self.find_by_id(product.product_id)
            self._store.products[product.product_id] = product
        return product

    def delete(self, product_id: UUID, deleted_at: datetime) -> None:
        with self._store.lock:
            product = self.find_by_id(product_id)
            self._store.products[product_id] = product.deleted(deleted_at)


class InMemorySalesSlotRepository(SalesSlotRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def create(self, slot: SalesSlot) -> SalesSlot:
        with self._store.lock:
            self._store.slots[slot.slot_id] = slot
        return slot

    def find_by_id(self, slot_id: UUID) -> SalesSlot:
        slot = self._store.slots.get(slot_id)
        if slot is None:
            raise NotFoundError("SalesSlot", slot_id)
        return slot

    def find_all(self) -> List[SalesSlot]:
        with self._store.lock:
            slots = list(self._store.slots.values())
        return sorted(slots, key=lambda s: s.start_time)

    def find_active(self) -> List[SalesSlot]:
        return [slot for slot in self.find_all() if slot.is_active]

    def find_by_time_range(self, start: datetime, end: datetime) -> List[SalesSlot]:
        return [slot for slot in self.find_all() if slot.overlaps(start, end)]

    def set_active(self, slot_id: UUID, is_active: bool) -> SalesSlot:
        with self._store.lock:
            slot = self.find_by_id(slot_id)
            now = utc_now()
            updated = slot.activated(now) if is_active else slot.deactivated(now)
            self._store.slots[slot_id] = updated
        return updated


class InMemoryProductInventoryRepository(ProductInventoryRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def create(self, inventory: ProductInventory) -> ProductInventory:
        with self._store.lock:
            try:
                self._store.inventory_for(inventory.slot_id, inventory.product_id)
            except NotFoundError:
                self._store.inventories[inventory.inventory_id] = inventory
                return inventory
            raise DuplicateInventoryError(inventory.slot_id, inventory.product_id)

    def find_by_id(self, inventory_id: UUID) -> ProductInventory:
        row = self._store.inventories.get(inventory_id)
        if row is None:
            raise NotFoundError("ProductInventory", inventory_id)
        return row

    def find_by_slot_and_product(self, slot_id: UUID, product_id: UUID) -> ProductInventory:
        with self._store.lock:
            return self._store.inventory_for(slot_id, product_id)

    def find_by_slot(self, slot_id: UUID) -> List[ProductInventory]:
        with self._store.lock:
            return [row for row in self._store.inventories.values() if row.slot_id == slot_id]

    def find_by_product(self, product_id: UUID) -> List[ProductInventory]:
        with self._store.lock:
            return [row for row in self._store.inventories.values() if row.product_id == product_id]

    def update_quantities(self, inventory_id: UUID, reserved: int, sold: int) -> ProductInventory:
        with self._store.lock:
            row = self.find_by_id(inventory_id)
            held = self._store.held_quantity(row.slot_id, row.product_id)
            updated = replace(row.with_quantities(reserved, sold, held), updated_at=utc_now())
            self._store.inventories[inventory_id] = updated
        return updated


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def find_by_id(self, order_id: UUID) -> Order:
        order = self._store.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def find_all(self) -> List[Order]:
        with self._store.lock:
            orders = list(self._store.orders.values())
        return sorted(orders, key=_created_key)

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        return [order for order in self.find_all() if order.status is status]

    def find_by_slot(self, slot_id: UUID) -> List[Order]:
        return [order for order in self.find_all() if order.slot_id == slot_id]

    def find_by_ticket_number(self, ticket_number: str) -> Order:
        with self._store.lock:
            for order in self._store.orders.values():
                if order.ticket_number == ticket_number:
                    return order
        raise NotFoundError("Order", f"ticket_number={ticket_number}")

    def held_quantity(self, slot_id: UUID, product_id: UUID) -> int:
        with self._store.lock:
            return self._store.held_quantity(slot_id, product_id)

    def _reserved_rows(
        self, slot_id: UUID, items: Sequence[OrderItemDraft]
    ) -> Dict[UUID, ProductInventory]:
        """Compute reserved ledger rows for `items` without publishing them."""

        pending: Dict[UUID, ProductInventory] = {}
        for item in items:
            row = pending.get(item.product_id) or self._store.inventory_for(slot_id, item.product_id)
            pending[item.product_id] = row.reserve(item.quantity)
        return pending

    def _publish_rows(self, rows: Dict[UUID, ProductInventory], at: datetime) -> None:
        for row in rows.values():
            self._store.inventories[row.inventory_id] = replace(row, updated_at=at)

    def create_with_items(self, order: Order, items: Sequence[OrderItemDraft]) -> Order:
        with self._store.lock:
            if any(o.ticket_number == order.ticket_number for o in self._store.orders.values()):
                raise UniqueViolationError(
                    "create_order", f"ticket_number {order.ticket_number!r} already exists"
                )
            rows = self._reserved_rows(order.slot_id, items)
            now = utc_now()
            created = replace(
                order,
                items=build_items(order.order_id, items, uuid4),
                created_at=order.created_at or now,
                updated_at=now,
            )
            created = replace(created, total_amount=created.calculate_total_amount())
            self._publish_rows(rows, now)
            self._store.orders[created.order_id] = created
        return created

    def add_items(self, order_id: UUID, items: Sequence[OrderItemDraft]) -> Order:
        with self._store.lock:
            order = self.find_by_id(order_id)
            order.ensure_can_add_items()
            rows = self._reserved_rows(order.slot_id, items)
            now = utc_now()
            updated = order.with_items(build_items(order_id, items, uuid4), at=now)
            self._publish_rows(rows, now)
            self._store.orders[order_id] = updated
        return updated

    def update_status(self, order_id: UUID, expected: OrderStatus, new_status: OrderStatus) -> Order:
        with self._store.lock:
            order = self.find_by_id(order_id)
            if order.status is not expected:
                raise InvalidOrderStatusError(order.status, new_status)
            now = utc_now()
            updated = order.transitioned_to(new_status, at=now)

            pending: Dict[UUID, ProductInventory] = {}
            for item in order.items:
                row = pending.get(item.product_id) or self._store.inventory_for(
                    order.slot_id, item.product_id
                )
                if new_status is OrderStatus.CONFIRMED:
                    pending[item.product_id] = row.fulfill(item.quantity)
                else:
                    pending[item.product_id] = row.release(item.quantity)

            self._publish_rows(pending, now)
            self._store.orders[order_id] = updated
        return updated

    def update_flags(
        self,
        order_id: UUID,
        *,
        is_paid: Optional[bool] = None,
        transaction_id: Optional[str] = None,
        is_delivered: Optional[bool] = None,
    ) -> Order:
        with self._store.lock:
            order = self.find_by_id(order_id)
            now = utc_now()
            if is_paid:
                order = order.mark_paid(transaction_id or order.transaction_id or "", at=now)
            if is_delivered:
                order = order.mark_delivered(at=now)
            self._store.orders[order_id] = order
        return order


def build_memory_repositories(
    store: Optional[InMemoryStore] = None,
) -> Tuple[
    InMemoryStore,
    InMemoryProductRepository,
    InMemorySalesSlotRepository,
    InMemoryProductInventoryRepository,
    InMemoryOrderRepository,
]:
    store = store or InMemoryStore()
    return (
        store,
        InMemoryProductRepository(store),
        InMemorySalesSlotRepository(store),
        InMemoryProductInventoryRepository(store),
        InMemoryOrderRepository(store),
    )


__all__ = [
    "InMemoryStore",
    "InMemoryProductRepository",
    "InMemorySalesSlotRepository",
    "InMemoryProductInventoryRepository",
    "InMemoryOrderRepository",
    "build_memory_repositories",
]
