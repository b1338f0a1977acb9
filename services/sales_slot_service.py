"""
Sales slot lifecycle and inventory ledger management.

Handles:
- Slot creation with time-range validation (slots start inactive)
- Manual activation/deactivation (never derived from the clock)
- Registering a product against a slot with its initial quantity
- Operator adjustment of absolute reserved/sold values (never below what
  RESERVED orders still hold)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List
from uuid import UUID, uuid4

from domain.errors import InvalidTimeRangeError, ReservationConflictError
from domain.inventory import ProductInventory
from domain.sales_slot import SalesSlot
from domain.time import to_utc, utc_now
from repositories.interfaces import (
    OrderRepository,
    ProductInventoryRepository,
    ProductRepository,
    SalesSlotRepository,
)

logger = logging.getLogger(__name__)


class SalesSlotService:
    def __init__(
        self,
        slots: SalesSlotRepository,
        inventories: ProductInventoryRepository,
        products: ProductRepository,
        orders: OrderRepository,
    ) -> None:
        self._slots = slots
        self._inventories = inventories
        self._products = products
        self._orders = orders

    def create_sales_slot(self, start_time: datetime, end_time: datetime) -> SalesSlot:
        """
        Create an inactive slot for [start_time, end_time].

        Raises:
            ValueError: a timestamp is naive.
            InvalidTimeRangeError: end_time precedes start_time.
        """

        start = to_utc("start_time", start_time)
        end = to_utc("end_time", end_time)
        if end < start:
            logger.warning(
                "Rejected sales slot with inverted time range",
                extra={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )
            raise InvalidTimeRangeError()

        now = utc_now()
        slot = self._slots.create(
            SalesSlot(
                slot_id=uuid4(),
                start_time=start,
                end_time=end,
                is_active=False,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Sales slot created",
            extra={
                "slot_id": str(slot.slot_id),
                "start_time": start.isoformat(),
                "end_time": end.isoformat(),
            },
        )
        return slot

    def get_sales_slot(self, slot_id: UUID) -> SalesSlot:
        return self._slots.find_by_id(slot_id)

    def list_sales_slots(self) -> List[SalesSlot]:
        return self._slots.find_all()

    def list_active_sales_slots(self) -> List[SalesSlot]:
        return self._slots.find_active()

    def find_by_time_range(self, start: datetime, end: datetime) -> List[SalesSlot]:
        """Slots intersecting the half-open window [start, end)."""

        start_utc = to_utc("start", start)
        end_utc = to_utc("end", end)
        if end_utc < start_utc:
            raise InvalidTimeRangeError()
        return self._slots.find_by_time_range(start_utc, end_utc)

    def activate_sales_slot(self, slot_id: UUID) -> SalesSlot:
        slot = self._slots.set_active(slot_id, True)
        logger.info("Sales slot activated", extra={"slot_id": str(slot_id)})
        return slot

    def deactivate_sales_slot(self, slot_id: UUID) -> SalesSlot:
        slot = self._slots.set_active(slot_id, False)
        logger.info("Sales slot deactivated", extra={"slot_id": str(slot_id)})
        return slot

    def add_product_to_slot(
        self, slot_id: UUID, product_id: UUID, initial_quantity: int
    ) -> ProductInventory:
        """
        Create the ledger row for (slot, product) with reserved = sold = 0.

        Raises:
            NotFoundError: slot or product does not exist.
            DuplicateInventoryError: the pair is already registered.
            ValueError: initial_quantity is negative.
        """

        self._slots.find_by_id(slot_id)
        self._products.find_by_id(product_id)

        now = utc_now()
        inventory = self._inventories.create(
            ProductInventory(
                inventory_id=uuid4(),
                slot_id=slot_id,
                product_id=product_id,
                initial_quantity=initial_quantity,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Product added to sales slot",
            extra={
                "slot_id": str(slot_id),
                "product_id": str(product_id),
                "initial_quantity": initial_quantity,
            },
        )
        return inventory

    def update_inventory(
        self, slot_id: UUID, product_id: UUID, reserved: int, sold: int
    ) -> ProductInventory:
        """
        Operator correction: set absolute reserved/sold values of a ledger row.

        Raises:
            InsufficientInventoryError: reserved + sold exceeds the initial quantity.
            ReservationConflictError: reserved is below the units RESERVED orders of
                this slot still hold for the product.
        """

        row = self._inventories.find_by_slot_and_product(slot_id, product_id)
        held = self._orders.held_quantity(slot_id, product_id)
        # Fail fast with the domain error; the backend re-checks under its lock.
        try:
            row.with_quantities(reserved, sold, held)
        except ReservationConflictError:
            logger.warning(
                "Rejected inventory adjustment below held reservations",
                extra={
                    "inventory_id": str(row.inventory_id),
                    "reserved_quantity": reserved,
                    "held_quantity": held,
                },
            )
            raise
        updated = self._inventories.update_quantities(row.inventory_id, reserved, sold)
        logger.info(
            "Inventory adjusted",
            extra={
                "inventory_id": str(row.inventory_id),
                "reserved_quantity": reserved,
                "sold_quantity": sold,
            },
        )
        return updated

    def list_slot_inventory(self, slot_id: UUID) -> List[ProductInventory]:
        self._slots.find_by_id(slot_id)
        return self._inventories.find_by_slot(slot_id)


__all__ = ["SalesSlotService"]
