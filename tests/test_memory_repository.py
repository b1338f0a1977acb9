"""
Tests for `repositories/memory.py`.

The repository units of work must be all-or-nothing on their own, independent
of any validation the services run first.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from domain.errors import (
    DuplicateInventoryError,
    InsufficientInventoryError,
    InvalidOrderStatusError,
    NotFoundError,
    ReservationConflictError,
    UniqueViolationError,
)
from domain.inventory import ProductInventory
from domain.order import Order, OrderItemDraft, OrderStatus
from domain.sales_slot import SalesSlot
from repositories.memory import build_memory_repositories

START = datetime(2025, 11, 3, 1, 0, tzinfo=timezone.utc)
END = datetime(2025, 11, 3, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def repos():
    store, products, slots, inventories, orders = build_memory_repositories()
    slot = slots.create(SalesSlot(slot_id=uuid4(), start_time=START, end_time=END, is_active=True))
    a, b = uuid4(), uuid4()
    inventories.create(
        ProductInventory(inventory_id=uuid4(), slot_id=slot.slot_id, product_id=a, initial_quantity=5)
    )
    inventories.create(
        ProductInventory(inventory_id=uuid4(), slot_id=slot.slot_id, product_id=b, initial_quantity=2)
    )
    return store, inventories, orders, slot, a, b


def _new_order(slot, ticket: str = "T1") -> Order:
    return Order(order_id=uuid4(), slot_id=slot.slot_id, ticket_number=ticket)


def test_create_with_items_reserves_and_totals(repos) -> None:
    _, inventories, orders, slot, a, b = repos
    created = orders.create_with_items(
        _new_order(slot),
        [OrderItemDraft(a, 2, 100), OrderItemDraft(b, 1, 300)],
    )

    assert created.total_amount == 500
    assert [item.order_id for item in created.items] == [created.order_id] * 2
    assert inventories.find_by_slot_and_product(slot.slot_id, a).reserved_quantity == 2
    assert inventories.find_by_slot_and_product(slot.slot_id, b).reserved_quantity == 1
    assert created.created_at is not None


def test_create_with_items_failure_on_last_item_leaves_no_trace(repos) -> None:
    store, inventories, orders, slot, a, b = repos
    order = _new_order(slot)

    with pytest.raises(InsufficientInventoryError):
        orders.create_with_items(order, [OrderItemDraft(a, 2, 100), OrderItemDraft(b, 3, 300)])

    assert store.orders == {}
    assert inventories.find_by_slot_and_product(slot.slot_id, a).reserved_quantity == 0
    with pytest.raises(NotFoundError):
        orders.find_by_id(order.order_id)


def test_create_with_items_rejects_missing_ledger_row(repos) -> None:
    store, inventories, orders, slot, a, _ = repos
    with pytest.raises(NotFoundError):
        orders.create_with_items(_new_order(slot), [OrderItemDraft(a, 1, 100), OrderItemDraft(uuid4(), 1, 1)])
    assert store.orders == {}
    assert inventories.find_by_slot_and_product(slot.slot_id, a).reserved_quantity == 0


def test_duplicate_ticket_number_raises_unique_violation(repos) -> None:
    _, inventories, orders, slot, a, _ = repos
    orders.create_with_items(_new_order(slot, "X"), [OrderItemDraft(a, 1, 100)])
    with pytest.raises(UniqueViolationError):
        orders.create_with_items(_new_order(slot, "X"), [OrderItemDraft(a, 1, 100)])
    assert inventories.find_by_slot_and_product(slot.slot_id, a).reserved_quantity == 1


def test_update_status_is_compare_and_swap(repos) -> None:
    _, inventories, orders, slot, a, _ = repos
    created = orders.create_with_items(_new_order(slot), [OrderItemDraft(a, 2, 100)])

    orders.update_status(created.order_id, OrderStatus.RESERVED, OrderStatus.CANCELLED)

    # A second writer that validated against RESERVED loses.
    with pytest.raises(InvalidOrderStatusError):
        orders.update_status(created.order_id, OrderStatus.RESERVED, OrderStatus.CONFIRMED)

    row = inventories.find_by_slot_and_product(slot.slot_id, a)
    assert (row.reserved_quantity, row.sold_quantity) == (0, 0)
    assert orders.find_by_id(created.order_id).status is OrderStatus.CANCELLED


def test_update_status_aggregates_repeated_products(repos) -> None:
    _, inventories, orders, slot, a, _ = repos
    created = orders.create_with_items(
        _new_order(slot), [OrderItemDraft(a, 2, 100), OrderItemDraft(a, 3, 100)]
    )
    orders.update_status(created.order_id, OrderStatus.RESERVED, OrderStatus.CONFIRMED)

    row = inventories.find_by_slot_and_product(slot.slot_id, a)
    assert (row.reserved_quantity, row.sold_quantity) == (0, 5)


def test_add_items_rechecks_status(repos) -> None:
    _, _, orders, slot, a, _ = repos
    created = orders.create_with_items(_new_order(slot), [OrderItemDraft(a, 1, 100)])
    orders.update_status(created.order_id, OrderStatus.RESERVED, OrderStatus.CONFIRMED)

    with pytest.raises(InvalidOrderStatusError):
        orders.add_items(created.order_id, [OrderItemDraft(a, 1, 100)])


def test_update_quantities_checks_invariant(repos) -> None:
    _, inventories, _, slot, a, _ = repos
    row = inventories.find_by_slot_and_product(slot.slot_id, a)

    updated = inventories.update_quantities(row.inventory_id, 1, 4)
    assert updated.available_quantity == 0
    with pytest.raises(InsufficientInventoryError):
        inventories.update_quantities(row.inventory_id, 2, 4)
    assert inventories.find_by_id(row.inventory_id) == updated


def test_update_quantities_keeps_reservations_of_open_orders(repos) -> None:
    _, inventories, orders, slot, a, _ = repos
    created = orders.create_with_items(_new_order(slot), [OrderItemDraft(a, 3, 100)])
    row = inventories.find_by_slot_and_product(slot.slot_id, a)

    assert orders.held_quantity(slot.slot_id, a) == 3
    with pytest.raises(ReservationConflictError):
        inventories.update_quantities(row.inventory_id, 2, 0)
    assert inventories.find_by_id(row.inventory_id) == row

    orders.update_status(created.order_id, OrderStatus.RESERVED, OrderStatus.CANCELLED)
    assert orders.held_quantity(slot.slot_id, a) == 0
    assert inventories.update_quantities(row.inventory_id, 0, 0).reserved_quantity == 0


def test_inventory_pair_is_unique(repos) -> None:
    _, inventories, _, slot, a, _ = repos
    with pytest.raises(DuplicateInventoryError):
        inventories.create(
            ProductInventory(inventory_id=uuid4(), slot_id=slot.slot_id, product_id=a, initial_quantity=1)
        )
    assert len(inventories.find_by_slot(slot.slot_id)) == 2
    assert len(inventories.find_by_product(a)) == 1
