"""
Database validation tests.

This module checks a live Supabase project created from db/schema.sql:
1. Connection credentials work
2. Required tables exist
3. The atomic order functions keep the inventory ledger consistent

These tests write rows. They only run when RUN_DB_TESTS=1 and the Supabase
credentials are set (in the environment or the project .env file).
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from domain.errors import InsufficientInventoryError, UniqueViolationError
from domain.order import OrderStatus
from repositories.client import create_supabase_client, load_settings
from services.container import build_supabase_container
from services.order_service import OrderItemRequest

REQUIRED_TABLES = ("products", "sales_slots", "product_inventories", "orders", "order_items")

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_DB_TESTS") != "1",
    reason="set RUN_DB_TESTS=1 to run against a live Supabase project",
)


@pytest.fixture(scope="module")
def supabase_client():
    try:
        settings = load_settings()
    except RuntimeError as e:
        pytest.skip(str(e))
    if settings.storage_backend != "supabase":
        pytest.skip("STORAGE_BACKEND is not supabase")
    client = create_supabase_client(settings)
    yield client


@pytest.fixture
def container(supabase_client):
    container = build_supabase_container(supabase_client, owns_client=False)
    yield container
    container.close()


@pytest.mark.parametrize("table", REQUIRED_TABLES)
def test_table_exists(supabase_client, table: str) -> None:
    response = supabase_client.table(table).select("*").limit(1).execute()
    assert isinstance(response.data, list)


def test_order_flow_against_database(container) -> None:
    now = datetime.now(timezone.utc).replace(microsecond=0)
    product = container.products.create_product(f"db-check-{uuid4().hex[:8]}", 100)
    slot = container.sales_slots.create_sales_slot(now, now + timedelta(hours=1))
    container.sales_slots.activate_sales_slot(slot.slot_id)
    container.sales_slots.add_product_to_slot(slot.slot_id, product.product_id, 3)

    ticket = f"db-{uuid4().hex[:12]}"
    order = container.orders.create_order(
        slot.slot_id, [OrderItemRequest(product.product_id, 2)], ticket
    )
    assert order.total_amount == 200
    assert container.orders.get_order_by_ticket_number(ticket).order_id == order.order_id

    with pytest.raises(InsufficientInventoryError):
        container.orders.create_order(
            slot.slot_id, [OrderItemRequest(product.product_id, 2)], f"db-{uuid4().hex[:12]}"
        )
    with pytest.raises(UniqueViolationError):
        container.orders.create_order(
            slot.slot_id, [OrderItemRequest(product.product_id, 1)], ticket
        )

    confirmed = container.orders.confirm_order(order.order_id)
    assert confirmed.status is OrderStatus.CONFIRMED

    row = container.sales_slots.list_slot_inventory(slot.slot_id)[0]
    assert (row.reserved_quantity, row.sold_quantity, row.available_quantity) == (0, 2, 1)

    container.products.delete_product(product.product_id)
