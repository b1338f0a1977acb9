"""
Tests for the Supabase persistence helpers and row mapping.

No network: queries and RPC calls are replaced by small fakes returning what
supabase-py returns (objects with .data / .error, or APIError).
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID

import pytest
from postgrest.exceptions import APIError

from domain.errors import (
    InsufficientInventoryError,
    InvalidOrderStatusError,
    NotFoundError,
    RepositoryError,
    ReservationConflictError,
    UniqueViolationError,
)
from domain.order import OrderStatus, PaymentMethod
from repositories.order_repository import _row_to_order
from repositories.supabase_support import (
    call_atomic,
    execute,
    parse_utc_datetime,
    to_iso_utc,
)


class FakeQuery:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return self._response


class FakeRpcClient:
    def __init__(self, query: FakeQuery) -> None:
        self.query = query
        self.calls = []

    def rpc(self, function, params):
        self.calls.append((function, params))
        return self.query


def test_execute_returns_rows() -> None:
    rows = execute(FakeQuery(SimpleNamespace(data=[{"a": 1}], error=None)), "op")
    assert rows == [{"a": 1}]
    assert execute(FakeQuery(SimpleNamespace(data=None, error=None)), "op") == []


def test_execute_maps_unique_violation() -> None:
    error = APIError({"code": "23505", "message": "duplicate key value"})
    with pytest.raises(UniqueViolationError):
        execute(FakeQuery(error=error), "create_order")


def test_execute_maps_other_failures_to_repository_error() -> None:
    error = APIError({"code": "08006", "message": "connection failure"})
    with pytest.raises(RepositoryError) as exc:
        execute(FakeQuery(error=error), "list_orders")
    assert exc.value.operation == "list_orders"
    assert not isinstance(exc.value, UniqueViolationError)


def test_call_atomic_success_passes_params() -> None:
    client = FakeRpcClient(FakeQuery(SimpleNamespace(data={"success": True, "order_id": "x"}, error=None)))
    result = call_atomic(client, "create_order_atomic", {"p_order_id": "x"})
    assert result["order_id"] == "x"
    assert client.calls == [("create_order_atomic", {"p_order_id": "x"})]


def test_call_atomic_reads_json_result_from_api_error() -> None:
    # supabase-py can surface a function's JSON result as an APIError.
    client = FakeRpcClient(FakeQuery(error=APIError({"success": True, "order_id": "y"})))
    assert call_atomic(client, "add_order_items_atomic", {})["order_id"] == "y"


@pytest.mark.parametrize(
    "payload, expected",
    [
        (
            {"success": False, "error": "INSUFFICIENT_INVENTORY", "requested": 5, "available": 2},
            InsufficientInventoryError,
        ),
        (
            {"success": False, "error": "INVALID_ORDER_STATUS", "current": "CONFIRMED"},
            InvalidOrderStatusError,
        ),
        ({"success": False, "error": "NOT_FOUND", "entity": "Order", "key": "k"}, NotFoundError),
        (
            {"success": False, "error": "RESERVATION_CONFLICT", "reserved": 0, "held": 3},
            ReservationConflictError,
        ),
        ({"success": False, "error": "DUPLICATE_TICKET_NUMBER"}, UniqueViolationError),
        ({"success": False, "error": "SOMETHING_ELSE", "message": "boom"}, RepositoryError),
    ],
)
def test_call_atomic_maps_rejections(payload, expected) -> None:
    client = FakeRpcClient(FakeQuery(SimpleNamespace(data=payload, error=None)))
    with pytest.raises(expected):
        call_atomic(client, "transition_order_status_atomic", {})


def test_call_atomic_insufficient_inventory_carries_quantities() -> None:
    payload = {"success": False, "error": "INSUFFICIENT_INVENTORY", "requested": 5, "available": 2}
    client = FakeRpcClient(FakeQuery(SimpleNamespace(data=payload, error=None)))
    with pytest.raises(InsufficientInventoryError) as exc:
        call_atomic(client, "create_order_atomic", {})
    assert (exc.value.requested, exc.value.available) == (5, 2)


def test_call_atomic_plain_api_error_is_repository_error() -> None:
    client = FakeRpcClient(FakeQuery(error=APIError({"code": "57014", "message": "timeout"})))
    with pytest.raises(RepositoryError):
        call_atomic(client, "create_order_atomic", {})


def test_timestamps_round_trip_as_utc() -> None:
    assert parse_utc_datetime("2025-11-03T01:00:00Z") == datetime(2025, 11, 3, 1, tzinfo=timezone.utc)
    assert parse_utc_datetime("2025-11-03T10:00:00+09:00").utcoffset().total_seconds() == 0
    assert to_iso_utc(datetime(2025, 11, 3, 1, tzinfo=timezone.utc), name="t").startswith(
        "2025-11-03T01:00:00"
    )


def test_row_to_order_maps_embedded_items_in_position_order() -> None:
    order_id = "00000000-0000-0000-0000-000000000001"
    row = {
        "order_id": order_id,
        "sales_slot_id": "00000000-0000-0000-0000-000000000002",
        "status": "CONFIRMED",
        "total_amount": 550,
        "ticket_number": "A-1",
        "payment_method": "square",
        "transaction_id": "sq-1",
        "is_paid": True,
        "is_delivered": False,
        "created_at_utc": "2025-11-03T01:05:00+00:00",
        "updated_at_utc": "2025-11-03T01:06:00+00:00",
        "order_items": [
            {
                "item_id": "00000000-0000-0000-0000-0000000000b2",
                "order_id": order_id,
                "product_id": "00000000-0000-0000-0000-0000000000c2",
                "quantity": 1,
                "price": 150,
                "position": 1,
                "created_at_utc": "2025-11-03T01:05:00+00:00",
            },
            {
                "item_id": "00000000-0000-0000-0000-0000000000b1",
                "order_id": order_id,
                "product_id": "00000000-0000-0000-0000-0000000000c1",
                "quantity": 1,
                "price": 400,
                "position": 0,
                "created_at_utc": "2025-11-03T01:05:00+00:00",
            },
        ],
    }

    order = _row_to_order(row)

    assert order.status is OrderStatus.CONFIRMED
    assert order.payment_method is PaymentMethod.SQUARE
    assert [item.price for item in order.items] == [400, 150]
    assert order.items[0].item_id == UUID("00000000-0000-0000-0000-0000000000b1")
    assert order.total_amount == order.calculate_total_amount()
