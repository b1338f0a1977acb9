"""
API tests using FastAPI's TestClient over the in-memory backend.

Covers the route surface and the mapping of domain errors to HTTP status codes
with {"error": code, "detail": message} bodies.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from domain.errors import RepositoryError

API = "/api/v1"


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


def _product(client, name: str = "Yakisoba", price: int = 400) -> dict:
    response = client.post(f"{API}/products", json={"name": name, "price": price})
    assert response.status_code == 201
    return response.json()


def _slot(client, active: bool = True) -> dict:
    response = client.post(
        f"{API}/sales-slots",
        json={"start_time": "2025-11-03T10:00:00+09:00", "end_time": "2025-11-03T12:00:00+09:00"},
    )
    assert response.status_code == 201
    slot = response.json()
    if active:
        slot = client.put(f"{API}/sales-slots/{slot['slot_id']}/activate").json()
    return slot


def _stocked(client, quantity: int = 10):
    product = _product(client)
    slot = _slot(client)
    response = client.post(
        f"{API}/sales-slots/{slot['slot_id']}/products",
        json={"product_id": product["product_id"], "initial_quantity": quantity},
    )
    assert response.status_code == 201
    return slot, product


def _place(client, slot, product, quantity: int = 2, ticket: str = "T1"):
    return client.post(
        f"{API}/orders",
        json={
            "sales_slot_id": slot["slot_id"],
            "items": [{"product_id": product["product_id"], "quantity": quantity}],
            "ticket_number": ticket,
            "payment_method": "CASH",
        },
    )


def test_health_and_root(client) -> None:
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["docs"] == "/docs"


def test_product_routes(client) -> None:
    product = _product(client)
    product_id = product["product_id"]

    assert client.get(f"{API}/products/{product_id}").json()["name"] == "Yakisoba"
    assert len(client.get(f"{API}/products").json()) == 1

    updated = client.put(f"{API}/products/{product_id}", json={"name": "Yakisoba L", "price": 500})
    assert updated.status_code == 200
    assert updated.json()["price"] == 500

    assert client.delete(f"{API}/products/{product_id}").status_code == 204
    missing = client.get(f"{API}/products/{product_id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "NOT_FOUND"


def test_negative_price_is_rejected(client) -> None:
    assert client.post(f"{API}/products", json={"name": "x", "price": -1}).status_code == 422


def test_slot_routes_and_inventory(client) -> None:
    slot, product = _stocked(client)
    slot_id = slot["slot_id"]

    assert slot["is_active"] is True
    assert slot["start_time"].startswith("2025-11-03T01:00:00")

    inventory = client.get(f"{API}/sales-slots/{slot_id}/products").json()
    assert inventory[0]["initial_quantity"] == 10
    assert inventory[0]["available_quantity"] == 10

    adjusted = client.put(
        f"{API}/sales-slots/{slot_id}/products/{product['product_id']}",
        json={"reserved_quantity": 2, "sold_quantity": 3},
    )
    assert adjusted.status_code == 200
    assert adjusted.json()["available_quantity"] == 5

    too_much = client.put(
        f"{API}/sales-slots/{slot_id}/products/{product['product_id']}",
        json={"reserved_quantity": 8, "sold_quantity": 3},
    )
    assert too_much.status_code == 409
    assert too_much.json()["error"] == "INSUFFICIENT_INVENTORY"

    deactivated = client.put(f"{API}/sales-slots/{slot_id}/deactivate").json()
    assert deactivated["is_active"] is False
    assert client.get(f"{API}/sales-slots", params={"active_only": True}).json() == []
    assert client.get(f"{API}/sales-slots/{slot_id}").json()["slot_id"] == slot_id


def test_inventory_adjustment_below_open_orders_is_conflict(client) -> None:
    slot, product = _stocked(client)
    order = _place(client, slot, product, quantity=3).json()

    response = client.put(
        f"{API}/sales-slots/{slot['slot_id']}/products/{product['product_id']}",
        json={"reserved_quantity": 0, "sold_quantity": 0},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "RESERVATION_CONFLICT"

    cancelled = client.put(f"{API}/orders/{order['order_id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"


def test_duplicate_inventory_is_conflict(client) -> None:
    slot, product = _stocked(client)
    response = client.post(
        f"{API}/sales-slots/{slot['slot_id']}/products",
        json={"product_id": product["product_id"], "initial_quantity": 3},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_INVENTORY"


def test_inverted_slot_is_bad_request(client) -> None:
    response = client.post(
        f"{API}/sales-slots",
        json={"start_time": "2025-11-03T12:00:00Z", "end_time": "2025-11-03T10:00:00Z"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_TIME_RANGE"


def test_time_range_query(client) -> None:
    slot = _slot(client, active=False)
    hit = client.get(
        f"{API}/sales-slots",
        params={"start": "2025-11-03T01:30:00Z", "end": "2025-11-03T01:45:00Z"},
    ).json()
    assert [s["slot_id"] for s in hit] == [slot["slot_id"]]

    miss = client.get(
        f"{API}/sales-slots",
        params={"start": "2025-11-03T03:00:00Z", "end": "2025-11-03T04:00:00Z"},
    ).json()
    assert miss == []

    half = client.get(f"{API}/sales-slots", params={"start": "2025-11-03T03:00:00Z"})
    assert half.status_code == 400


def test_order_lifecycle_routes(client) -> None:
    slot, product = _stocked(client)

    created = _place(client, slot, product, quantity=3, ticket="A-7")
    assert created.status_code == 201
    order = created.json()
    assert order["status"] == "RESERVED"
    assert order["total_amount"] == 1200
    assert order["items"][0]["price"] == 400

    order_id = order["order_id"]
    assert client.get(f"{API}/orders/{order_id}").json()["ticket_number"] == "A-7"
    assert client.get(f"{API}/orders/number/A-7").json()["order_id"] == order_id
    assert len(client.get(f"{API}/orders").json()) == 1

    added = client.post(
        f"{API}/orders/{order_id}/items",
        json={"items": [{"product_id": product["product_id"], "quantity": 1}]},
    )
    assert added.status_code == 200
    assert added.json()["total_amount"] == 1600

    paid = client.put(f"{API}/orders/{order_id}/payment", json={"transaction_id": "pp-1"}).json()
    assert paid["is_paid"] is True and paid["transaction_id"] == "pp-1"
    assert client.put(f"{API}/orders/{order_id}/delivery").json()["is_delivered"] is True

    confirmed = client.put(f"{API}/orders/{order_id}/confirm")
    assert confirmed.json()["status"] == "CONFIRMED"
    by_status = client.get(f"{API}/orders/status", params={"status": "CONFIRMED"}).json()
    assert [o["order_id"] for o in by_status] == [order_id]

    inventory = client.get(f"{API}/sales-slots/{slot['slot_id']}/products").json()[0]
    assert (inventory["reserved_quantity"], inventory["sold_quantity"]) == (0, 4)

    cancel = client.put(f"{API}/orders/{order_id}/cancel")
    assert cancel.status_code == 409
    assert cancel.json()["error"] == "INVALID_ORDER_STATUS"


def test_order_error_mapping(client) -> None:
    slot, product = _stocked(client)

    insufficient = _place(client, slot, product, quantity=11)
    assert insufficient.status_code == 409
    assert insufficient.json()["error"] == "INSUFFICIENT_INVENTORY"

    zero = _place(client, slot, product, quantity=0)
    assert zero.status_code == 400
    assert zero.json()["error"] == "VALIDATION_ERROR"

    assert _place(client, slot, product, ticket="DUP").status_code == 201
    duplicate = _place(client, slot, product, ticket="DUP")
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "UNIQUE_VIOLATION"

    client.put(f"{API}/sales-slots/{slot['slot_id']}/deactivate")
    inactive = _place(client, slot, product, ticket="LATE")
    assert inactive.status_code == 409
    assert inactive.json()["error"] == "SLOT_NOT_ACTIVE"

    assert client.get(f"{API}/orders/{uuid4()}").status_code == 404
    assert client.get(f"{API}/orders/number/nope").status_code == 404
    assert client.get(f"{API}/orders/status", params={"status": "SHIPPED"}).status_code == 400


def test_repository_failure_is_opaque_500(container) -> None:
    def broken():
        raise RepositoryError("list_products", "connection reset by peer")

    container.products.list_products = broken
    with TestClient(create_app(container), raise_server_exceptions=False) as test_client:
        response = test_client.get(f"{API}/products")

    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_ERROR", "detail": "Internal server error"}
