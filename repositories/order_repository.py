"""
Order repository (persistence).

Reads go straight to the orders table (with embedded order_items). Every write
that touches the inventory ledger goes through an atomic PostgreSQL function
(see db/schema.sql) which locks the affected ledger rows FOR UPDATE, re-checks
availability or status, and commits order rows and ledger rows together.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from domain.order import Order, OrderItem, OrderItemDraft, OrderStatus, PaymentMethod
from repositories.interfaces import OrderRepository
from repositories.supabase_support import (
    call_atomic,
    execute,
    first_or_not_found,
    parse_optional_datetime,
)

_ORDERS_TABLE: str = "orders"
_ORDER_SELECT: str = "*, order_items(*)"


def _row_to_item(row: Mapping[str, Any]) -> OrderItem:
    return OrderItem(
        item_id=UUID(str(row["item_id"])),
        order_id=UUID(str(row["order_id"])),
        product_id=UUID(str(row["product_id"])),
        quantity=int(row["quantity"]),
        price=int(row["price"]),
    )


def _row_to_order(row: Mapping[str, Any]) -> Order:
    """Convert a Supabase row (with embedded order_items) into an Order."""

    item_rows = sorted(
        row.get("order_items") or [],
        key=lambda r: (r.get("created_at_utc") or "", r.get("position") or 0),
    )
    return Order(
        order_id=UUID(str(row["order_id"])),
        slot_id=UUID(str(row["sales_slot_id"])),
        ticket_number=str(row["ticket_number"]),
        payment_method=PaymentMethod.parse(row.get("payment_method")),
        status=OrderStatus.parse(row.get("status")),
        total_amount=int(row.get("total_amount") or 0),
        transaction_id=row.get("transaction_id"),
        is_paid=bool(row.get("is_paid", False)),
        is_delivered=bool(row.get("is_delivered", False)),
        items=tuple(_row_to_item(r) for r in item_rows),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
    )


def _drafts_to_payload(items: Sequence[OrderItemDraft]) -> List[Dict[str, Any]]:
    return [
        {"product_id": str(item.product_id), "quantity": item.quantity, "price": item.price}
        for item in items
    ]


class SupabaseOrderRepository(OrderRepository):
    def __init__(self, client: Any) -> None:
        self._client = client

    def _select(self) -> Any:
        return self._client.table(_ORDERS_TABLE).select(_ORDER_SELECT)

    def find_by_id(self, order_id: UUID) -> Order:
        rows = execute(self._select().eq("order_id", str(order_id)).limit(1), "find_order")
        return first_or_not_found(rows, "Order", order_id, _row_to_order)

    def find_all(self) -> List[Order]:
        rows = execute(self._select().order("created_at_utc"), "list_orders")
        return [_row_to_order(row) for row in rows]

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        rows = execute(
            self._select().eq("status", status.value).order("created_at_utc"),
            "list_orders_by_status",
        )
        return [_row_to_order(row) for row in rows]

    def find_by_slot(self, slot_id: UUID) -> List[Order]:
        rows = execute(
            self._select().eq("sales_slot_id", str(slot_id)).order("created_at_utc"),
            "list_orders_by_slot",
        )
        return [_row_to_order(row) for row in rows]

    def find_by_ticket_number(self, ticket_number: str) -> Order:
        rows = execute(
            self._select().eq("ticket_number", ticket_number).limit(1),
            "find_order_by_ticket_number",
        )
        return first_or_not_found(rows, "Order", f"ticket_number={ticket_number}", _row_to_order)

    def held_quantity(self, slot_id: UUID, product_id: UUID) -> int:
        rows = execute(
            self._client.table("order_items")
            .select("quantity, orders!inner(status, sales_slot_id)")
            .eq("product_id", str(product_id))
            .eq("orders.sales_slot_id", str(slot_id))
            .eq("orders.status", OrderStatus.RESERVED.value),
            "held_quantity",
        )
        return sum(int(row["quantity"]) for row in rows)

    def create_with_items(self, order: Order, items: Sequence[OrderItemDraft]) -> Order:
        call_atomic(
            self._client,
            "create_order_atomic",
            {
                "p_order_id": str(order.order_id),
                "p_sales_slot_id": str(order.slot_id),
                "p_ticket_number": order.ticket_number,
                "p_payment_method": order.payment_method.value,
                "p_items": _drafts_to_payload(items),
            },
        )
        return self.find_by_id(order.order_id)

    def add_items(self, order_id: UUID, items: Sequence[OrderItemDraft]) -> Order:
        call_atomic(
            self._client,
            "add_order_items_atomic",
            {"p_order_id": str(order_id), "p_items": _drafts_to_payload(items)},
        )
        return self.find_by_id(order_id)

    def update_status(self, order_id: UUID, expected: OrderStatus, new_status: OrderStatus) -> Order:
        call_atomic(
            self._client,
            "transition_order_status_atomic",
            {
                "p_order_id": str(order_id),
                "p_expected_status": expected.value,
                "p_new_status": new_status.value,
            },
        )
        return self.find_by_id(order_id)

    def update_flags(
        self,
        order_id: UUID,
        *,
        is_paid: Optional[bool] = None,
        transaction_id: Optional[str] = None,
        is_delivered: Optional[bool] = None,
    ) -> Order:
        payload: Dict[str, Any] = {}
        if is_paid:
            payload["is_paid"] = True
            payload["transaction_id"] = transaction_id
        if is_delivered:
            payload["is_delivered"] = True
        if not payload:
            return self.find_by_id(order_id)

        rows = execute(
            self._client.table(_ORDERS_TABLE).update(payload).eq("order_id", str(order_id)),
            "update_order_flags",
        )
        first_or_not_found(rows, "Order", order_id, lambda row: row)
        return self.find_by_id(order_id)


__all__ = ["SupabaseOrderRepository"]
