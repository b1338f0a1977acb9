"""
Order lifecycle service.

Handles:
- Order creation against an active slot with price snapshotting and reservation
- Item addition while the order is RESERVED
- RESERVED -> CONFIRMED | CANCELLED transitions and their ledger side effects
- Payment / delivery flags (no status guard)

Validation runs first so callers get precise errors (slot, product, ledger row,
availability). The write itself is one atomic repository call which re-checks
availability and status under the backend's lock, so concurrent requests can
never oversell a row or leave an order half-written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Union
from uuid import UUID, uuid4

from domain.errors import (
    InsufficientInventoryError,
    InvalidOrderStatusError,
    SlotNotActiveError,
)
from domain.order import Order, OrderItemDraft, OrderStatus, PaymentMethod
from domain.time import utc_now
from repositories.interfaces import (
    OrderRepository,
    ProductInventoryRepository,
    ProductRepository,
    SalesSlotRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrderItemRequest:
    """
    Caller input for one order line. The price is never supplied by the caller.
    """
    product_id: UUID
    quantity: int


def _require_positive_quantities(items: Iterable[OrderItemRequest]) -> List[OrderItemRequest]:
    items = list(items)
    for item in items:
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
            raise ValueError("quantity must be an integer")
        if item.quantity <= 0:
            raise ValueError(f"quantity must be > 0 (product {item.product_id})")
    return items


class OrderService:
    def __init__(
        self,
        orders: OrderRepository,
        slots: SalesSlotRepository,
        inventories: ProductInventoryRepository,
        products: ProductRepository,
    ) -> None:
        self._orders = orders
        self._slots = slots
        self._inventories = inventories
        self._products = products

    def _price_items(self, slot_id: UUID, items: Sequence[OrderItemRequest]) -> List[OrderItemDraft]:
        """
        Validate each requested line in input order and snapshot its current price.

        Requests for the same product are checked against their combined quantity.

        Raises:
            NotFoundError: product or (slot, product) ledger row missing.
            InsufficientInventoryError: available stock is below the requested quantity.
        """

        drafts: List[OrderItemDraft] = []
        requested: Dict[UUID, int] = {}
        for item in items:
            product = self._products.find_by_id(item.product_id)
            row = self._inventories.find_by_slot_and_product(slot_id, item.product_id)

            total = requested.get(item.product_id, 0) + item.quantity
            if row.available_quantity < total:
                logger.warning(
                    "Insufficient inventory",
                    extra={
                        "slot_id": str(slot_id),
                        "product_id": str(item.product_id),
                        "requested": total,
                        "available": row.available_quantity,
                    },
                )
                raise InsufficientInventoryError(
                    requested=total,
                    available=row.available_quantity,
                    product_id=item.product_id,
                )
            requested[item.product_id] = total
            drafts.append(
                OrderItemDraft(product_id=item.product_id, quantity=item.quantity, price=product.price)
            )
        return drafts

    def create_order(
        self,
        slot_id: UUID,
        items: Iterable[OrderItemRequest],
        ticket_number: str,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
    ) -> Order:
        """
        Create a RESERVED order and reserve stock for every item, all or nothing.

        Raises:
            ValueError: a quantity is <= 0 or the ticket number is empty.
            NotFoundError: slot, product or ledger row missing.
            SlotNotActiveError: the slot is not active.
            InsufficientInventoryError: an item exceeds available stock.
            UniqueViolationError: the ticket number is already used.
        """

        items = _require_positive_quantities(items)
        if not isinstance(payment_method, PaymentMethod):
            payment_method = PaymentMethod.from_name(payment_method)

        slot = self._slots.find_by_id(slot_id)
        if not slot.is_active:
            logger.warning("Order rejected: sales slot not active", extra={"slot_id": str(slot_id)})
            raise SlotNotActiveError(slot_id)

        drafts = self._price_items(slot_id, items)
        now = utc_now()
        order = Order(
            order_id=uuid4(),
            slot_id=slot_id,
            ticket_number=ticket_number,
            payment_method=payment_method,
            status=OrderStatus.RESERVED,
            total_amount=sum(draft.subtotal for draft in drafts),
            created_at=now,
            updated_at=now,
        )

        created = self._orders.create_with_items(order, drafts)
        logger.info(
            "Order created",
            extra={
                "order_id": str(created.order_id),
                "slot_id": str(slot_id),
                "ticket_number": created.ticket_number,
                "items": len(created.items),
                "total_amount": created.total_amount,
            },
        )
        return created

    def get_order(self, order_id: UUID) -> Order:
        return self._orders.find_by_id(order_id)

    def list_orders(self) -> List[Order]:
        return self._orders.find_all()

    def list_orders_by_status(self, status: Union[OrderStatus, str]) -> List[Order]:
        if not isinstance(status, OrderStatus):
            status = OrderStatus.from_name(status)
        return self._orders.find_by_status(status)

    def list_orders_by_slot(self, slot_id: UUID) -> List[Order]:
        self._slots.find_by_id(slot_id)
        return self._orders.find_by_slot(slot_id)

    def get_order_by_ticket_number(self, ticket_number: str) -> Order:
        return self._orders.find_by_ticket_number(ticket_number)

    def add_order_items(self, order_id: UUID, items: Iterable[OrderItemRequest]) -> Order:
        """
        Append items to a RESERVED order, reserving their stock atomically.

        Raises InvalidOrderStatusError once the order is CONFIRMED or CANCELLED.
        """

        items = _require_positive_quantities(items)
        order = self._orders.find_by_id(order_id)
        try:
            order.ensure_can_add_items()
        except InvalidOrderStatusError:
            logger.warning(
                "Rejected item addition on terminal order",
                extra={"order_id": str(order_id), "status": order.status.value},
            )
            raise

        drafts = self._price_items(order.slot_id, items)
        updated = self._orders.add_items(order_id, drafts)
        logger.info(
            "Order items added",
            extra={
                "order_id": str(order_id),
                "added": len(drafts),
                "total_amount": updated.total_amount,
            },
        )
        return updated

    def update_order_status(self, order_id: UUID, status: Union[OrderStatus, str]) -> Order:
        """
        Move a RESERVED order to CONFIRMED (reserved -> sold) or CANCELLED (release).

        The status write and every ledger update happen in one atomic unit;
        a concurrent transition of the same order makes this call fail with
        InvalidOrderStatusError instead of applying the deltas twice.
        """

        order = self._orders.find_by_id(order_id)
        if not isinstance(status, OrderStatus):
            try:
                status = OrderStatus.from_name(status)
            except ValueError:
                raise InvalidOrderStatusError(order.status, status) from None

        try:
            order.ensure_can_transition(status)
        except InvalidOrderStatusError:
            logger.warning(
                "Rejected illegal order status transition",
                extra={
                    "order_id": str(order_id),
                    "from_status": order.status.value,
                    "to_status": status.value,
                },
            )
            raise

        updated = self._orders.update_status(order_id, order.status, status)
        logger.info(
            "Order %s", status.value.lower(),
            extra={"order_id": str(order_id), "ticket_number": updated.ticket_number},
        )
        return updated

    def confirm_order(self, order_id: UUID) -> Order:
        return self.update_order_status(order_id, OrderStatus.CONFIRMED)

    def cancel_order(self, order_id: UUID) -> Order:
        return self.update_order_status(order_id, OrderStatus.CANCELLED)

    def update_payment_status(self, order_id: UUID, transaction_id: str) -> Order:
        """Record payment. Allowed in any status."""

        order = self._orders.update_flags(order_id, is_paid=True, transaction_id=transaction_id)
        logger.info(
            "Order payment recorded",
            extra={"order_id": str(order_id), "transaction_id": transaction_id},
        )
        return order

    def update_delivery_status(self, order_id: UUID) -> Order:
        """Mark the order handed over. Allowed in any status."""

        order = self._orders.update_flags(order_id, is_delivered=True)
        logger.info("Order delivered", extra={"order_id": str(order_id)})
        return order


__all__ = ["OrderItemRequest", "OrderService"]
