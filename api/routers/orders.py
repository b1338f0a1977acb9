"""
Orders API Endpoints.

Order placement, item addition, confirmation/cancellation and the payment and
delivery flags.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_order_service
from api.models import (
    AddOrderItemsRequest,
    ErrorResponse,
    OrderCreateRequest,
    OrderItemInput,
    OrderResponse,
    PaymentUpdateRequest,
)
from services.order_service import OrderItemRequest, OrderService

router = APIRouter(responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})


def _to_item_requests(items: List[OrderItemInput]) -> List[OrderItemRequest]:
    return [OrderItemRequest(product_id=item.product_id, quantity=item.quantity) for item in items]


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=201,
    summary="Create Order",
)
def create_order(request: OrderCreateRequest, service: OrderService = Depends(get_order_service)):
    """
    Place an order and reserve its stock, all or nothing.

    **Errors:**
    - 404 NOT_FOUND: slot, product, or the product is not registered for the slot
    - 409 SLOT_NOT_ACTIVE: the slot is not accepting orders
    - 409 INSUFFICIENT_INVENTORY: an item exceeds available stock
    - 409 UNIQUE_VIOLATION: the ticket number is already used
    """
    order = service.create_order(
        request.sales_slot_id,
        _to_item_requests(request.items),
        request.ticket_number,
        request.payment_method,
    )
    return OrderResponse.from_domain(order)


@router.get("/orders", response_model=List[OrderResponse], summary="List Orders")
def list_orders(service: OrderService = Depends(get_order_service)):
    return [OrderResponse.from_domain(order) for order in service.list_orders()]


@router.get("/orders/status", response_model=List[OrderResponse], summary="List Orders By Status")
def list_orders_by_status(
    status: str = Query(..., description="RESERVED, CONFIRMED or CANCELLED"),
    service: OrderService = Depends(get_order_service),
):
    return [OrderResponse.from_domain(order) for order in service.list_orders_by_status(status)]


@router.get(
    "/orders/number/{ticket_number}",
    response_model=OrderResponse,
    summary="Get Order By Ticket Number",
)
def get_order_by_ticket_number(
    ticket_number: str, service: OrderService = Depends(get_order_service)
):
    return OrderResponse.from_domain(service.get_order_by_ticket_number(ticket_number))


@router.get("/orders/{order_id}", response_model=OrderResponse, summary="Get Order")
def get_order(order_id: UUID, service: OrderService = Depends(get_order_service)):
    return OrderResponse.from_domain(service.get_order(order_id))


@router.post("/orders/{order_id}/items", response_model=OrderResponse, summary="Add Order Items")
def add_order_items(
    order_id: UUID,
    request: AddOrderItemsRequest,
    service: OrderService = Depends(get_order_service),
):
    """Append items to a RESERVED order; 409 INVALID_ORDER_STATUS otherwise."""
    order = service.add_order_items(order_id, _to_item_requests(request.items))
    return OrderResponse.from_domain(order)


@router.put("/orders/{order_id}/confirm", response_model=OrderResponse, summary="Confirm Order")
def confirm_order(order_id: UUID, service: OrderService = Depends(get_order_service)):
    return OrderResponse.from_domain(service.confirm_order(order_id))


@router.put("/orders/{order_id}/cancel", response_model=OrderResponse, summary="Cancel Order")
def cancel_order(order_id: UUID, service: OrderService = Depends(get_order_service)):
    return OrderResponse.from_domain(service.cancel_order(order_id))


@router.put("/orders/{order_id}/payment", response_model=OrderResponse, summary="Record Payment")
def update_payment(
    order_id: UUID,
    request: PaymentUpdateRequest,
    service: OrderService = Depends(get_order_service),
):
    order = service.update_payment_status(order_id, request.transaction_id)
    return OrderResponse.from_domain(order)


@router.put("/orders/{order_id}/delivery", response_model=OrderResponse, summary="Mark Delivered")
def update_delivery(order_id: UUID, service: OrderService = Depends(get_order_service)):
    return OrderResponse.from_domain(service.update_delivery_status(order_id))
