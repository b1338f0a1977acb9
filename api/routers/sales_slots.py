"""
Sales Slots API Endpoints.

Slot lifecycle (create, activate, deactivate) and the per-slot inventory ledger.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_sales_slot_service
from api.models import (
    AddProductToSlotRequest,
    ErrorResponse,
    InventoryUpdateRequest,
    ProductInventoryResponse,
    SalesSlotCreateRequest,
    SalesSlotResponse,
)
from services.sales_slot_service import SalesSlotService

router = APIRouter(responses={404: {"model": ErrorResponse}})


@router.post(
    "/sales-slots",
    response_model=SalesSlotResponse,
    status_code=201,
    summary="Create Sales Slot",
    responses={400: {"model": ErrorResponse}},
)
def create_sales_slot(
    request: SalesSlotCreateRequest,
    service: SalesSlotService = Depends(get_sales_slot_service),
):
    """
    Create a sales window. New slots are inactive until an operator activates them.

    Fails with 400 INVALID_TIME_RANGE when end_time precedes start_time.
    """
    slot = service.create_sales_slot(request.start_time, request.end_time)
    return SalesSlotResponse.from_domain(slot)


@router.get(
    "/sales-slots",
    response_model=List[SalesSlotResponse],
    summary="List Sales Slots",
)
def list_sales_slots(
    start: Optional[datetime] = Query(None, description="Window start (RFC3339)"),
    end: Optional[datetime] = Query(None, description="Window end (RFC3339), exclusive"),
    active_only: bool = Query(False, description="Only slots currently accepting orders"),
    service: SalesSlotService = Depends(get_sales_slot_service),
):
    """
    List slots.

    With both `start` and `end`, only slots overlapping [start, end) are returned.
    """
    if (start is None) != (end is None):
        raise ValueError("start and end must be given together")

    if start is not None and end is not None:
        slots = service.find_by_time_range(start, end)
        if active_only:
            slots = [slot for slot in slots if slot.is_active]
    elif active_only:
        slots = service.list_active_sales_slots()
    else:
        slots = service.list_sales_slots()
    return [SalesSlotResponse.from_domain(slot) for slot in slots]


@router.get("/sales-slots/{slot_id}", response_model=SalesSlotResponse, summary="Get Sales Slot")
def get_sales_slot(slot_id: UUID, service: SalesSlotService = Depends(get_sales_slot_service)):
    return SalesSlotResponse.from_domain(service.get_sales_slot(slot_id))


@router.put(
    "/sales-slots/{slot_id}/activate",
    response_model=SalesSlotResponse,
    summary="Activate Sales Slot",
)
def activate_sales_slot(slot_id: UUID, service: SalesSlotService = Depends(get_sales_slot_service)):
    return SalesSlotResponse.from_domain(service.activate_sales_slot(slot_id))


@router.put(
    "/sales-slots/{slot_id}/deactivate",
    response_model=SalesSlotResponse,
    summary="Deactivate Sales Slot",
)
def deactivate_sales_slot(
    slot_id: UUID, service: SalesSlotService = Depends(get_sales_slot_service)
):
    return SalesSlotResponse.from_domain(service.deactivate_sales_slot(slot_id))


@router.post(
    "/sales-slots/{slot_id}/products",
    response_model=ProductInventoryResponse,
    status_code=201,
    summary="Add Product To Slot",
    responses={409: {"model": ErrorResponse}},
)
def add_product_to_slot(
    slot_id: UUID,
    request: AddProductToSlotRequest,
    service: SalesSlotService = Depends(get_sales_slot_service),
):
    """
    Register a product for the slot with its initial stock.

    Fails with 409 DUPLICATE_INVENTORY if the product is already registered.
    """
    row = service.add_product_to_slot(slot_id, request.product_id, request.initial_quantity)
    return ProductInventoryResponse.from_domain(row)


@router.get(
    "/sales-slots/{slot_id}/products",
    response_model=List[ProductInventoryResponse],
    summary="List Slot Inventory",
)
def list_slot_inventory(slot_id: UUID, service: SalesSlotService = Depends(get_sales_slot_service)):
    return [ProductInventoryResponse.from_domain(row) for row in service.list_slot_inventory(slot_id)]


@router.put(
    "/sales-slots/{slot_id}/products/{product_id}",
    response_model=ProductInventoryResponse,
    summary="Adjust Slot Inventory",
    responses={409: {"model": ErrorResponse}},
)
def update_slot_inventory(
    slot_id: UUID,
    product_id: UUID,
    request: InventoryUpdateRequest,
    service: SalesSlotService = Depends(get_sales_slot_service),
):
    """
    Set absolute reserved/sold values.

    **Errors:**
    - 409 INSUFFICIENT_INVENTORY: reserved + sold exceeds the initial quantity
    - 409 RESERVATION_CONFLICT: reserved is below what RESERVED orders still hold
    """
    row = service.update_inventory(
        slot_id, product_id, request.reserved_quantity, request.sold_quantity
    )
    return ProductInventoryResponse.from_domain(row)
