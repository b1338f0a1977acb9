"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Money is an integer amount in minor currency units.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.inventory import ProductInventory
from domain.order import Order, OrderItem
from domain.product import Product
from domain.sales_slot import SalesSlot


# ============================================================================
# Error Model
# ============================================================================

class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    error: str
    detail: str

    class Config:
        json_schema_extra = {
            "example": {
                "error": "INSUFFICIENT_INVENTORY",
                "detail": "Insufficient inventory for product 123e4567-e89b-12d3-a456-426614174000. "
                          "Requested: 11, Available: 10",
            }
        }


# ============================================================================
# Product Models
# ============================================================================

class ProductRequest(BaseModel):
    """Create or replace a product."""
    name: str = Field(..., min_length=1, description="Display name")
    price: int = Field(..., ge=0, description="Unit price in minor currency units")

    class Config:
        json_schema_extra = {"example": {"name": "Yakisoba", "price": 400}}


class ProductResponse(BaseModel):
    product_id: UUID
    name: str
    price: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            product_id=product.product_id,
            name=product.name,
            price=product.price,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


# ============================================================================
# Sales Slot Models
# ============================================================================

class SalesSlotCreateRequest(BaseModel):
    """Sales window; timestamps are RFC3339 with an explicit offset."""
    start_time: datetime
    end_time: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "start_time": "2025-11-03T10:00:00+09:00",
                "end_time": "2025-11-03T12:00:00+09:00",
            }
        }


class SalesSlotResponse(BaseModel):
    slot_id: UUID
    start_time: datetime
    end_time: datetime
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, slot: SalesSlot) -> "SalesSlotResponse":
        return cls(
            slot_id=slot.slot_id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_active=slot.is_active,
            created_at=slot.created_at,
            updated_at=slot.updated_at,
        )


class AddProductToSlotRequest(BaseModel):
    product_id: UUID
    initial_quantity: int = Field(..., ge=0)


class InventoryUpdateRequest(BaseModel):
    """Operator correction with absolute values."""
    reserved_quantity: int = Field(..., ge=0)
    sold_quantity: int = Field(..., ge=0)


class ProductInventoryResponse(BaseModel):
    inventory_id: UUID
    sales_slot_id: UUID
    product_id: UUID
    initial_quantity: int
    reserved_quantity: int
    sold_quantity: int
    available_quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, row: ProductInventory) -> "ProductInventoryResponse":
        return cls(
            inventory_id=row.inventory_id,
            sales_slot_id=row.slot_id,
            product_id=row.product_id,
            initial_quantity=row.initial_quantity,
            reserved_quantity=row.reserved_quantity,
            sold_quantity=row.sold_quantity,
            available_quantity=row.available_quantity,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


# ============================================================================
# Order Models
# ============================================================================

class OrderItemInput(BaseModel):
    product_id: UUID
    quantity: int


class OrderCreateRequest(BaseModel):
    """Place an order against an active sales slot."""
    sales_slot_id: UUID
    items: List[OrderItemInput] = Field(default_factory=list)
    ticket_number: str = Field(..., min_length=1)
    payment_method: str = Field("CASH", description="CASH, PAYPAY or SQUARE")

    class Config:
        json_schema_extra = {
            "example": {
                "sales_slot_id": "123e4567-e89b-12d3-a456-426614174000",
                "items": [
                    {"product_id": "123e4567-e89b-12d3-a456-426614174001", "quantity": 2}
                ],
                "ticket_number": "A-017",
                "payment_method": "PAYPAY",
            }
        }


class AddOrderItemsRequest(BaseModel):
    items: List[OrderItemInput] = Field(..., min_length=1)


class PaymentUpdateRequest(BaseModel):
    transaction_id: str


class OrderItemResponse(BaseModel):
    item_id: UUID
    product_id: UUID
    quantity: int
    price: int
    subtotal: int

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            item_id=item.item_id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
        )


class OrderResponse(BaseModel):
    order_id: UUID
    sales_slot_id: UUID
    status: str
    total_amount: int
    ticket_number: str
    payment_method: str
    transaction_id: Optional[str] = None
    is_paid: bool
    is_delivered: bool
    items: List[OrderItemResponse]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=order.order_id,
            sales_slot_id=order.slot_id,
            status=order.status.value,
            total_amount=order.total_amount,
            ticket_number=order.ticket_number,
            payment_method=order.payment_method.value,
            transaction_id=order.transaction_id,
            is_paid=order.is_paid,
            is_delivered=order.is_delivered,
            items=[OrderItemResponse.from_domain(item) for item in order.items],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
