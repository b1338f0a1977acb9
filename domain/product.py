"""
Domain: Product catalog entity.

Contract excerpts implemented here:
- A Product has a name and a unit price in integer minor currency units.
- Price is a non-negative integer.
- Deletion is logical: a deleted product keeps its identity so historical orders
  still resolve it. Order items snapshot the price, so later price changes never
  affect existing orders.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


def validate_product_fields(name: str, price: int) -> None:
    if not name or not name.strip():
        raise ValueError("Product name must not be empty")
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValueError("Product price must be an integer amount")
    if price < 0:
        raise ValueError("Product price must be >= 0")


@dataclass(frozen=True, slots=True)
class Product:
    """Catalog entry consumed by order creation for its current-price read."""

    product_id: UUID
    name: str
    price: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_product_fields(self.name, self.price)
        for field_name in ("created_at", "updated_at", "deleted_at"):
            value = getattr(self, field_name)
            if value is not None:
                require_utc_timestamp(field_name, value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def updated(self, *, name: str, price: int, updated_at: datetime) -> "Product":
        return replace(self, name=name, price=price, updated_at=updated_at)

    def deleted(self, deleted_at: datetime) -> "Product":
        return replace(self, deleted_at=deleted_at, updated_at=deleted_at)
