"""
Product repository (persistence).

Supabase-backed ProductRepository. Deletion is logical (deleted_at_utc is
stamped) so order history keeps resolving its product references.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from domain.product import Product
from repositories.interfaces import ProductRepository
from repositories.supabase_support import (
    execute,
    first_or_not_found,
    parse_optional_datetime,
    to_iso_utc,
)

# Supabase table name for Product rows.
# Keep this aligned with db/schema.sql.
_PRODUCTS_TABLE: str = "products"


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a Supabase row into a Product."""

    return Product(
        product_id=UUID(str(row["product_id"])),
        name=str(row["name"]),
        price=int(row["price"]),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
        deleted_at=parse_optional_datetime(row.get("deleted_at_utc")),
    )


def _product_to_payload(product: Product) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "product_id": str(product.product_id),
        "name": product.name,
        "price": product.price,
    }
    if product.created_at is not None:
        payload["created_at_utc"] = to_iso_utc(product.created_at, name="created_at")
    if product.updated_at is not None:
        payload["updated_at_utc"] = to_iso_utc(product.updated_at, name="updated_at")
    return payload


class SupabaseProductRepository(ProductRepository):
    def __init__(self, client: Any) -> None:
        self._client = client

    def _table(self) -> Any:
        return self._client.table(_PRODUCTS_TABLE)

    def create(self, product: Product) -> Product:
        rows = execute(self._table().insert(_product_to_payload(product)), "create_product")
        return _row_to_product(rows[0]) if rows else product

    def find_by_id(self, product_id: UUID, *, include_deleted: bool = False) -> Product:
        query = self._table().select("*").eq("product_id", str(product_id))
        if not include_deleted:
            query = query.is_("deleted_at_utc", "null")
        rows = execute(query.limit(1), "find_product")
        return first_or_not_found(rows, "Product", product_id, _row_to_product)

    def find_all(self) -> List[Product]:
        rows = execute(
            self._table().select("*").is_("deleted_at_utc", "null").order("created_at_utc"),
            "list_products",
        )
        return [_row_to_product(row) for row in rows]

    def find_by_name(self, name: str) -> Optional[Product]:
        rows = execute(
            self._table().select("*").eq("name", name).is_("deleted_at_utc", "null").limit(1),
            "find_product_by_name",
        )
        return _row_to_product(rows[0]) if rows else None

    def update(self, product: Product) -> Product:
        payload = _product_to_payload(product)
        payload.pop("product_id")
        payload.pop("created_at_utc", None)
        rows = execute(
            self._table()
            .update(payload)
            .eq("product_id", str(product.product_id))
            .is_("deleted_at_utc", "null"),
            "update_product",
        )
        return first_or_not_found(rows, "Product", product.product_id, _row_to_product)

    def delete(self, product_id: UUID, deleted_at: datetime) -> None:
        stamp = to_iso_utc(deleted_at, name="deleted_at")
        rows = execute(
            self._table()
            .update({"deleted_at_utc": stamp, "updated_at_utc": stamp})
            .eq("product_id", str(product_id))
            .is_("deleted_at_utc", "null"),
            "delete_product",
        )
        first_or_not_found(rows, "Product", product_id, _row_to_product)


__all__ = ["SupabaseProductRepository"]
