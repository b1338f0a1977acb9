"""
Inventory repository (persistence).

This module provides *only* persistence operations for the ProductInventory
ledger. It contains no ordering rules; it enforces the persistence constraints
of the ledger: uniqueness of (sales_slot_id, product_id) and the
reserved + sold <= initial invariant on absolute quantity updates.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping
from uuid import UUID

from domain.errors import DuplicateInventoryError, UniqueViolationError
from domain.inventory import ProductInventory
from repositories.interfaces import ProductInventoryRepository
from repositories.supabase_support import (
    call_atomic,
    execute,
    first_or_not_found,
    parse_optional_datetime,
    to_iso_utc,
)

# Supabase table name for inventory ledger rows.
# Keep this aligned with db/schema.sql.
_INVENTORY_TABLE: str = "product_inventories"


def _row_to_inventory(row: Mapping[str, Any]) -> ProductInventory:
    """Convert a Supabase row into a ProductInventory."""

    return ProductInventory(
        inventory_id=UUID(str(row["inventory_id"])),
        slot_id=UUID(str(row["sales_slot_id"])),
        product_id=UUID(str(row["product_id"])),
        initial_quantity=int(row["initial_quantity"]),
        reserved_quantity=int(row.get("reserved_quantity") or 0),
        sold_quantity=int(row.get("sold_quantity") or 0),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
    )


class SupabaseProductInventoryRepository(ProductInventoryRepository):
    def __init__(self, client: Any) -> None:
        self._client = client

    def _table(self) -> Any:
        return self._client.table(_INVENTORY_TABLE)

    def create(self, inventory: ProductInventory) -> ProductInventory:
        """
        Insert a new ledger row with reserved = sold = 0.

        Enforces:
        - Uniqueness constraint on (sales_slot_id, product_id)
        """

        payload: Dict[str, Any] = {
            "inventory_id": str(inventory.inventory_id),
            "sales_slot_id": str(inventory.slot_id),
            "product_id": str(inventory.product_id),
            "initial_quantity": inventory.initial_quantity,
            "reserved_quantity": inventory.reserved_quantity,
            "sold_quantity": inventory.sold_quantity,
        }
        if inventory.created_at is not None:
            payload["created_at_utc"] = to_iso_utc(inventory.created_at, name="created_at")
            payload["updated_at_utc"] = payload["created_at_utc"]

        # Enforce uniqueness proactively to provide a clean, domain-friendly error.
        existing = execute(
            self._table()
            .select("inventory_id")
            .eq("sales_slot_id", str(inventory.slot_id))
            .eq("product_id", str(inventory.product_id))
            .limit(1),
            "check_inventory_uniqueness",
        )
        if existing:
            raise DuplicateInventoryError(inventory.slot_id, inventory.product_id)

        try:
            rows = execute(self._table().insert(payload), "create_inventory")
        except UniqueViolationError:
            # The DB also enforces uniqueness; a concurrent insert lands here.
            raise DuplicateInventoryError(inventory.slot_id, inventory.product_id) from None
        return _row_to_inventory(rows[0]) if rows else inventory

    def find_by_id(self, inventory_id: UUID) -> ProductInventory:
        rows = execute(
            self._table().select("*").eq("inventory_id", str(inventory_id)).limit(1),
            "find_inventory",
        )
        return first_or_not_found(rows, "ProductInventory", inventory_id, _row_to_inventory)

    def find_by_slot_and_product(self, slot_id: UUID, product_id: UUID) -> ProductInventory:
        rows = execute(
            self._table()
            .select("*")
            .eq("sales_slot_id", str(slot_id))
            .eq("product_id", str(product_id))
            .limit(1),
            "find_inventory_by_slot_and_product",
        )
        return first_or_not_found(
            rows,
            "ProductInventory",
            f"slot={slot_id} product={product_id}",
            _row_to_inventory,
        )

    def find_by_slot(self, slot_id: UUID) -> List[ProductInventory]:
        rows = execute(
            self._table().select("*").eq("sales_slot_id", str(slot_id)).order("created_at_utc"),
            "list_inventory_by_slot",
        )
        return [_row_to_inventory(row) for row in rows]

    def find_by_product(self, product_id: UUID) -> List[ProductInventory]:
        rows = execute(
            self._table().select("*").eq("product_id", str(product_id)).order("created_at_utc"),
            "list_inventory_by_product",
        )
        return [_row_to_inventory(row) for row in rows]

    def update_quantities(self, inventory_id: UUID, reserved: int, sold: int) -> ProductInventory:
        """
        Set absolute reserved/sold values under a row lock.

        The check against initial_quantity runs inside the database function, so a
        concurrent reservation cannot slip between the read and the write.
        """

        call_atomic(
            self._client,
            "update_inventory_quantities_atomic",
            {
                "p_inventory_id": str(inventory_id),
                "p_reserved": reserved,
                "p_sold": sold,
            },
        )
        return self.find_by_id(inventory_id)


__all__ = ["SupabaseProductInventoryRepository"]
