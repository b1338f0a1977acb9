"""
Sales slot repository (persistence).

Supabase-backed SalesSlotRepository. It enforces no business rules beyond
existence: activation is an unconditional flag update.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping
from uuid import UUID

from domain.sales_slot import SalesSlot
from domain.time import utc_now
from repositories.interfaces import SalesSlotRepository
from repositories.supabase_support import (
    execute,
    first_or_not_found,
    parse_optional_datetime,
    parse_utc_datetime,
    to_iso_utc,
)

_SLOTS_TABLE: str = "sales_slots"


def _row_to_slot(row: Mapping[str, Any]) -> SalesSlot:
    """Convert a Supabase row into a SalesSlot."""

    return SalesSlot(
        slot_id=UUID(str(row["slot_id"])),
        start_time=parse_utc_datetime(row["start_time_utc"]),
        end_time=parse_utc_datetime(row["end_time_utc"]),
        is_active=bool(row.get("is_active", False)),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
        updated_at=parse_optional_datetime(row.get("updated_at_utc")),
    )


class SupabaseSalesSlotRepository(SalesSlotRepository):
    def __init__(self, client: Any) -> None:
        self._client = client

    def _table(self) -> Any:
        return self._client.table(_SLOTS_TABLE)

    def create(self, slot: SalesSlot) -> SalesSlot:
        payload = {
            "slot_id": str(slot.slot_id),
            "start_time_utc": to_iso_utc(slot.start_time, name="start_time"),
            "end_time_utc": to_iso_utc(slot.end_time, name="end_time"),
            "is_active": slot.is_active,
        }
        if slot.created_at is not None:
            payload["created_at_utc"] = to_iso_utc(slot.created_at, name="created_at")
            payload["updated_at_utc"] = payload["created_at_utc"]
        rows = execute(self._table().insert(payload), "create_sales_slot")
        return _row_to_slot(rows[0]) if rows else slot

    def find_by_id(self, slot_id: UUID) -> SalesSlot:
        rows = execute(
            self._table().select("*").eq("slot_id", str(slot_id)).limit(1),
            "find_sales_slot",
        )
        return first_or_not_found(rows, "SalesSlot", slot_id, _row_to_slot)

    def find_all(self) -> List[SalesSlot]:
        rows = execute(self._table().select("*").order("start_time_utc"), "list_sales_slots")
        return [_row_to_slot(row) for row in rows]

    def find_active(self) -> List[SalesSlot]:
        rows = execute(
            self._table().select("*").eq("is_active", True).order("start_time_utc"),
            "list_active_sales_slots",
        )
        return [_row_to_slot(row) for row in rows]

    def find_by_time_range(self, start: datetime, end: datetime) -> List[SalesSlot]:
        # Overlap with [start, end): slot.start < end AND slot.end > start
        rows = execute(
            self._table()
            .select("*")
            .lt("start_time_utc", to_iso_utc(end, name="end"))
            .gt("end_time_utc", to_iso_utc(start, name="start"))
            .order("start_time_utc"),
            "find_sales_slots_by_time_range",
        )
        return [_row_to_slot(row) for row in rows]

    def set_active(self, slot_id: UUID, is_active: bool) -> SalesSlot:
        rows = execute(
            self._table()
            .update({"is_active": is_active, "updated_at_utc": utc_now().isoformat()})
            .eq("slot_id", str(slot_id)),
            "set_sales_slot_active",
        )
        return first_or_not_found(rows, "SalesSlot", slot_id, _row_to_slot)


__all__ = ["SupabaseSalesSlotRepository"]
