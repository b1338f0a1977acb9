"""
Domain: Sales slots.

Contract excerpts implemented here:
- A SalesSlot is a time-bounded window [start_time, end_time]; end_time must not
  precede start_time (enforced at creation).
- A slot is created inactive. Activation is an explicit operator decision and is
  never derived from the current time.
- Orders may only be created against an active slot.

Time-range search uses interval overlap against the half-open query window
[start, end): a slot matches when slot.start_time < end and slot.end_time > start.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from .errors import InvalidTimeRangeError
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class SalesSlot:
    slot_id: UUID
    start_time: datetime
    end_time: datetime
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("start_time", self.start_time)
        require_utc_timestamp("end_time", self.end_time)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)
        if self.end_time < self.start_time:
            raise InvalidTimeRangeError()

    def activated(self, at: Optional[datetime] = None) -> "SalesSlot":
        return replace(self, is_active=True, updated_at=at or self.updated_at)

    def deactivated(self, at: Optional[datetime] = None) -> "SalesSlot":
        return replace(self, is_active=False, updated_at=at or self.updated_at)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True iff this slot intersects the half-open window [start, end)."""

        return self.start_time < end and self.end_time > start
