#!/usr/bin/env python3
"""
Demo Event Seeding Script

Creates a small catalog, one sales slot per requested window and registers
every product against each slot, going through the services so all domain
rules apply. Products that already exist (same name) are reused.

Usage:
    python scripts/seed_demo_event.py
    python scripts/seed_demo_event.py --date 2025-11-03 --slots 3 --quantity 50
    python scripts/seed_demo_event.py --activate
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import List, Sequence, Tuple
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import DuplicateInventoryError, NotFoundError
from repositories.client import load_settings
from services.container import ServiceContainer, build_container

# Event runs on Japan time; slots are stored in UTC.
EVENT_TZ = timezone(timedelta(hours=9))

DEMO_PRODUCTS: Tuple[Tuple[str, int], ...] = (
    ("Yakisoba", 400),
    ("Takoyaki", 350),
    ("Frankfurter", 250),
    ("Ramune", 150),
)


@dataclass
class SeedResult:
    product_ids: List[UUID] = field(default_factory=list)
    slot_ids: List[UUID] = field(default_factory=list)
    inventory_rows: int = 0
    skipped_duplicates: int = 0


def seed(
    container: ServiceContainer,
    event_date: date,
    slot_count: int = 2,
    slot_minutes: int = 60,
    quantity: int = 30,
    activate: bool = False,
    products: Sequence[Tuple[str, int]] = DEMO_PRODUCTS,
) -> SeedResult:
    """
    Seed catalog, slots and inventory.

    Slots are consecutive windows of `slot_minutes` starting at 10:00 event time.
    """
    if slot_count <= 0:
        raise ValueError("slot_count must be > 0")

    result = SeedResult()

    for name, price in products:
        existing = container.products.find_product_by_name(name)
        product = existing or container.products.create_product(name, price)
        result.product_ids.append(product.product_id)

    first_start = datetime.combine(event_date, time(10, 0), tzinfo=EVENT_TZ)
    for index in range(slot_count):
        start = first_start + timedelta(minutes=slot_minutes * index)
        end = start + timedelta(minutes=slot_minutes)
        slot = container.sales_slots.create_sales_slot(start, end)
        if activate:
            container.sales_slots.activate_sales_slot(slot.slot_id)
        result.slot_ids.append(slot.slot_id)

        for product_id in result.product_ids:
            try:
                container.sales_slots.add_product_to_slot(slot.slot_id, product_id, quantity)
                result.inventory_rows += 1
            except DuplicateInventoryError:
                result.skipped_duplicates += 1

    return result


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a demo sales event")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=date.today(),
        help="Event date (YYYY-MM-DD, default: today)",
    )
    parser.add_argument("--slots", type=int, default=2, help="Number of sales slots")
    parser.add_argument("--minutes", type=int, default=60, help="Length of each slot")
    parser.add_argument("--quantity", type=int, default=30, help="Initial stock per product")
    parser.add_argument("--activate", action="store_true", help="Activate the new slots")
    args = parser.parse_args()

    container = build_container(load_settings())
    try:
        result = seed(
            container,
            args.date,
            slot_count=args.slots,
            slot_minutes=args.minutes,
            quantity=args.quantity,
            activate=args.activate,
        )
    except (ValueError, NotFoundError) as e:
        print(f"Seeding failed: {e}", file=sys.stderr)
        return 1
    finally:
        container.close()

    print("=" * 50)
    print("SEED COMPLETE")
    print("=" * 50)
    print(f"Products:           {len(result.product_ids)}")
    print(f"Sales slots:        {len(result.slot_ids)}")
    print(f"Inventory rows:     {result.inventory_rows}")
    print(f"Skipped duplicates: {result.skipped_duplicates}")
    for slot_id in result.slot_ids:
        print(f"  slot {slot_id}")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
