"""
Check inventory status - how many units of each product are reserved, sold and available in a slot.

Usage:
    python scripts/check_inventory_status.py <sales_slot_id>
    python scripts/check_inventory_status.py            # every slot
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import NotFoundError
from repositories.client import load_settings
from services.container import ServiceContainer, build_container


def format_slot_report(container: ServiceContainer, slot_id: UUID) -> List[str]:
    """Render the ledger of one slot as printable lines."""

    slot = container.sales_slots.get_sales_slot(slot_id)
    rows = container.sales_slots.list_slot_inventory(slot_id)

    lines = [
        "=" * 64,
        f"SLOT {slot.slot_id}",
        f"{slot.start_time.isoformat()} -> {slot.end_time.isoformat()}  "
        f"({'ACTIVE' if slot.is_active else 'inactive'})",
        "=" * 64,
        f"{'Product':<24}{'Initial':>9}{'Reserved':>10}{'Sold':>8}{'Available':>11}",
        "-" * 64,
    ]

    totals = [0, 0, 0, 0]
    for row in rows:
        try:
            name = container.products.get_product(row.product_id).name
        except NotFoundError:
            name = f"(deleted) {row.product_id}"
        lines.append(
            f"{name[:23]:<24}{row.initial_quantity:>9}{row.reserved_quantity:>10}"
            f"{row.sold_quantity:>8}{row.available_quantity:>11}"
        )
        totals[0] += row.initial_quantity
        totals[1] += row.reserved_quantity
        totals[2] += row.sold_quantity
        totals[3] += row.available_quantity

    lines.append("-" * 64)
    lines.append(f"{'TOTAL':<24}{totals[0]:>9}{totals[1]:>10}{totals[2]:>8}{totals[3]:>11}")
    if totals[0] > 0:
        lines.append(f"Percentage sold: {(totals[2] / totals[0] * 100):.1f}%")
    return lines


def check_inventory_status(container: ServiceContainer, slot_id: Optional[UUID] = None) -> None:
    slot_ids = (
        [slot_id]
        if slot_id is not None
        else [slot.slot_id for slot in container.sales_slots.list_sales_slots()]
    )
    if not slot_ids:
        print("No sales slots found.")
        return
    for current in slot_ids:
        print("\n".join(format_slot_report(container, current)))
        print()


def main() -> int:
    parser = argparse.ArgumentParser(description="Print the inventory ledger of sales slots")
    parser.add_argument("slot_id", nargs="?", type=UUID, help="Sales slot to inspect")
    args = parser.parse_args()

    container = build_container(load_settings())
    try:
        check_inventory_status(container, args.slot_id)
    finally:
        container.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
