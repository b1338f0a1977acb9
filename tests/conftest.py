"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides fixtures wiring the services over
a fresh in-memory store for every test.
"""

import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.product import Product  # noqa: E402
from domain.sales_slot import SalesSlot  # noqa: E402
from services.container import ServiceContainer, build_memory_container  # noqa: E402

SLOT_START = datetime(2025, 11, 3, 1, 0, 0, tzinfo=timezone.utc)
SLOT_END = datetime(2025, 11, 3, 3, 0, 0, tzinfo=timezone.utc)


@dataclass
class Event:
    """One slot stocked with one product, as most order tests need."""
    container: ServiceContainer
    slot: SalesSlot
    product: Product


@pytest.fixture
def container() -> ServiceContainer:
    c = build_memory_container()
    yield c
    c.close()


@pytest.fixture
def event(container: ServiceContainer) -> Event:
    """Active slot 10:00-12:00 JST with 10 units of a 400-yen product."""

    product = container.products.create_product("Yakisoba", 400)
    slot = container.sales_slots.create_sales_slot(SLOT_START, SLOT_END)
    slot = container.sales_slots.activate_sales_slot(slot.slot_id)
    container.sales_slots.add_product_to_slot(slot.slot_id, product.product_id, 10)
    return Event(container=container, slot=slot, product=product)
