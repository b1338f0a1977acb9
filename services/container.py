"""
Service wiring.

A ServiceContainer owns one storage backend and the three services built on it.
The API lifespan and the operator scripts create exactly one container and close
it on shutdown; nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from repositories.client import Settings, close_supabase_client, create_supabase_client
from repositories.inventory_repository import SupabaseProductInventoryRepository
from repositories.memory import InMemoryStore, build_memory_repositories
from repositories.order_repository import SupabaseOrderRepository
from repositories.product_repository import SupabaseProductRepository
from repositories.sales_slot_repository import SupabaseSalesSlotRepository
from services.order_service import OrderService
from services.product_service import ProductService
from services.sales_slot_service import SalesSlotService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    products: ProductService
    sales_slots: SalesSlotService
    orders: OrderService
    backend: str = "memory"
    _closer: Optional[Callable[[], None]] = field(default=None, repr=False)
    _closed: bool = field(default=False, repr=False)

    def close(self) -> None:
        """Release the storage handle. Safe to call more than once."""

        if self._closed:
            return
        self._closed = True
        if self._closer is not None:
            self._closer()
        logger.info("Storage backend released", extra={"backend": self.backend})


def build_memory_container(store: Optional[InMemoryStore] = None) -> ServiceContainer:
    store, products, slots, inventories, orders = build_memory_repositories(store)
    return ServiceContainer(
        products=ProductService(products),
        sales_slots=SalesSlotService(slots, inventories, products, orders),
        orders=OrderService(orders, slots, inventories, products),
        backend="memory",
        _closer=store.close,
    )


def build_supabase_container(client: Any, *, owns_client: bool = True) -> ServiceContainer:
    products = SupabaseProductRepository(client)
    slots = SupabaseSalesSlotRepository(client)
    inventories = SupabaseProductInventoryRepository(client)
    orders = SupabaseOrderRepository(client)
    return ServiceContainer(
        products=ProductService(products),
        sales_slots=SalesSlotService(slots, inventories, products, orders),
        orders=OrderService(orders, slots, inventories, products),
        backend="supabase",
        _closer=(lambda: close_supabase_client(client)) if owns_client else None,
    )


def build_container(settings: Settings) -> ServiceContainer:
    """Select and acquire the storage backend named by settings.storage_backend."""

    logger.info("Acquiring storage backend", extra={"backend": settings.storage_backend})
    if settings.storage_backend == "memory":
        return build_memory_container()
    if settings.storage_backend == "supabase":
        return build_supabase_container(create_supabase_client(settings))
    raise RuntimeError(f"Unsupported storage backend: {settings.storage_backend!r}")


__all__ = [
    "ServiceContainer",
    "build_container",
    "build_memory_container",
    "build_supabase_container",
]
