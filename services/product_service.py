"""
Product catalog service.

Plain CRUD over the ProductRepository. The only rule is the domain invariant
(non-empty name, non-negative integer price); deletion is logical.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID, uuid4

from domain.product import Product, validate_product_fields
from domain.time import utc_now
from repositories.interfaces import ProductRepository

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, products: ProductRepository) -> None:
        self._products = products

    def create_product(self, name: str, price: int) -> Product:
        validate_product_fields(name, price)
        now = utc_now()
        product = self._products.create(
            Product(
                product_id=uuid4(),
                name=name.strip(),
                price=price,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Product created",
            extra={"product_id": str(product.product_id), "price": product.price},
        )
        return product

    def get_product(self, product_id: UUID) -> Product:
        return self._products.find_by_id(product_id)

    def list_products(self) -> List[Product]:
        return self._products.find_all()

    def find_product_by_name(self, name: str) -> Optional[Product]:
        """Exact-name lookup among non-deleted products; None when absent."""

        return self._products.find_by_name(name.strip())

    def update_product(self, product_id: UUID, name: str, price: int) -> Product:
        """
        Change name and price. Existing order items keep their price snapshot.
        """

        validate_product_fields(name, price)
        current = self._products.find_by_id(product_id)
        product = self._products.update(
            current.updated(name=name.strip(), price=price, updated_at=utc_now())
        )
        logger.info(
            "Product updated",
            extra={"product_id": str(product_id), "old_price": current.price, "new_price": price},
        )
        return product

    def delete_product(self, product_id: UUID) -> None:
        self._products.delete(product_id, utc_now())
        logger.info("Product deleted", extra={"product_id": str(product_id)})


__all__ = ["ProductService"]
