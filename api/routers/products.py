"""
Products API Endpoints.

Catalog management. Deleting a product is logical; orders keep their price snapshot.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_product_service
from api.models import ErrorResponse, ProductRequest, ProductResponse
from services.product_service import ProductService

router = APIRouter(responses={404: {"model": ErrorResponse}})


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=201,
    summary="Create Product",
)
def create_product(
    request: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    return ProductResponse.from_domain(service.create_product(request.name, request.price))


@router.get("/products", response_model=List[ProductResponse], summary="List Products")
def list_products(service: ProductService = Depends(get_product_service)):
    return [ProductResponse.from_domain(p) for p in service.list_products()]


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get Product")
def get_product(product_id: UUID, service: ProductService = Depends(get_product_service)):
    return ProductResponse.from_domain(service.get_product(product_id))


@router.put("/products/{product_id}", response_model=ProductResponse, summary="Update Product")
def update_product(
    product_id: UUID,
    request: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    """
    Replace name and price.

    Orders placed earlier keep the price that was current when their items were added.
    """
    return ProductResponse.from_domain(
        service.update_product(product_id, request.name, request.price)
    )


@router.delete("/products/{product_id}", status_code=204, summary="Delete Product")
def delete_product(product_id: UUID, service: ProductService = Depends(get_product_service)):
    service.delete_product(product_id)
    return Response(status_code=204)
