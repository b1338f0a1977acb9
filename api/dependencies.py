"""FastAPI dependencies resolving services from the application's container."""

from fastapi import Request

from services.container import ServiceContainer
from services.order_service import OrderService
from services.product_service import ProductService
from services.sales_slot_service import SalesSlotService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_product_service(request: Request) -> ProductService:
    return get_container(request).products


def get_sales_slot_service(request: Request) -> SalesSlotService:
    return get_container(request).sales_slots


def get_order_service(request: Request) -> OrderService:
    return get_container(request).orders
