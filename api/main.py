"""
Slot Sale Order API - Main Application.

FastAPI application with CORS enabled for the point-of-sale frontend.

Run with:
    uvicorn api.main:create_app --factory --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.errors import register_exception_handlers
from api.routers import orders, products, sales_slots
from repositories.client import Settings, load_settings
from services.container import ServiceContainer, build_container

logger = logging.getLogger("api")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    With an explicit container (tests, scripts) the app serves it as-is and leaves
    closing it to the caller. Otherwise settings are loaded from the environment
    and the storage backend is acquired at startup and released at shutdown.
    """

    if settings is None and container is not None:
        settings = Settings(storage_backend=container.backend)
    elif settings is None:
        settings = load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.container is None
        if owned:
            app.state.container = build_container(settings)
        logger.info("API started", extra={"backend": app.state.container.backend})
        try:
            yield
        finally:
            if owned:
                app.state.container.close()
                app.state.container = None
            logger.info("API stopped")

    app = FastAPI(
        title="Slot Sale Order API",
        description="Orders, sales slots and inventory reservations for timed food sales",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = round((time.time() - start_time) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} "
            f"Status: {response.status_code} "
            f"Time: {duration}ms"
        )
        return response

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "slot-sale-order-api",
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Slot Sale Order API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(products.router, prefix="/api/v1", tags=["Products"])
    app.include_router(sales_slots.router, prefix="/api/v1", tags=["Sales Slots"])
    app.include_router(orders.router, prefix="/api/v1", tags=["Orders"])

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:create_app", factory=True, host="0.0.0.0", port=8080)
