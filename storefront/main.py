"""Storefront API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, error handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.categories import router as categories_router
from storefront.api.deps import use_memory_store
from storefront.api.errors import register_exception_handlers
from storefront.api.health import router as health_router
from storefront.api.middleware import setup_middleware
from storefront.api.products import router as products_router
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import engine
from storefront.infrastructure.logging import configure_logging

configure_logging(settings.log_level, debug=settings.debug)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting Storefront API",
        version=settings.api_version,
        debug=settings.debug,
        store_backend=settings.store_backend,
        category_delete_policy=settings.category_delete_policy,
    )

    yield

    logger.info("Shutting down Storefront API")
    await engine.dispose()


app = FastAPI(
    title="Storefront API",
    description="Product catalog backend for the storefront",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware (request ID, catch-all error handling)
setup_middleware(app)

# Domain, HTTP and validation error envelopes
register_exception_handlers(app)

if settings.store_backend == "memory":
    use_memory_store(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)
app.include_router(categories_router)
