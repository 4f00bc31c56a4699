"""Shared fixtures.

The suite runs against the in-memory repositories; the SQL store is
never touched.
"""

import os

os.environ.setdefault("STORE_BACKEND", "memory")

from typing import Any  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from storefront.api.deps import use_memory_store  # noqa: E402
from storefront.catalog.repository import (  # noqa: E402
    InMemoryCategoryRepository,
    InMemoryProductRepository,
    reset_memory_repositories,
)
from storefront.catalog.service import CatalogService, CategoryService  # noqa: E402
from storefront.infrastructure.config import settings  # noqa: E402
from storefront.main import app  # noqa: E402


def make_token(role: str | None = "admin", subject: str = "user-1", secret: str | None = None) -> str:
    """Mint a bearer token the way the user service would."""
    claims: dict[str, Any] = {"sub": subject}
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture(autouse=True)
def reset_stores():
    """Reset the process-wide in-memory stores around each test."""
    reset_memory_repositories()
    yield
    reset_memory_repositories()


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    use_memory_store(app)
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization headers for an admin caller."""
    return {"Authorization": f"Bearer {make_token('admin')}"}


@pytest.fixture
def customer_headers() -> dict[str, str]:
    """Authorization headers for a non-admin caller."""
    return {"Authorization": f"Bearer {make_token('customer', subject='user-2')}"}


@pytest.fixture
def product_repo() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def category_repo() -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository()


@pytest.fixture
def catalog_service(product_repo, category_repo) -> CatalogService:
    return CatalogService(product_repo, category_repo)


@pytest.fixture
def category_service(product_repo, category_repo) -> CategoryService:
    return CategoryService(category_repo, product_repo)


def product_fields(category_id: str, **overrides: Any) -> dict[str, Any]:
    """Keyword arguments for CatalogService.create_product."""
    fields: dict[str, Any] = {
        "name": "Acme Pro Headphones",
        "description": "Wireless over-ear headphones",
        "price": 10.0,
        "image_url": "/images/headphones.jpg",
        "category_id": category_id,
        "brand": "Acme",
        "sku": "A1",
        "inventory": 5,
    }
    fields.update(overrides)
    return fields
