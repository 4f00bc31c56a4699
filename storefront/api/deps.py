"""Service dependencies.

Routes depend on `get_catalog_service` / `get_category_service`, which
build SQL-backed services on the request's database session. With the
in-memory store selected, `use_memory_store` swaps them for services over
the process-wide in-memory repositories.
"""

from typing import Annotated

from fastapi import Depends, FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.repository import get_memory_repositories
from storefront.catalog.service import CatalogService, CategoryService
from storefront.catalog.sql_repository import SqlCategoryRepository, SqlProductRepository
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import get_session

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_catalog_service(session: SessionDep) -> CatalogService:
    """Catalog service bound to the request's database session."""
    return CatalogService(SqlProductRepository(session), SqlCategoryRepository(session))


async def get_category_service(session: SessionDep) -> CategoryService:
    """Category service bound to the request's database session."""
    return CategoryService(
        SqlCategoryRepository(session),
        SqlProductRepository(session),
        delete_policy=settings.category_delete_policy,
    )


def get_memory_catalog_service() -> CatalogService:
    """Catalog service over the in-memory repositories."""
    products, categories = get_memory_repositories()
    return CatalogService(products, categories)


def get_memory_category_service() -> CategoryService:
    """Category service over the in-memory repositories."""
    products, categories = get_memory_repositories()
    return CategoryService(categories, products, delete_policy=settings.category_delete_policy)


def use_memory_store(app: FastAPI) -> None:
    """Serve the catalog from the in-memory repositories.

    Args:
        app: FastAPI application instance.
    """
    app.dependency_overrides[get_catalog_service] = get_memory_catalog_service
    app.dependency_overrides[get_category_service] = get_memory_category_service


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
