"""Product Catalog.

Entities, listing query building, repositories and services for the
product and category catalog.
"""

from storefront.catalog.entities import Category, CategoryRef, Product, ProductDetail, Specification
from storefront.catalog.query import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    ProductQuery,
    SortSpec,
    build_product_query,
)
from storefront.catalog.repository import (
    CategoryRepository,
    InMemoryCategoryRepository,
    InMemoryProductRepository,
    ProductRepository,
)
from storefront.catalog.service import CatalogService, CategoryService

__all__ = [
    # Entities
    "Category",
    "CategoryRef",
    "Product",
    "ProductDetail",
    "Specification",
    # Query
    "PaginatedResult",
    "PaginationParams",
    "ProductFilter",
    "ProductQuery",
    "SortSpec",
    "build_product_query",
    # Repositories
    "CategoryRepository",
    "InMemoryCategoryRepository",
    "InMemoryProductRepository",
    "ProductRepository",
    # Services
    "CatalogService",
    "CategoryService",
]
