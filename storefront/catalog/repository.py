"""Catalog repositories.

Defines the store interface the catalog services depend on, plus an
in-memory implementation used for local runs and tests. The SQL
implementation lives in `storefront.catalog.sql_repository`.
"""

import copy
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from storefront.catalog.entities import Category, Product
from storefront.catalog.query import ProductFilter, SortSpec
from storefront.domain.exceptions import DuplicateSkuError, DuplicateSlugError


class ProductRepository(ABC):
    """Store interface for products.

    Example usage:
        repo = InMemoryProductRepository()
        await repo.add(product)
        page = await repo.find(ProductFilter(brand="Acme"), SortSpec("price", False), 0, 20)
    """

    @abstractmethod
    async def add(self, product: Product) -> Product:
        """Persist a new product.

        Raises:
            DuplicateSkuError: If another product already has the SKU.
        """

    @abstractmethod
    async def get(self, product_id: str) -> Product | None:
        """Get product by id."""

    @abstractmethod
    async def get_by_sku(self, sku: str) -> Product | None:
        """Get product by SKU."""

    @abstractmethod
    async def save(self, product: Product) -> Product | None:
        """Replace an existing product record.

        Returns:
            The stored product, or None if the id no longer exists.

        Raises:
            DuplicateSkuError: If the new SKU belongs to another product.
        """

    @abstractmethod
    async def delete(self, product_id: str) -> bool:
        """Hard-delete a product. Returns False if it did not exist."""

    @abstractmethod
    async def find(
        self,
        product_filter: ProductFilter,
        sort: SortSpec | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Product]:
        """Find products matching a filter.

        Args:
            product_filter: Predicate to apply.
            sort: Sort order, or None for store order.
            offset: Records to skip.
            limit: Maximum records to return, or None for all.
        """

    @abstractmethod
    async def count(self, product_filter: ProductFilter) -> int:
        """Count products matching a filter."""

    @abstractmethod
    async def decrement_inventory(
        self,
        product_id: str,
        quantity: int,
        updated_at: datetime,
    ) -> Product | None:
        """Atomically decrement inventory iff it is at least `quantity`.

        The check and the write happen as one store operation.

        Returns:
            The updated product, or None when the product is missing or
            does not hold enough inventory.
        """


class CategoryRepository(ABC):
    """Store interface for categories."""

    @abstractmethod
    async def add(self, category: Category) -> Category:
        """Persist a new category.

        Raises:
            DuplicateSlugError: If another category already has the slug.
        """

    @abstractmethod
    async def get(self, category_id: str) -> Category | None:
        """Get category by id."""

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Category | None:
        """Get category by slug."""

    @abstractmethod
    async def get_many(self, category_ids: Iterable[str]) -> dict[str, Category]:
        """Get categories by id, keyed by id. Unknown ids are skipped."""

    @abstractmethod
    async def find(self, active: bool | None = None) -> list[Category]:
        """List categories by display order then name."""

    @abstractmethod
    async def save(self, category: Category) -> Category | None:
        """Replace an existing category record."""

    @abstractmethod
    async def delete(self, category_id: str) -> bool:
        """Delete a category. Returns False if it did not exist."""


# ============================================================================
# In-memory implementations
# ============================================================================


class InMemoryProductRepository(ProductRepository):
    """Dict-backed product store.

    Records are copied on the way in and out so callers never share
    mutable state with the store. A lock guards every mutation, which
    makes the conditional decrement a single compare-and-set.
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._lock = threading.Lock()

    def _sku_taken(self, sku: str, exclude_id: str | None = None) -> bool:
        return any(p.sku == sku and p.id != exclude_id for p in self._products.values())

    async def add(self, product: Product) -> Product:
        with self._lock:
            if self._sku_taken(product.sku):
                raise DuplicateSkuError(product.sku)
            self._products[product.id] = copy.deepcopy(product)
        return copy.deepcopy(product)

    async def get(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return copy.deepcopy(product) if product else None

    async def get_by_sku(self, sku: str) -> Product | None:
        for product in self._products.values():
            if product.sku == sku:
                return copy.deepcopy(product)
        return None

    async def save(self, product: Product) -> Product | None:
        with self._lock:
            if product.id not in self._products:
                return None
            if self._sku_taken(product.sku, exclude_id=product.id):
                raise DuplicateSkuError(product.sku)
            self._products[product.id] = copy.deepcopy(product)
        return copy.deepcopy(product)

    async def delete(self, product_id: str) -> bool:
        with self._lock:
            return self._products.pop(product_id, None) is not None

    async def find(
        self,
        product_filter: ProductFilter,
        sort: SortSpec | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Product]:
        matches = [p for p in self._products.values() if product_filter.matches(p)]

        if sort is not None:
            matches.sort(key=lambda p: getattr(p, sort.field), reverse=sort.descending)

        end = None if limit is None else offset + limit
        return [copy.deepcopy(p) for p in matches[offset:end]]

    async def count(self, product_filter: ProductFilter) -> int:
        return sum(1 for p in self._products.values() if product_filter.matches(p))

    async def decrement_inventory(
        self,
        product_id: str,
        quantity: int,
        updated_at: datetime,
    ) -> Product | None:
        with self._lock:
            product = self._products.get(product_id)
            if product is None or product.inventory < quantity:
                return None
            product.inventory -= quantity
            product.updated_at = updated_at
            return copy.deepcopy(product)


class InMemoryCategoryRepository(CategoryRepository):
    """Dict-backed category store."""

    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}
        self._lock = threading.Lock()

    def _slug_taken(self, slug: str, exclude_id: str | None = None) -> bool:
        return any(c.slug == slug and c.id != exclude_id for c in self._categories.values())

    async def add(self, category: Category) -> Category:
        with self._lock:
            if self._slug_taken(category.slug):
                raise DuplicateSlugError(category.slug)
            self._categories[category.id] = copy.deepcopy(category)
        return copy.deepcopy(category)

    async def get(self, category_id: str) -> Category | None:
        category = self._categories.get(category_id)
        return copy.deepcopy(category) if category else None

    async def get_by_slug(self, slug: str) -> Category | None:
        for category in self._categories.values():
            if category.slug == slug:
                return copy.deepcopy(category)
        return None

    async def get_many(self, category_ids: Iterable[str]) -> dict[str, Category]:
        return {
            category_id: copy.deepcopy(self._categories[category_id])
            for category_id in set(category_ids)
            if category_id in self._categories
        }

    async def find(self, active: bool | None = None) -> list[Category]:
        categories = [
            c for c in self._categories.values() if active is None or c.active == active
        ]
        categories.sort(key=lambda c: (c.order, c.name))
        return [copy.deepcopy(c) for c in categories]

    async def save(self, category: Category) -> Category | None:
        with self._lock:
            if category.id not in self._categories:
                return None
            if self._slug_taken(category.slug, exclude_id=category.id):
                raise DuplicateSlugError(category.slug)
            self._categories[category.id] = copy.deepcopy(category)
        return copy.deepcopy(category)

    async def delete(self, category_id: str) -> bool:
        with self._lock:
            return self._categories.pop(category_id, None) is not None


# ============================================================================
# Global in-memory stores
# ============================================================================


_product_repository: InMemoryProductRepository | None = None
_category_repository: InMemoryCategoryRepository | None = None


def get_memory_repositories() -> tuple[InMemoryProductRepository, InMemoryCategoryRepository]:
    """Get the process-wide in-memory repositories, creating them on first use."""
    global _product_repository, _category_repository
    if _product_repository is None:
        _product_repository = InMemoryProductRepository()
    if _category_repository is None:
        _category_repository = InMemoryCategoryRepository()
    return _product_repository, _category_repository


def reset_memory_repositories() -> None:
    """Drop the in-memory repositories (for testing)."""
    global _product_repository, _category_repository
    _product_repository = None
    _category_repository = None
