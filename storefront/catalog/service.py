"""Catalog services for product and category operations.

High-level services that combine repository operations with the
business rules of the catalog: SKU and slug uniqueness, category
references, timestamps and the inventory decrement.
"""

import threading
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import structlog

from storefront.catalog.entities import Category, Product, ProductDetail, Specification
from storefront.catalog.query import (
    DEFAULT_HIGHLIGHT_LIMIT,
    PaginatedResult,
    ProductFilter,
    ProductQuery,
)
from storefront.catalog.repository import CategoryRepository, ProductRepository
from storefront.domain.exceptions import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateSkuError,
    DuplicateSlugError,
    InsufficientInventoryError,
    ProductNotFoundError,
    UnknownCategoryError,
    UnknownParentCategoryError,
    ValidationError,
)

logger = structlog.get_logger()

UPDATABLE_PRODUCT_FIELDS = frozenset(
    {
        "name",
        "description",
        "price",
        "compare_at_price",
        "image_url",
        "images",
        "category_id",
        "brand",
        "sku",
        "inventory",
        "specifications",
        "rating",
        "review_count",
        "free_shipping",
        "featured",
        "on_sale",
    }
)

UPDATABLE_CATEGORY_FIELDS = frozenset(
    {"name", "slug", "description", "image_url", "parent_category_id", "active", "order"}
)


class MonotonicClock:
    """UTC clock whose readings strictly increase within the process."""

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(microseconds=1)
            self._last = current
            return current


default_clock = MonotonicClock()


def _check_fields(changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Unknown or read-only field: {unknown[0]}", field=unknown[0])


class CatalogService:
    """Service for product catalog operations.

    Example usage:
        service = CatalogService(SqlProductRepository(session), SqlCategoryRepository(session))
        page = await service.list_products(build_product_query(request.query_params))
        await service.decrement_inventory(product_id, 2)
    """

    def __init__(
        self,
        products: ProductRepository,
        categories: CategoryRepository,
        clock: MonotonicClock | None = None,
    ) -> None:
        """Initialize service with its repositories.

        Args:
            products: Product store.
            categories: Category store, used for joins and reference checks.
            clock: Timestamp source; the process-wide clock by default.
        """
        self.products = products
        self.categories = categories
        self.clock = clock or default_clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_products(self, query: ProductQuery) -> PaginatedResult[ProductDetail]:
        """List products with filters, sorting and pagination.

        Args:
            query: Structured listing query.

        Returns:
            Page of products with categories joined.
        """
        pagination = query.pagination
        products = await self.products.find(
            query.filter,
            sort=query.sort,
            offset=pagination.offset,
            limit=pagination.limit,
        )
        total = await self.products.count(query.filter)

        return PaginatedResult(
            items=await self._join_categories(products),
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def get_product(self, product_id: str) -> ProductDetail:
        """Get product by ID with its category joined.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        product = await self._require_product(product_id)
        return (await self._join_categories([product]))[0]

    async def featured_products(self, limit: int = DEFAULT_HIGHLIGHT_LIMIT) -> list[ProductDetail]:
        """Get up to `limit` featured products."""
        products = await self.products.find(ProductFilter(featured=True), limit=limit)
        return await self._join_categories(products)

    async def on_sale_products(self, limit: int = DEFAULT_HIGHLIGHT_LIMIT) -> list[ProductDetail]:
        """Get up to `limit` on-sale products that carry a compare-at price.

        A product flagged on sale without a positive compare-at price is
        left out.
        """
        products = await self.products.find(
            ProductFilter(on_sale=True, discounted=True),
            limit=limit,
        )
        return await self._join_categories(products)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_product(
        self,
        *,
        name: str,
        description: str,
        price: float,
        image_url: str,
        category_id: str,
        brand: str,
        sku: str,
        inventory: int = 0,
        compare_at_price: float | None = None,
        images: Sequence[str] | None = None,
        specifications: Sequence[Specification | Mapping[str, str]] | None = None,
        free_shipping: bool | None = None,
        featured: bool | None = None,
        on_sale: bool | None = None,
    ) -> ProductDetail:
        """Create a new product.

        Raises:
            DuplicateSkuError: If the SKU is already used.
            ValidationError: If a field constraint is violated.
            UnknownCategoryError: If the category does not exist.
        """
        if await self.products.get_by_sku(sku):
            raise DuplicateSkuError(sku)

        now = self.clock.now()
        product = Product(
            id=str(uuid4()),
            name=name,
            description=description,
            price=price,
            compare_at_price=compare_at_price,
            image_url=image_url,
            images=list(images or []),
            category_id=category_id,
            brand=brand,
            sku=sku,
            inventory=inventory,
            specifications=list(specifications or []),
            free_shipping=free_shipping or False,
            featured=featured or False,
            on_sale=on_sale or False,
            created_at=now,
            updated_at=now,
        )
        await self._require_category_reference(product.category_id)

        product = await self.products.add(product)
        logger.info("Product created", product_id=product.id, sku=product.sku)
        return (await self._join_categories([product]))[0]

    async def update_product(self, product_id: str, changes: Mapping[str, Any]) -> ProductDetail:
        """Apply a partial update to a product.

        The merged record is re-validated with the creation constraints.

        Args:
            product_id: Product to update.
            changes: New values keyed by product attribute name.

        Returns:
            The post-update product with its category joined.

        Raises:
            ProductNotFoundError: If no product has this id.
            DuplicateSkuError: If the new SKU belongs to another product.
            ValidationError: If the merged record violates a constraint.
            UnknownCategoryError: If the new category does not exist.
        """
        _check_fields(changes, UPDATABLE_PRODUCT_FIELDS)
        current = await self._require_product(product_id)

        updated = current.copy_with(**changes, updated_at=self._next_stamp(current.updated_at))

        if updated.sku != current.sku:
            existing = await self.products.get_by_sku(updated.sku)
            if existing and existing.id != current.id:
                raise DuplicateSkuError(updated.sku)
        if updated.category_id != current.category_id:
            await self._require_category_reference(updated.category_id)

        saved = await self.products.save(updated)
        if saved is None:
            raise ProductNotFoundError(product_id)

        logger.info("Product updated", product_id=product_id, fields=sorted(changes))
        return (await self._join_categories([saved]))[0]

    async def delete_product(self, product_id: str) -> None:
        """Hard-delete a product.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        await self._require_product(product_id)
        if not await self.products.delete(product_id):
            raise ProductNotFoundError(product_id)
        logger.info("Product deleted", product_id=product_id)

    async def decrement_inventory(self, product_id: str, quantity: int) -> Product:
        """Take `quantity` units out of a product's inventory.

        The availability check and the write are a single conditional
        store operation, so concurrent decrements cannot oversell.

        Args:
            product_id: Product to decrement.
            quantity: Units to remove.

        Returns:
            The updated product.

        Raises:
            ValidationError: If quantity is not a non-negative integer.
            ProductNotFoundError: If no product has this id.
            InsufficientInventoryError: If quantity exceeds the inventory.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Quantity must be a non-negative integer", field="quantity")

        updated = await self.products.decrement_inventory(product_id, quantity, self.clock.now())
        if updated is not None:
            logger.info(
                "Inventory decremented",
                product_id=product_id,
                quantity=quantity,
                inventory=updated.inventory,
            )
            return updated

        current = await self._require_product(product_id)
        logger.warning(
            "Insufficient inventory",
            product_id=product_id,
            requested=quantity,
            available=current.inventory,
        )
        raise InsufficientInventoryError(product_id, quantity, current.inventory)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_product(self, product_id: str) -> Product:
        product = await self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def _require_category_reference(self, category_id: str) -> None:
        if await self.categories.get(category_id) is None:
            raise UnknownCategoryError(category_id)

    def _next_stamp(self, previous: datetime) -> datetime:
        stamp = self.clock.now()
        if stamp <= previous:
            stamp = previous + timedelta(microseconds=1)
        return stamp

    async def _join_categories(self, products: Sequence[Product]) -> list[ProductDetail]:
        categories = await self.categories.get_many(p.category_id for p in products)
        details = []
        for product in products:
            category = categories.get(product.category_id)
            details.append(ProductDetail(product=product, category=category.ref() if category else None))
        return details


class CategoryService:
    """Service for category operations."""

    def __init__(
        self,
        categories: CategoryRepository,
        products: ProductRepository,
        delete_policy: str = "allow",
    ) -> None:
        """Initialize service with its repositories.

        Args:
            categories: Category store.
            products: Product store, consulted by the "restrict" delete policy.
            delete_policy: "allow" deletes referenced categories and leaves
                product references dangling; "restrict" refuses.
        """
        self.categories = categories
        self.products = products
        self.delete_policy = delete_policy

    async def list_categories(self, active: bool | None = None) -> list[Category]:
        """List categories in display order."""
        return await self.categories.find(active=active)

    async def get_category(self, category_id: str) -> Category:
        """Get category by ID.

        Raises:
            CategoryNotFoundError: If no category has this id.
        """
        category = await self.categories.get(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    async def create_category(
        self,
        *,
        name: str,
        slug: str,
        description: str | None = None,
        image_url: str | None = None,
        parent_category_id: str | None = None,
        active: bool = True,
        order: int = 0,
    ) -> Category:
        """Create a new category.

        Raises:
            ValidationError: If a field constraint is violated.
            DuplicateSlugError: If the slug is already used.
            UnknownParentCategoryError: If the parent does not exist.
        """
        category = Category(
            id=str(uuid4()),
            name=name,
            slug=slug,
            description=description,
            image_url=image_url,
            parent_category_id=parent_category_id,
            active=active,
            order=order,
        )
        if await self.categories.get_by_slug(category.slug):
            raise DuplicateSlugError(category.slug)
        await self._require_parent(category.parent_category_id)

        category = await self.categories.add(category)
        logger.info("Category created", category_id=category.id, slug=category.slug)
        return category

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        """Apply a partial update to a category.

        Raises:
            CategoryNotFoundError: If no category has this id.
            ValidationError: If the merged record violates a constraint, or
                the new parent is the category or one of its descendants.
            DuplicateSlugError: If the new slug belongs to another category.
            UnknownParentCategoryError: If the new parent does not exist.
        """
        _check_fields(changes, UPDATABLE_CATEGORY_FIELDS)
        current = await self.get_category(category_id)
        updated = current.copy_with(**changes)

        if updated.slug != current.slug:
            existing = await self.categories.get_by_slug(updated.slug)
            if existing and existing.id != current.id:
                raise DuplicateSlugError(updated.slug)
        if updated.parent_category_id != current.parent_category_id:
            await self._require_parent(updated.parent_category_id)
            await self._require_acyclic(category_id, updated.parent_category_id)

        saved = await self.categories.save(updated)
        if saved is None:
            raise CategoryNotFoundError(category_id)
        logger.info("Category updated", category_id=category_id, fields=sorted(changes))
        return saved

    async def delete_category(self, category_id: str) -> None:
        """Delete a category according to the configured delete policy.

        Raises:
            CategoryNotFoundError: If no category has this id.
            CategoryInUseError: Under the "restrict" policy, if products
                still reference the category.
        """
        await self.get_category(category_id)

        if self.delete_policy == "restrict":
            in_use = await self.products.count(ProductFilter(category_id=category_id))
            if in_use:
                raise CategoryInUseError(category_id, in_use)

        if not await self.categories.delete(category_id):
            raise CategoryNotFoundError(category_id)
        logger.info("Category deleted", category_id=category_id, policy=self.delete_policy)

    async def _require_parent(self, parent_id: str | None) -> None:
        if parent_id is not None and await self.categories.get(parent_id) is None:
            raise UnknownParentCategoryError(parent_id)

    async def _require_acyclic(self, category_id: str, parent_id: str | None) -> None:
        """Reject a parent whose ancestor chain leads back to the category."""
        seen: set[str] = set()
        while parent_id is not None and parent_id not in seen:
            if parent_id == category_id:
                raise ValidationError(
                    "A category cannot be nested under itself or its descendants",
                    field="parentCategory",
                )
            seen.add(parent_id)
            parent = await self.categories.get(parent_id)
            parent_id = parent.parent_category_id if parent else None
