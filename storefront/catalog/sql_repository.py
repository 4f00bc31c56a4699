"""SQLAlchemy-backed catalog repositories.

Provides the production store for products and categories, with
filtering, sorting, pagination and the conditional inventory decrement
expressed as single SQL statements.
"""

import math
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, Update, and_, delete, false, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.entities import Category, Product, Specification
from storefront.catalog.query import ProductFilter, SortSpec
from storefront.catalog.repository import CategoryRepository, ProductRepository
from storefront.domain.exceptions import DuplicateSkuError, DuplicateSlugError
from storefront.infrastructure.models import CategoryModel, ProductModel


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except (TypeError, ValueError):
        return False
    return True


# ============================================================================
# Row <-> entity mapping
# ============================================================================


def _product_from_row(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=row.price,
        compare_at_price=row.compare_at_price,
        image_url=row.image_url,
        images=list(row.images or []),
        category_id=row.category_id,
        brand=row.brand,
        sku=row.sku,
        inventory=row.inventory,
        specifications=[Specification.from_dict(s) for s in row.specifications or []],
        rating=row.rating,
        review_count=row.review_count,
        free_shipping=row.free_shipping,
        featured=row.featured,
        on_sale=row.on_sale,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _product_values(product: Product) -> dict[str, Any]:
    return {
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "compare_at_price": product.compare_at_price,
        "image_url": product.image_url,
        "images": list(product.images),
        "category_id": product.category_id,
        "brand": product.brand,
        "sku": product.sku,
        "inventory": product.inventory,
        "specifications": [s.to_dict() for s in product.specifications],
        "rating": product.rating,
        "review_count": product.review_count,
        "free_shipping": product.free_shipping,
        "featured": product.featured,
        "on_sale": product.on_sale,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }


def decrement_statement(product_id: str, quantity: int, updated_at: datetime) -> Update:
    """Build the conditional decrement.

    The inventory guard is part of the UPDATE itself, so the check and
    the write are one statement. No row comes back when the product is
    missing or holds fewer than `quantity` units.
    """
    return (
        update(ProductModel)
        .where(ProductModel.id == product_id, ProductModel.inventory >= quantity)
        .values(inventory=ProductModel.inventory - quantity, updated_at=updated_at)
        .returning(ProductModel)
        .execution_options(populate_existing=True)
    )


def _category_from_row(row: CategoryModel) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        image_url=row.image_url,
        parent_category_id=row.parent_category_id,
        active=row.active,
        order=row.order,
    )


def _category_values(category: Category) -> dict[str, Any]:
    return {
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image_url": category.image_url,
        "parent_category_id": category.parent_category_id,
        "active": category.active,
        "order": category.order,
    }


# ============================================================================
# Products
# ============================================================================


class SqlProductRepository(ProductRepository):
    """Repository for Product database operations.

    Example usage:
        async with async_session_factory() as session:
            repo = SqlProductRepository(session)
            products = await repo.find(
                ProductFilter(brand="Acme", in_stock=True),
                SortSpec("price", descending=False),
                offset=0,
                limit=20,
            )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _flush(self, sku: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # sku is the only unique column besides the primary key
            raise DuplicateSkuError(sku) from exc

    async def add(self, product: Product) -> Product:
        row = ProductModel(id=product.id, **_product_values(product))
        self.session.add(row)
        await self._flush(product.sku)
        return _product_from_row(row)

    async def get(self, product_id: str) -> Product | None:
        if not _is_uuid(product_id):
            return None
        row = await self.session.get(ProductModel, product_id)
        return _product_from_row(row) if row else None

    async def get_by_sku(self, sku: str) -> Product | None:
        result = await self.session.execute(select(ProductModel).where(ProductModel.sku == sku))
        row = result.scalar_one_or_none()
        return _product_from_row(row) if row else None

    async def save(self, product: Product) -> Product | None:
        if not _is_uuid(product.id):
            return None
        row = await self.session.get(ProductModel, product.id)
        if row is None:
            return None
        for key, value in _product_values(product).items():
            setattr(row, key, value)
        await self._flush(product.sku)
        return _product_from_row(row)

    async def delete(self, product_id: str) -> bool:
        if not _is_uuid(product_id):
            return False
        result = await self.session.execute(
            delete(ProductModel).where(ProductModel.id == product_id)
        )
        return result.rowcount > 0

    async def find(
        self,
        product_filter: ProductFilter,
        sort: SortSpec | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Product]:
        result = await self.session.execute(self._find_query(product_filter, sort, offset, limit))
        return [_product_from_row(row) for row in result.scalars().all()]

    async def count(self, product_filter: ProductFilter) -> int:
        query = select(func.count(ProductModel.id))
        conditions = self._conditions(product_filter)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return result.scalar_one()

    async def decrement_inventory(
        self,
        product_id: str,
        quantity: int,
        updated_at: datetime,
    ) -> Product | None:
        if not _is_uuid(product_id):
            return None
        result = await self.session.execute(decrement_statement(product_id, quantity, updated_at))
        row = result.scalar_one_or_none()
        return _product_from_row(row) if row else None

    def _find_query(
        self,
        product_filter: ProductFilter,
        sort: SortSpec | None,
        offset: int,
        limit: int | None,
    ) -> Select:
        query = select(ProductModel)

        conditions = self._conditions(product_filter)
        if conditions:
            query = query.where(and_(*conditions))

        if sort is not None:
            column = self._get_sort_column(sort.field)
            # id breaks ties so pages never overlap
            query = query.order_by(
                column.desc() if sort.descending else column.asc(),
                ProductModel.id.asc(),
            )

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query

    def _conditions(self, product_filter: ProductFilter) -> list[Any]:
        """Translate a ProductFilter into SQL conditions."""
        conditions: list[Any] = []

        if product_filter.category_id is not None:
            if _is_uuid(product_filter.category_id):
                conditions.append(ProductModel.category_id == product_filter.category_id)
            else:
                conditions.append(false())

        if product_filter.brand is not None:
            conditions.append(ProductModel.brand == product_filter.brand)

        if product_filter.featured is not None:
            conditions.append(ProductModel.featured == product_filter.featured)

        if product_filter.on_sale is not None:
            conditions.append(ProductModel.on_sale == product_filter.on_sale)

        # PostgreSQL orders NaN above every number, so NaN bounds are
        # turned into an explicit no-match instead.
        if product_filter.min_price is not None:
            if math.isnan(product_filter.min_price):
                conditions.append(false())
            else:
                conditions.append(ProductModel.price >= product_filter.min_price)

        if product_filter.max_price is not None:
            if math.isnan(product_filter.max_price):
                conditions.append(false())
            else:
                conditions.append(ProductModel.price <= product_filter.max_price)

        if product_filter.in_stock:
            conditions.append(ProductModel.inventory > 0)

        if product_filter.discounted:
            conditions.append(ProductModel.compare_at_price > 0)

        return conditions

    def _get_sort_column(self, sort_by: str) -> Any:
        columns = {
            "price": ProductModel.price,
            "rating": ProductModel.rating,
            "created_at": ProductModel.created_at,
        }
        return columns.get(sort_by, ProductModel.created_at)


# ============================================================================
# Categories
# ============================================================================


class SqlCategoryRepository(CategoryRepository):
    """Repository for Category database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _flush(self, slug: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateSlugError(slug) from exc

    async def add(self, category: Category) -> Category:
        row = CategoryModel(id=category.id, **_category_values(category))
        self.session.add(row)
        await self._flush(category.slug)
        return _category_from_row(row)

    async def get(self, category_id: str) -> Category | None:
        if not _is_uuid(category_id):
            return None
        row = await self.session.get(CategoryModel, category_id)
        return _category_from_row(row) if row else None

    async def get_by_slug(self, slug: str) -> Category | None:
        result = await self.session.execute(select(CategoryModel).where(CategoryModel.slug == slug))
        row = result.scalar_one_or_none()
        return _category_from_row(row) if row else None

    async def get_many(self, category_ids: Iterable[str]) -> dict[str, Category]:
        ids = {category_id for category_id in category_ids if _is_uuid(category_id)}
        if not ids:
            return {}
        result = await self.session.execute(select(CategoryModel).where(CategoryModel.id.in_(ids)))
        return {row.id: _category_from_row(row) for row in result.scalars().all()}

    async def find(self, active: bool | None = None) -> list[Category]:
        query = select(CategoryModel)
        if active is not None:
            query = query.where(CategoryModel.active == active)
        query = query.order_by(CategoryModel.order.asc(), CategoryModel.name.asc())

        result = await self.session.execute(query)
        return [_category_from_row(row) for row in result.scalars().all()]

    async def save(self, category: Category) -> Category | None:
        if not _is_uuid(category.id):
            return None
        row = await self.session.get(CategoryModel, category.id)
        if row is None:
            return None
        for key, value in _category_values(category).items():
            setattr(row, key, value)
        await self._flush(category.slug)
        return _category_from_row(row)

    async def delete(self, category_id: str) -> bool:
        if not _is_uuid(category_id):
            return False
        result = await self.session.execute(
            delete(CategoryModel).where(CategoryModel.id == category_id)
        )
        return result.rowcount > 0
