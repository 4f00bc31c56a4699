"""Tests for the catalog and category services."""

import pytest

from conftest import product_fields
from storefront.catalog.query import build_product_query
from storefront.catalog.service import CatalogService, CategoryService, MonotonicClock
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


async def _category(service: CategoryService, slug: str = "audio", **overrides):
    return await service.create_category(name=overrides.pop("name", slug.title()), slug=slug, **overrides)


class TestCreateProduct:
    """Tests for CatalogService.create_product."""

    @pytest.mark.asyncio
    async def test_create_joins_category(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)

        detail = await catalog_service.create_product(**product_fields(category.id))

        assert detail.product.sku == "A1"
        assert detail.product.created_at == detail.product.updated_at
        assert detail.category.id == category.id
        assert detail.category.slug == "audio"

    @pytest.mark.asyncio
    async def test_duplicate_sku_leaves_one_record(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        await catalog_service.create_product(**product_fields(category.id, sku="A1"))

        with pytest.raises(DuplicateSkuError) as exc_info:
            await catalog_service.create_product(**product_fields(category.id, sku="A1", name="Other"))

        assert exc_info.value.message == "Product with this SKU already exists"
        page = await catalog_service.list_products(build_product_query({}))
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, catalog_service: CatalogService) -> None:
        with pytest.raises(UnknownCategoryError):
            await catalog_service.create_product(**product_fields("no-such-category"))

    @pytest.mark.asyncio
    async def test_invalid_fields_rejected(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)

        with pytest.raises(ValidationError):
            await catalog_service.create_product(**product_fields(category.id, price=-1.0))
        with pytest.raises(ValidationError):
            await catalog_service.create_product(**product_fields(category.id, inventory=-1))


class TestListProducts:
    """Tests for listing, featured and on-sale queries."""

    @pytest.mark.asyncio
    async def test_sort_and_paginate(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        for index, price in enumerate([5, 10, 15, 20, 25]):
            await catalog_service.create_product(**product_fields(category.id, sku=f"S{index}", price=float(price)))

        page = await catalog_service.list_products(
            build_product_query({"sort": "price-asc", "limit": "2", "page": "2"})
        )

        assert [d.product.price for d in page.items] == [15.0, 20.0]
        assert page.page == 2
        assert page.total == 5
        assert page.total_pages == 3

    @pytest.mark.asyncio
    async def test_default_sort_is_newest_first(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        for index in range(3):
            await catalog_service.create_product(**product_fields(category.id, sku=f"S{index}"))

        page = await catalog_service.list_products(build_product_query({}))

        assert [d.product.sku for d in page.items] == ["S2", "S1", "S0"]

    @pytest.mark.asyncio
    async def test_featured_filter_only_for_literal_true(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        await catalog_service.create_product(**product_fields(category.id, sku="F", featured=True))
        await catalog_service.create_product(**product_fields(category.id, sku="N"))

        featured = await catalog_service.list_products(build_product_query({"featured": "true"}))
        unfiltered = await catalog_service.list_products(build_product_query({"featured": "false"}))

        assert [d.product.sku for d in featured.items] == ["F"]
        assert unfiltered.total == 2

    @pytest.mark.asyncio
    async def test_malformed_price_matches_nothing(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        await catalog_service.create_product(**product_fields(category.id))

        page = await catalog_service.list_products(build_product_query({"minPrice": "abc"}))

        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0

    @pytest.mark.asyncio
    async def test_featured_products_limit(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        for index in range(4):
            await catalog_service.create_product(**product_fields(category.id, sku=f"F{index}", featured=True))
        await catalog_service.create_product(**product_fields(category.id, sku="N"))

        assert len(await catalog_service.featured_products()) == 4
        assert len(await catalog_service.featured_products(limit=2)) == 2

    @pytest.mark.asyncio
    async def test_on_sale_requires_compare_at_price(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        await catalog_service.create_product(
            **product_fields(category.id, sku="D", on_sale=True, compare_at_price=15.0)
        )
        await catalog_service.create_product(**product_fields(category.id, sku="Z", on_sale=True, compare_at_price=0.0))
        await catalog_service.create_product(**product_fields(category.id, sku="X", on_sale=True))

        on_sale = await catalog_service.on_sale_products()

        assert [d.product.sku for d in on_sale] == ["D"]

    @pytest.mark.asyncio
    async def test_dangling_category_joins_as_none(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        detail = await catalog_service.create_product(**product_fields(category.id))
        await category_service.delete_category(category.id)

        fetched = await catalog_service.get_product(detail.product.id)

        assert fetched.category is None
        assert fetched.product.category_id == category.id


class TestUpdateProduct:
    """Tests for CatalogService.update_product."""

    @pytest.mark.asyncio
    async def test_partial_update_advances_updated_at(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        updated = await catalog_service.update_product(created.product.id, {"price": 12.5})

        assert updated.product.price == 12.5
        assert updated.product.name == created.product.name
        assert updated.product.created_at == created.product.created_at
        assert updated.product.updated_at > created.product.updated_at

    @pytest.mark.asyncio
    async def test_merged_record_is_revalidated(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        with pytest.raises(ValidationError):
            await catalog_service.update_product(created.product.id, {"rating": 6})

        assert (await catalog_service.get_product(created.product.id)).product.rating == 0

    @pytest.mark.asyncio
    async def test_sku_taken_by_other_product(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        await catalog_service.create_product(**product_fields(category.id, sku="A1"))
        other = await catalog_service.create_product(**product_fields(category.id, sku="B2"))

        with pytest.raises(DuplicateSkuError):
            await catalog_service.update_product(other.product.id, {"sku": "A1"})

    @pytest.mark.asyncio
    async def test_keeping_own_sku_is_allowed(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id, sku="A1"))

        updated = await catalog_service.update_product(created.product.id, {"sku": "A1", "brand": "Globex"})

        assert updated.product.brand == "Globex"

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        with pytest.raises(UnknownCategoryError):
            await catalog_service.update_product(created.product.id, {"category_id": "missing"})

    @pytest.mark.asyncio
    async def test_read_only_field_rejected(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        with pytest.raises(ValidationError):
            await catalog_service.update_product(created.product.id, {"created_at": None})

    @pytest.mark.asyncio
    async def test_missing_product(self, catalog_service: CatalogService) -> None:
        with pytest.raises(ProductNotFoundError):
            await catalog_service.update_product("missing", {"price": 1.0})


class TestDeleteProduct:
    """Tests for CatalogService.delete_product."""

    @pytest.mark.asyncio
    async def test_delete_then_get_fails(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        await catalog_service.delete_product(created.product.id)

        with pytest.raises(ProductNotFoundError):
            await catalog_service.get_product(created.product.id)
        with pytest.raises(ProductNotFoundError):
            await catalog_service.delete_product(created.product.id)


class TestDecrementInventory:
    """Tests for CatalogService.decrement_inventory."""

    @pytest.mark.asyncio
    async def test_decrement_then_insufficient(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id, inventory=5))
        product_id = created.product.id

        updated = await catalog_service.decrement_inventory(product_id, 3)
        assert updated.inventory == 2
        assert updated.updated_at > created.product.updated_at

        with pytest.raises(InsufficientInventoryError) as exc_info:
            await catalog_service.decrement_inventory(product_id, 3)

        assert exc_info.value.message == "Not enough inventory"
        assert exc_info.value.status_code is None
        assert exc_info.value.details["available"] == 2
        assert (await catalog_service.get_product(product_id)).product.inventory == 2

    @pytest.mark.asyncio
    async def test_zero_quantity_is_allowed(
        self, catalog_service: CatalogService, category_service: CategoryService
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id, inventory=0))

        updated = await catalog_service.decrement_inventory(created.product.id, 0)

        assert updated.inventory == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [-1, 1.5, True])
    async def test_invalid_quantity(
        self, catalog_service: CatalogService, category_service: CategoryService, quantity
    ) -> None:
        category = await _category(category_service)
        created = await catalog_service.create_product(**product_fields(category.id))

        with pytest.raises(ValidationError):
            await catalog_service.decrement_inventory(created.product.id, quantity)

    @pytest.mark.asyncio
    async def test_missing_product(self, catalog_service: CatalogService) -> None:
        with pytest.raises(ProductNotFoundError):
            await catalog_service.decrement_inventory("missing", 1)


class TestCategoryService:
    """Tests for CategoryService."""

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, category_service: CategoryService) -> None:
        await _category(category_service, "audio")

        with pytest.raises(DuplicateSlugError):
            await _category(category_service, "Audio")

    @pytest.mark.asyncio
    async def test_unknown_parent(self, category_service: CategoryService) -> None:
        with pytest.raises(UnknownParentCategoryError):
            await _category(category_service, "audio", parent_category_id="missing")

    @pytest.mark.asyncio
    async def test_nested_category(self, category_service: CategoryService) -> None:
        parent = await _category(category_service, "electronics")
        child = await _category(category_service, "audio", parent_category_id=parent.id)

        assert child.parent_category_id == parent.id

    @pytest.mark.asyncio
    async def test_update(self, category_service: CategoryService) -> None:
        category = await _category(category_service, "audio")

        updated = await category_service.update_category(category.id, {"name": "Sound", "order": 3})

        assert updated.name == "Sound"
        assert updated.order == 3
        assert updated.slug == "audio"

    @pytest.mark.asyncio
    async def test_parent_cannot_be_a_child(self, category_service: CategoryService) -> None:
        parent = await _category(category_service, "electronics")
        child = await _category(category_service, "audio", parent_category_id=parent.id)

        with pytest.raises(ValidationError):
            await category_service.update_category(parent.id, {"parent_category_id": child.id})

        assert (await category_service.get_category(parent.id)).parent_category_id is None

    @pytest.mark.asyncio
    async def test_parent_cannot_be_a_deeper_descendant(self, category_service: CategoryService) -> None:
        root = await _category(category_service, "electronics")
        middle = await _category(category_service, "audio", parent_category_id=root.id)
        leaf = await _category(category_service, "headphones", parent_category_id=middle.id)

        with pytest.raises(ValidationError):
            await category_service.update_category(root.id, {"parent_category_id": leaf.id})

    @pytest.mark.asyncio
    async def test_reparent_under_sibling_branch(self, category_service: CategoryService) -> None:
        root = await _category(category_service, "electronics")
        audio = await _category(category_service, "audio", parent_category_id=root.id)
        video = await _category(category_service, "video", parent_category_id=root.id)

        moved = await category_service.update_category(video.id, {"parent_category_id": audio.id})

        assert moved.parent_category_id == audio.id

    @pytest.mark.asyncio
    async def test_get_missing(self, category_service: CategoryService) -> None:
        with pytest.raises(CategoryNotFoundError):
            await category_service.get_category("missing")

    @pytest.mark.asyncio
    async def test_restrict_policy_blocks_referenced_delete(
        self, catalog_service: CatalogService, product_repo, category_repo
    ) -> None:
        restricted = CategoryService(category_repo, product_repo, delete_policy="restrict")
        category = await _category(restricted, "audio")
        await catalog_service.create_product(**product_fields(category.id))

        with pytest.raises(CategoryInUseError):
            await restricted.delete_category(category.id)

        assert (await restricted.get_category(category.id)).slug == "audio"

    @pytest.mark.asyncio
    async def test_restrict_policy_allows_unreferenced_delete(self, product_repo, category_repo) -> None:
        restricted = CategoryService(category_repo, product_repo, delete_policy="restrict")
        category = await _category(restricted, "audio")

        await restricted.delete_category(category.id)

        with pytest.raises(CategoryNotFoundError):
            await restricted.get_category(category.id)


class TestMonotonicClock:
    """Tests for MonotonicClock."""

    def test_readings_strictly_increase(self) -> None:
        clock = MonotonicClock()
        readings = [clock.now() for _ in range(100)]

        assert all(later > earlier for earlier, later in zip(readings, readings[1:]))
