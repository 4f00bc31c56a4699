"""Product API endpoints.

Public catalog browsing plus admin-only product maintenance.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status

from storefront.api.auth import AdminDep
from storefront.api.deps import CatalogServiceDep
from storefront.api.schemas import (
    CategoryRefSchema,
    ErrorResponse,
    MessageResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
    SpecificationSchema,
)
from storefront.catalog.entities import ProductDetail
from storefront.catalog.query import build_product_query, parse_highlight_limit
from storefront.infrastructure.config import settings

router = APIRouter(prefix="/api/products", tags=["Products"])

OptionalParam = Annotated[str | None, Query()]


# ============================================================================
# Converters
# ============================================================================


def product_to_response(detail: ProductDetail) -> ProductResponse:
    """Convert a joined product to its response schema."""
    product = detail.product
    category = detail.category
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        compare_at_price=product.compare_at_price,
        image_url=product.image_url,
        images=list(product.images),
        category=(
            CategoryRefSchema(id=category.id, name=category.name, slug=category.slug)
            if category
            else None
        ),
        brand=product.brand,
        sku=product.sku,
        inventory=product.inventory,
        in_stock=product.in_stock,
        specifications=[
            SpecificationSchema(name=spec.name, value=spec.value)
            for spec in product.specifications
        ],
        rating=product.rating,
        review_count=product.review_count,
        free_shipping=product.free_shipping,
        featured=product.featured,
        on_sale=product.on_sale,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


# ============================================================================
# Public endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="Filter, sort and paginate the catalog.",
)
async def list_products(
    service: CatalogServiceDep,
    category: OptionalParam = None,
    brand: OptionalParam = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
    featured: OptionalParam = None,
    on_sale: Annotated[str | None, Query(alias="onSale")] = None,
    in_stock: Annotated[str | None, Query(alias="inStock")] = None,
    sort: Annotated[
        str | None,
        Query(description="price-asc, price-desc, newest or rating; newest first otherwise"),
    ] = None,
    limit: OptionalParam = None,
    page: OptionalParam = None,
) -> ProductListResponse:
    """List products.

    Parameters stay raw strings: the query builder decides how each one
    is interpreted (e.g. only featured=true filters).
    """
    raw = {
        "category": category,
        "brand": brand,
        "minPrice": min_price,
        "maxPrice": max_price,
        "featured": featured,
        "onSale": on_sale,
        "inStock": in_stock,
        "sort": sort,
        "limit": limit,
        "page": page,
    }
    query = build_product_query(
        {key: value for key, value in raw.items() if value is not None},
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    result = await service.list_products(query)

    return ProductListResponse(
        products=[product_to_response(item) for item in result.items],
        page=result.page,
        pages=result.total_pages,
        total_products=result.total,
    )


@router.get("/featured", response_model=list[ProductResponse], summary="Featured products")
async def featured_products(
    service: CatalogServiceDep,
    limit: OptionalParam = None,
) -> list[ProductResponse]:
    """List featured products."""
    products = await service.featured_products(
        parse_highlight_limit(limit, settings.default_highlight_limit, settings.max_page_size)
    )
    return [product_to_response(item) for item in products]


@router.get("/on-sale", response_model=list[ProductResponse], summary="On-sale products")
async def on_sale_products(
    service: CatalogServiceDep,
    limit: OptionalParam = None,
) -> list[ProductResponse]:
    """List on-sale products that have a compare-at price."""
    products = await service.on_sale_products(
        parse_highlight_limit(limit, settings.default_highlight_limit, settings.max_page_size)
    )
    return [product_to_response(item) for item in products]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product",
)
async def get_product(product_id: str, service: CatalogServiceDep) -> ProductResponse:
    """Get a product by ID."""
    return product_to_response(await service.get_product(product_id))


# ============================================================================
# Admin endpoints
# ============================================================================


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
    summary="Create product",
)
async def create_product(
    payload: ProductCreateRequest,
    _: AdminDep,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Create a product. Rejected if the SKU is already used."""
    detail = await service.create_product(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        compare_at_price=payload.compare_at_price,
        image_url=payload.image_url,
        images=payload.images,
        category_id=payload.category,
        brand=payload.brand,
        sku=payload.sku,
        inventory=payload.inventory,
        specifications=[spec.model_dump() for spec in payload.specifications or []],
        free_shipping=payload.free_shipping,
        featured=payload.featured,
        on_sale=payload.on_sale,
    )
    return product_to_response(detail)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update product",
)
async def update_product(
    product_id: str,
    payload: ProductUpdateRequest,
    _: AdminDep,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Apply the supplied fields to a product."""
    changes = payload.model_dump(exclude_unset=True)
    if "category" in changes:
        changes["category_id"] = changes.pop("category")
    return product_to_response(await service.update_product(product_id, changes))


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Delete product",
)
async def delete_product(
    product_id: str,
    _: AdminDep,
    service: CatalogServiceDep,
) -> MessageResponse:
    """Hard-delete a product."""
    await service.delete_product(product_id)
    return MessageResponse(message="Product removed")
