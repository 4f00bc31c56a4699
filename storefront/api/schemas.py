"""API schemas for the Storefront API.

Pydantic models for request/response validation and serialization.
Wire names are camelCase; requests also accept snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(CamelModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    message: str = Field(..., description="Human-readable error message")
    request_id: str | None = Field(default=None, description="Request ID for correlation")
    stack: str | None = Field(default=None, description="Traceback, debug mode only")


class MessageResponse(CamelModel):
    """Plain confirmation message."""

    message: str


# ============================================================================
# Product Schemas
# ============================================================================


class SpecificationSchema(CamelModel):
    """One (name, value) specification line."""

    name: str = ""
    value: str = ""


class CategoryRefSchema(CamelModel):
    """Category joined onto a product."""

    id: str
    name: str
    slug: str


class ProductCreateRequest(CamelModel):
    """Request to create a product."""

    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field(..., min_length=1, description="Product description")
    price: float = Field(..., ge=0, description="Selling price")
    compare_at_price: float | None = Field(default=None, ge=0, description="Reference price")
    image_url: str = Field(..., min_length=1, description="Primary image reference")
    images: list[str] | None = Field(default=None, description="Additional image references")
    category: str = Field(..., min_length=1, description="Category id")
    brand: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1, description="Globally unique SKU")
    inventory: int = Field(default=0, ge=0, description="Units available")
    specifications: list[SpecificationSchema] | None = None
    free_shipping: bool | None = None
    featured: bool | None = None
    on_sale: bool | None = None


class ProductUpdateRequest(CamelModel):
    """Partial product update. Only supplied fields are changed."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    compare_at_price: float | None = Field(default=None, ge=0)
    image_url: str | None = None
    images: list[str] | None = None
    category: str | None = None
    brand: str | None = None
    sku: str | None = None
    inventory: int | None = Field(default=None, ge=0)
    specifications: list[SpecificationSchema] | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    free_shipping: bool | None = None
    featured: bool | None = None
    on_sale: bool | None = None


class ProductResponse(CamelModel):
    """Product with its category joined."""

    id: str
    name: str
    description: str
    price: float
    compare_at_price: float | None = None
    image_url: str
    images: list[str]
    category: CategoryRefSchema | None
    brand: str
    sku: str
    inventory: int
    in_stock: bool
    specifications: list[SpecificationSchema]
    rating: float
    review_count: int
    free_shipping: bool
    featured: bool
    on_sale: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(CamelModel):
    """One page of the product listing."""

    products: list[ProductResponse]
    page: int = Field(..., description="Current page number")
    pages: int = Field(..., description="Total number of pages")
    total_products: int = Field(..., description="Total number of matching products")


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryCreateRequest(CamelModel):
    """Request to create a category."""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, description="Unique key, stored lowercase")
    description: str | None = None
    image_url: str | None = None
    parent_category: str | None = Field(default=None, description="Parent category id")
    active: bool = True
    order: int = 0


class CategoryUpdateRequest(CamelModel):
    """Partial category update."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None
    image_url: str | None = None
    parent_category: str | None = None
    active: bool | None = None
    order: int | None = None


class CategoryResponse(CamelModel):
    """Category representation."""

    id: str
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    parent_category: str | None = None
    active: bool
    order: int


# ============================================================================
# Health Schemas
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
