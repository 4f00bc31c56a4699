"""Catalog entities.

Plain dataclasses for products and categories. Field constraints are
checked on construction, so any merged or replaced record is validated
the same way a freshly created one is.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Self

from storefront.domain.exceptions import ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: Any, field_name: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} is required", field=field_name)


def _require_number(value: Any, field_name: str, minimum: float, maximum: float | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if value < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum:g}", field=field_name)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum:g}", field=field_name)


def _require_count(value: Any, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if value < 0:
        raise ValidationError(f"{field_name} must be at least 0", field=field_name)


def _require_flag(value: Any, field_name: str) -> None:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean", field=field_name)


# ============================================================================
# Product
# ============================================================================


@dataclass(frozen=True)
class Specification:
    """A single (name, value) product specification line."""

    name: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from a stored {"name", "value"} mapping."""
        return cls(name=data.get("name") or "", value=data.get("value") or "")

    def to_dict(self) -> dict[str, str]:
        """Convert to a storable mapping."""
        return {"name": self.name, "value": self.value}


@dataclass
class Product:
    """Product entity in the catalog.

    Attributes:
        id: System-generated identifier.
        name: Product name (surrounding whitespace trimmed).
        description: Product description.
        price: Selling price, never negative.
        image_url: Primary image reference.
        category_id: Id of the category the product belongs to.
        brand: Brand name.
        sku: Globally unique Stock Keeping Unit.
        inventory: Units available, never negative.
        compare_at_price: Optional reference price shown next to a discount.
        images: Ordered additional image references.
        specifications: Ordered (name, value) specification pairs.
        rating: Average rating between 0 and 5.
        review_count: Number of reviews.
        free_shipping: Free shipping flag.
        featured: Featured listing flag.
        on_sale: On-sale listing flag.
        created_at: Creation timestamp.
        updated_at: Last mutation timestamp.
    """

    id: str
    name: str
    description: str
    price: float
    image_url: str
    category_id: str
    brand: str
    sku: str
    inventory: int = 0
    compare_at_price: float | None = None
    images: list[str] = field(default_factory=list)
    specifications: list[Specification] = field(default_factory=list)
    rating: float = 0.0
    review_count: int = 0
    free_shipping: bool = False
    featured: bool = False
    on_sale: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if isinstance(self.name, str):
            self.name = self.name.strip()
        self.images = list(self.images or [])
        self.specifications = [
            spec if isinstance(spec, Specification) else Specification.from_dict(spec)
            for spec in (self.specifications or [])
        ]
        self.validate()

    def validate(self) -> None:
        """Check every field constraint.

        Raises:
            ValidationError: On the first violated constraint.
        """
        _require_text(self.name, "name")
        _require_text(self.description, "description")
        _require_number(self.price, "price", minimum=0)
        if self.compare_at_price is not None:
            _require_number(self.compare_at_price, "compareAtPrice", minimum=0)
        _require_text(self.image_url, "imageUrl")
        _require_text(self.category_id, "category")
        _require_text(self.brand, "brand")
        _require_text(self.sku, "sku")
        _require_count(self.inventory, "inventory")
        _require_number(self.rating, "rating", minimum=0, maximum=5)
        _require_count(self.review_count, "reviewCount")
        _require_flag(self.free_shipping, "freeShipping")
        _require_flag(self.featured, "featured")
        _require_flag(self.on_sale, "onSale")
        if not all(isinstance(image, str) for image in self.images):
            raise ValidationError("images must be strings", field="images")

    @property
    def in_stock(self) -> bool:
        """Whether at least one unit is available."""
        return self.inventory > 0

    @property
    def has_discount(self) -> bool:
        """Whether a positive compare-at price is set."""
        return self.compare_at_price is not None and self.compare_at_price > 0

    def copy_with(self, **changes: Any) -> "Product":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)


# ============================================================================
# Category
# ============================================================================


@dataclass(frozen=True)
class CategoryRef:
    """The subset of a category joined onto product responses."""

    id: str
    name: str
    slug: str


@dataclass
class Category:
    """Product category, optionally nested under a parent category.

    Attributes:
        id: System-generated identifier.
        name: Display name (trimmed).
        slug: Unique key, stored lowercase.
        description: Optional description.
        image_url: Optional image reference.
        parent_category_id: Optional parent; None for a root category.
        active: Whether the category is shown.
        order: Display order, lower first.
    """

    id: str
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    parent_category_id: str | None = None
    active: bool = True
    order: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.name, str):
            self.name = self.name.strip()
        if isinstance(self.slug, str):
            self.slug = self.slug.strip().lower()
        self.validate()

    def validate(self) -> None:
        """Check every field constraint.

        Raises:
            ValidationError: On the first violated constraint.
        """
        _require_text(self.name, "name")
        _require_text(self.slug, "slug")
        _require_flag(self.active, "active")
        if isinstance(self.order, bool) or not isinstance(self.order, int):
            raise ValidationError("order must be an integer", field="order")
        if self.parent_category_id is not None and self.parent_category_id == self.id:
            raise ValidationError("A category cannot be its own parent", field="parentCategory")

    def ref(self) -> CategoryRef:
        """Return the joined {id, name, slug} view."""
        return CategoryRef(id=self.id, name=self.name, slug=self.slug)

    def copy_with(self, **changes: Any) -> "Category":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass
class ProductDetail:
    """A product with its category joined."""

    product: Product
    category: CategoryRef | None
