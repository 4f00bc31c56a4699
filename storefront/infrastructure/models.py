"""SQLAlchemy models for the catalog tables.

Products and categories are stored as flat rows; the ordered image and
specification lists live in JSONB columns so a product stays one record.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from storefront.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CategoryModel(Base):
    """Category row.

    Attributes:
        id: Category identifier (UUID).
        name: Display name.
        slug: Unique lowercase key.
        description: Optional description.
        image_url: Optional image reference.
        parent_category_id: Optional parent category (no FK, may dangle).
        active: Whether the category is shown.
        order: Display order.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    parent_category_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return f"<CategoryModel(id={self.id}, slug={self.slug})>"


class ProductModel(Base):
    """Product row.

    Attributes:
        id: Product identifier (UUID).
        sku: Globally unique Stock Keeping Unit.
        category_id: Referenced category (no FK so category deletion policy
            stays an application setting).
        images: Ordered list of additional image references.
        specifications: Ordered list of {"name", "value"} pairs.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    compare_at_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    images: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    category_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    brand: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    specifications: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    free_shipping: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    on_sale: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductModel(id={self.id}, sku={self.sku}, name={self.name[:30]}...)>"
