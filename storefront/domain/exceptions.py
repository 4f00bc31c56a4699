"""Domain exceptions.

All domain-level errors that represent business rule violations.
Each error may carry the HTTP status it should surface with; errors
without one fall through to the generic 500 response.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the API layer.
    """

    status_code: int | None = None

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
            status_code: HTTP status override for this instance.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when a record violates a field constraint."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Description of the violated constraint.
            field: Name of the offending field, if any.
        """
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


# ============================================================================
# Product Errors
# ============================================================================


class ProductError(DomainError):
    """Base class for product-related errors."""

    pass


class ProductNotFoundError(ProductError):
    """Raised when a product id does not resolve to a record."""

    status_code = 404

    def __init__(self, product_id: str) -> None:
        """Initialize product not found error.

        Args:
            product_id: The id that was looked up.
        """
        super().__init__("Product not found", details={"product_id": product_id})


class DuplicateSkuError(ProductError):
    """Raised when a write would create a second product with the same SKU."""

    status_code = 400

    def __init__(self, sku: str) -> None:
        """Initialize duplicate SKU error.

        Args:
            sku: The colliding SKU.
        """
        super().__init__("Product with this SKU already exists", details={"sku": sku})


class InsufficientInventoryError(ProductError):
    """Raised when a decrement exceeds the available stock.

    Carries no status of its own, so it surfaces as a 500 unless the
    caller sets one.
    """

    def __init__(self, product_id: str, requested: int, available: int | None = None) -> None:
        """Initialize insufficient inventory error.

        Args:
            product_id: Product being decremented.
            requested: Requested quantity.
            available: Inventory at the time of the failed decrement.
        """
        super().__init__(
            "Not enough inventory",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


# ============================================================================
# Category Errors
# ============================================================================


class CategoryError(DomainError):
    """Base class for category-related errors."""

    pass


class CategoryNotFoundError(CategoryError):
    """Raised when a category id does not resolve to a record."""

    status_code = 404

    def __init__(self, category_id: str) -> None:
        """Initialize category not found error.

        Args:
            category_id: The id that was looked up.
        """
        super().__init__("Category not found", details={"category_id": category_id})


class UnknownCategoryError(CategoryError):
    """Raised when a product references a category that does not exist."""

    status_code = 400

    def __init__(self, category_id: str) -> None:
        """Initialize unknown category error.

        Args:
            category_id: The dangling category reference.
        """
        super().__init__("Category not found", details={"category_id": category_id})


class UnknownParentCategoryError(CategoryError):
    """Raised when a category's parent reference does not resolve."""

    status_code = 400

    def __init__(self, parent_id: str) -> None:
        """Initialize unknown parent error.

        Args:
            parent_id: The dangling parent reference.
        """
        super().__init__("Parent category not found", details={"parent_category": parent_id})


class DuplicateSlugError(CategoryError):
    """Raised when a write would create a second category with the same slug."""

    status_code = 400

    def __init__(self, slug: str) -> None:
        """Initialize duplicate slug error.

        Args:
            slug: The colliding slug.
        """
        super().__init__("Category with this slug already exists", details={"slug": slug})


class CategoryInUseError(CategoryError):
    """Raised when deleting a category that products still reference."""

    status_code = 400

    def __init__(self, category_id: str, product_count: int) -> None:
        """Initialize category in use error.

        Args:
            category_id: Category being deleted.
            product_count: Number of products referencing it.
        """
        super().__init__(
            "Category is referenced by products",
            details={"category_id": category_id, "product_count": product_count},
        )
