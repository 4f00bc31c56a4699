"""Domain layer.

Business-rule errors shared by the catalog and the API layer.
"""

from storefront.domain.exceptions import (
    CategoryInUseError,
    CategoryNotFoundError,
    DomainError,
    DuplicateSkuError,
    DuplicateSlugError,
    InsufficientInventoryError,
    ProductNotFoundError,
    UnknownCategoryError,
    UnknownParentCategoryError,
    ValidationError,
)

__all__ = [
    "CategoryInUseError",
    "CategoryNotFoundError",
    "DomainError",
    "DuplicateSkuError",
    "DuplicateSlugError",
    "InsufficientInventoryError",
    "ProductNotFoundError",
    "UnknownCategoryError",
    "UnknownParentCategoryError",
    "ValidationError",
]
