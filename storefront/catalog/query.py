"""Product list query building.

Turns the flat, string-typed query parameters of the product listing
into a filter, a sort order and a page window. Nothing here touches a
store and nothing here rejects input: malformed numbers become NaN and
filter accordingly.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from storefront.catalog.entities import Product

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
DEFAULT_HIGHLIGHT_LIMIT = 8
MAX_PAGE_SIZE = 100

# PostgreSQL OFFSET is a bigint
MAX_OFFSET = 2**63 - 1

_DECIMAL = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_RADIX = re.compile(r"0(?:[xX](?P<hex>[0-9a-fA-F]+)|[oO](?P<oct>[0-7]+)|[bB](?P<bin>[01]+))")


# ============================================================================
# Parsing helpers
# ============================================================================


def parse_number(raw: str) -> float:
    """Coerce a query string to a number the permissive way.

    Blank strings are 0. Decimal literals (with optional sign, fraction
    and exponent), a signed "Infinity" and unsigned 0x/0o/0b integers
    parse; anything else, including "inf", "nan" and "1_000", is NaN.

    Args:
        raw: Raw query parameter value.

    Returns:
        Parsed float (possibly NaN or infinite).
    """
    text = raw.strip()
    if not text:
        return 0.0

    if _DECIMAL.fullmatch(text):
        return float(text)

    radix = _RADIX.fullmatch(text)
    if radix:
        if radix["hex"]:
            return float(int(radix["hex"], 16))
        if radix["oct"]:
            return float(int(radix["oct"], 8))
        return float(int(radix["bin"], 2))

    return math.nan


def _parse_positive_int(raw: str | None, default: int, maximum: int | None = None) -> int:
    if raw is None:
        return default
    value = parse_number(raw)
    if not math.isfinite(value) or value < 1:
        return default
    if maximum is not None and value > maximum:
        return maximum
    return int(value)


def parse_highlight_limit(
    raw: str | None,
    default: int = DEFAULT_HIGHLIGHT_LIMIT,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    """Parse the `limit` of the featured / on-sale listings.

    Args:
        raw: Raw query parameter value, or None when absent.
        default: Size used for missing, non-numeric or non-positive values.
        maximum: Largest size handed out.

    Returns:
        Listing size.
    """
    return _parse_positive_int(raw, default, maximum)


def _flag(raw: str | None) -> bool | None:
    # Only the literal "true" activates the filter; "false" is *no* filter.
    return True if raw == "true" else None


# ============================================================================
# Query model
# ============================================================================


@dataclass
class ProductFilter:
    """Filter predicate over products.

    A None attribute means the constraint is not applied.

    Attributes:
        category_id: Exact category id.
        brand: Exact brand.
        featured: Required featured flag value.
        on_sale: Required on-sale flag value.
        min_price: Inclusive lower price bound (may be NaN).
        max_price: Inclusive upper price bound (may be NaN).
        in_stock: When True, only inventory > 0.
        discounted: When True, only compareAtPrice > 0.
    """

    category_id: str | None = None
    brand: str | None = None
    featured: bool | None = None
    on_sale: bool | None = None
    min_price: float | None = None
    max_price: float | None = None
    in_stock: bool | None = None
    discounted: bool | None = None

    def matches(self, product: Product) -> bool:
        """Evaluate the filter against one product.

        NaN bounds never match, as every comparison with NaN is false.
        """
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.brand is not None and product.brand != self.brand:
            return False
        if self.featured is not None and product.featured != self.featured:
            return False
        if self.on_sale is not None and product.on_sale != self.on_sale:
            return False
        if self.min_price is not None and not product.price >= self.min_price:
            return False
        if self.max_price is not None and not product.price <= self.max_price:
            return False
        if self.in_stock and not product.inventory > 0:
            return False
        if self.discounted and not product.has_discount:
            return False
        return True


@dataclass(frozen=True)
class SortSpec:
    """Single-key sort order."""

    field: str = "created_at"
    descending: bool = True


SORT_OPTIONS: dict[str, SortSpec] = {
    "price-asc": SortSpec("price", descending=False),
    "price-desc": SortSpec("price", descending=True),
    "newest": SortSpec("created_at", descending=True),
    "rating": SortSpec("rating", descending=True),
}

DEFAULT_SORT = SortSpec("created_at", descending=True)


def resolve_sort(token: str | None) -> SortSpec:
    """Map a sort token to a sort order, newest first when unrecognized."""
    if token is None:
        return DEFAULT_SORT
    return SORT_OPTIONS.get(token, DEFAULT_SORT)


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: Items on this page.
        total: Total matching count.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return math.ceil(self.total / self.page_size)


@dataclass
class ProductQuery:
    """Complete listing request: what to match, how to order, which page."""

    filter: ProductFilter = field(default_factory=ProductFilter)
    sort: SortSpec = DEFAULT_SORT
    pagination: PaginationParams = field(default_factory=PaginationParams)


def build_product_query(
    params: Mapping[str, str],
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> ProductQuery:
    """Build a listing query from raw query parameters.

    Args:
        params: Query parameters keyed by their wire names (category, brand,
            minPrice, maxPrice, featured, onSale, inStock, sort, limit, page).
        default_page_size: Page size when `limit` is missing or unusable.
        max_page_size: Upper bound for `limit`; larger values are clamped.

    Returns:
        The structured query.
    """
    product_filter = ProductFilter(
        category_id=params.get("category") or None,
        brand=params.get("brand") or None,
        featured=_flag(params.get("featured")),
        on_sale=_flag(params.get("onSale")),
        in_stock=_flag(params.get("inStock")),
    )

    min_price = params.get("minPrice")
    if min_price:
        product_filter.min_price = parse_number(min_price)
    max_price = params.get("maxPrice")
    if max_price:
        product_filter.max_price = parse_number(max_price)

    page_size = _parse_positive_int(params.get("limit"), default_page_size, max_page_size)
    # Pages past this one would need an offset the store cannot express
    last_page = MAX_OFFSET // page_size + 1

    return ProductQuery(
        filter=product_filter,
        sort=resolve_sort(params.get("sort")),
        pagination=PaginationParams(
            page=_parse_positive_int(params.get("page"), 1, last_page),
            page_size=page_size,
        ),
    )
