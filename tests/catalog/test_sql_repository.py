"""Tests for the SQL catalog repositories.

Statements are compiled against the PostgreSQL dialect and checked
without a database connection.
"""

import math
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from storefront.catalog.query import ProductFilter, SortSpec
from storefront.catalog.sql_repository import SqlProductRepository, decrement_statement

STAMP = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _compile(clause: Any, literal: bool = False):
    compile_kwargs = {"literal_binds": True} if literal else {}
    return clause.compile(dialect=postgresql.dialect(), compile_kwargs=compile_kwargs)


@pytest.fixture
def repo() -> SqlProductRepository:
    # Statement building never touches the session
    return SqlProductRepository(session=None)  # type: ignore[arg-type]


def _where(repo: SqlProductRepository, product_filter: ProductFilter, literal: bool = True) -> list[str]:
    return [str(_compile(condition, literal)) for condition in repo._conditions(product_filter)]


class TestFilterConditions:
    """Tests for ProductFilter to SQL translation."""

    def test_empty_filter_has_no_conditions(self, repo: SqlProductRepository) -> None:
        assert repo._conditions(ProductFilter()) == []

    @pytest.mark.parametrize("bound", ["min_price", "max_price"])
    def test_nan_bound_matches_nothing(self, repo: SqlProductRepository, bound: str) -> None:
        conditions = _where(repo, ProductFilter(**{bound: math.nan}))

        assert conditions == ["false"]

    def test_price_bounds_are_inclusive(self, repo: SqlProductRepository) -> None:
        conditions = _where(repo, ProductFilter(min_price=5.0, max_price=20.0))

        assert len(conditions) == 2
        assert conditions[0].startswith("products.price >= 5")
        assert conditions[1].startswith("products.price <= 20")

    def test_non_uuid_category_matches_nothing(self, repo: SqlProductRepository) -> None:
        assert _where(repo, ProductFilter(category_id="laptops")) == ["false"]

    def test_uuid_category_is_compared(self, repo: SqlProductRepository) -> None:
        category_id = str(uuid4())

        compiled = _compile(repo._conditions(ProductFilter(category_id=category_id))[0])

        assert str(compiled).startswith("products.category_id = ")
        assert category_id in compiled.params.values()

    def test_discounted_requires_positive_compare_at_price(self, repo: SqlProductRepository) -> None:
        conditions = _where(repo, ProductFilter(on_sale=True, discounted=True))

        assert conditions[0].startswith("products.on_sale")
        assert conditions[1].startswith("products.compare_at_price > 0")

    def test_in_stock_requires_positive_inventory(self, repo: SqlProductRepository) -> None:
        assert _where(repo, ProductFilter(in_stock=True)) == ["products.inventory > 0"]

    def test_featured_and_brand(self, repo: SqlProductRepository) -> None:
        conditions = _where(repo, ProductFilter(featured=True, brand="Acme"))

        assert conditions[0] == "products.brand = 'Acme'"
        assert conditions[1].startswith("products.featured")


class TestFindQuery:
    """Tests for the listing SELECT."""

    @pytest.mark.parametrize(
        ("sort", "order_by"),
        [
            (SortSpec("price", descending=False), "ORDER BY products.price ASC, products.id ASC"),
            (SortSpec("price", descending=True), "ORDER BY products.price DESC, products.id ASC"),
            (SortSpec("rating", descending=True), "ORDER BY products.rating DESC, products.id ASC"),
            (SortSpec("created_at", descending=True), "ORDER BY products.created_at DESC, products.id ASC"),
        ],
    )
    def test_sort_breaks_ties_by_id(self, repo: SqlProductRepository, sort: SortSpec, order_by: str) -> None:
        sql = str(_compile(repo._find_query(ProductFilter(), sort, offset=0, limit=20)))

        assert order_by in sql

    def test_unsorted_query_has_no_order_by(self, repo: SqlProductRepository) -> None:
        sql = str(_compile(repo._find_query(ProductFilter(), None, offset=0, limit=None)))

        assert "ORDER BY" not in sql
        assert "LIMIT" not in sql
        assert "OFFSET" not in sql

    def test_page_window(self, repo: SqlProductRepository) -> None:
        compiled = _compile(repo._find_query(ProductFilter(), SortSpec(), offset=40, limit=20))

        assert "LIMIT" in str(compiled)
        assert "OFFSET" in str(compiled)
        assert {20, 40} <= set(compiled.params.values())

    def test_nan_bound_reaches_where_clause(self, repo: SqlProductRepository) -> None:
        sql = str(_compile(repo._find_query(ProductFilter(max_price=math.nan), None, offset=0, limit=5)))

        assert "WHERE false" in sql


class TestDecrementStatement:
    """Tests for the single-statement conditional decrement."""

    def test_guard_is_part_of_the_update(self) -> None:
        product_id = str(uuid4())

        compiled = _compile(decrement_statement(product_id, 3, STAMP))
        sql = str(compiled)

        assert sql.startswith("UPDATE products SET")
        assert "products.inventory >= " in sql
        assert "products.id = " in sql
        assert "RETURNING" in sql
        assert product_id in compiled.params.values()
        assert 3 in compiled.params.values()
        assert STAMP in compiled.params.values()

    def test_subtracts_from_current_value(self) -> None:
        sql = str(_compile(decrement_statement(str(uuid4()), 2, STAMP)))

        assert "inventory=(products.inventory - " in sql


class TestIdentifiers:
    """Ids that are not UUIDs never reach the database."""

    @pytest.mark.asyncio
    async def test_lookups_short_circuit(self, repo: SqlProductRepository) -> None:
        assert await repo.get("not-a-uuid") is None
        assert await repo.delete("not-a-uuid") is False
        assert await repo.decrement_inventory("not-a-uuid", 1, STAMP) is None
