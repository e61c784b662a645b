"""
==============================================================================
Search Filter Tests
==============================================================================

Tests for filter composition (in memory) and its SQL compilation.

==============================================================================
"""

from datetime import datetime, timedelta, timezone

import pytest

from productmanager.core.exceptions import AppException
from productmanager.db.models import Category, Product
from productmanager.db.store import CatalogStore
from productmanager.schemas.product import ProductCreate, ProductSearchCriteria
from productmanager.search.filters import (
    ClauseKind,
    FilterClause,
    SortDirection,
    SortSpec,
    build_filter,
)
from productmanager.services.product_service import ProductService


def make_product(name: str, price: int, *categories: str, description: str = "item") -> Product:
    product = Product(name=name, description=description, price=price)
    product.add_categories(Category(name=c) for c in categories)
    return product


class TestBuildFilter:
    """Tests for build_filter."""

    def test_no_criteria_means_no_filter(self):
        """Test empty criteria yields None, not a vacuous filter."""
        assert build_filter(ProductSearchCriteria()) is None

    def test_blank_strings_are_ignored(self):
        """Test blank text criteria count as absent."""
        assert build_filter(ProductSearchCriteria(name="  ", categories=[" "])) is None

    def test_each_scalar_gets_its_own_group(self):
        """Test every present scalar field contributes one single-clause group."""
        product_filter = build_filter(ProductSearchCriteria(name="e", price_min=10, price_max=20))

        assert product_filter.groups == (
            (FilterClause(ClauseKind.NAME_CONTAINS, "e"),),
            (FilterClause(ClauseKind.PRICE_AT_LEAST, 10),),
            (FilterClause(ClauseKind.PRICE_AT_MOST, 20),),
        )

    def test_categories_form_one_or_group(self):
        """Test category names become a single OR-group."""
        product_filter = build_filter(ProductSearchCriteria(categories=["Grocery", "A", "Grocery"]))

        assert product_filter.groups == ((
            FilterClause(ClauseKind.IN_CATEGORY, "A"),
            FilterClause(ClauseKind.IN_CATEGORY, "Grocery"),
        ),)

    def test_union_then_intersection(self):
        """Test name AND price AND (category A OR Grocery)."""
        product_filter = build_filter(ProductSearchCriteria(
            name="e", price_max=1000, categories=["A", "Grocery"]
        ))

        assert product_filter.matches(make_product("Bread", 50, "Grocery"))
        assert product_filter.matches(make_product("CHEESE", 1000, "A", "Dairy"))
        assert not product_filter.matches(make_product("Bread", 1001, "Grocery"))
        assert not product_filter.matches(make_product("Milk", 50, "Grocery"))
        assert not product_filter.matches(make_product("Bread", 50, "Dairy"))

    def test_ranges_are_inclusive(self):
        """Test both price bounds are inclusive."""
        product_filter = build_filter(ProductSearchCriteria(price_min=10, price_max=20))

        assert product_filter.matches(make_product("a", 10))
        assert product_filter.matches(make_product("b", 20))
        assert not product_filter.matches(make_product("c", 9))
        assert not product_filter.matches(make_product("d", 21))

    def test_date_criteria(self):
        """Test created/modified bounds compare against the timestamps."""
        product = make_product("Bread", 50)
        product.created_at = datetime(2024, 1, 10)
        product.modified_at = datetime(2024, 2, 10)

        assert build_filter(ProductSearchCriteria(
            created_after=datetime(2024, 1, 1),
            created_before=datetime(2024, 1, 10),
            modified_after=datetime(2024, 2, 10),
        )).matches(product)
        assert not build_filter(ProductSearchCriteria(
            modified_before=datetime(2024, 2, 1)
        )).matches(product)

    def test_aware_datetimes_become_naive_utc(self):
        """Test timezone-aware criteria are normalized to naive UTC."""
        criteria = ProductSearchCriteria(
            created_after=datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        )
        assert criteria.created_after == datetime(2024, 1, 1, 10)


class TestSortSpec:
    """Tests for sort parsing."""

    def test_default_is_id_ascending(self):
        """Test missing sort parameters default to id ascending."""
        sort = SortSpec.parse(None)
        assert sort.field == "id"
        assert not sort.descending

    def test_descending(self):
        """Test explicit direction."""
        assert SortSpec.parse("price", SortDirection.DESC).descending

    def test_unknown_field_rejected(self):
        """Test an unknown field raises INVALID_SORT_FIELD."""
        with pytest.raises(AppException) as exc_info:
            SortSpec.parse("password")
        assert exc_info.value.code == "INVALID_SORT_FIELD"
        assert exc_info.value.status_code == 400


class TestStoreQuery:
    """Tests for filters compiled to SQL."""

    @pytest.fixture
    def catalog(self, product_service: ProductService):
        product_service.add_products([
            ProductCreate(name="Bread", description="wheat", price=50, categories=["Grocery"]),
            ProductCreate(name="Cheese", description="cheddar", price=900, categories=["A", "Grocery"]),
            ProductCreate(name="Kettle", description="steel", price=5000, categories=["A"]),
            ProductCreate(name="Milk", description="whole", price=100, categories=["Dairy"]),
            ProductCreate(name="100%_Juice", description="orange", price=300, categories=[]),
        ])

    def test_sql_matches_in_memory_evaluation(self, catalog, store: CatalogStore):
        """Test the compiled query returns exactly the products matches() accepts."""
        product_filter = build_filter(ProductSearchCriteria(
            name="e", price_max=1000, categories=["A", "Grocery"]
        ))

        found = store.query_products(product_filter)
        expected = [p for p in store.query_products() if product_filter.matches(p)]

        assert [p.name for p in found] == ["Bread", "Cheese"]
        assert found == expected

    def test_product_in_several_listed_categories_appears_once(self, catalog, store: CatalogStore):
        """Test the category union does not duplicate rows."""
        product_filter = build_filter(ProductSearchCriteria(categories=["A", "Grocery"]))
        names = [p.name for p in store.query_products(product_filter)]
        assert names == ["Bread", "Cheese", "Kettle"]

    def test_text_search_is_case_insensitive_and_literal(self, catalog, store: CatalogStore):
        """Test LIKE wildcards in the search text are matched literally."""
        assert [p.name for p in store.query_products(build_filter(
            ProductSearchCriteria(name="CHEE")
        ))] == ["Cheese"]
        assert [p.name for p in store.query_products(build_filter(
            ProductSearchCriteria(name="%_")
        ))] == ["100%_Juice"]

    def test_sorting(self, catalog, store: CatalogStore):
        """Test sort field and direction."""
        products = store.query_products(sort=SortSpec.parse("price", SortDirection.DESC))
        assert [p.price for p in products] == [5000, 900, 300, 100, 50]

    def test_no_filter_lists_everything_by_id(self, catalog, store: CatalogStore):
        """Test no filter returns every product in id order."""
        products = store.query_products(None)
        assert [p.id for p in products] == sorted(p.id for p in products)
        assert len(products) == 5
