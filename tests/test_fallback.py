"""
==============================================================================
Fallback Category Tests
==============================================================================

Tests for the sentinel category resolver.

==============================================================================
"""

from sqlalchemy.orm import Session

from productmanager.db.models import Category, Product
from productmanager.db.store import CatalogStore
from productmanager.services.fallback import FallbackCategoryResolver


def count_named(db: Session, name: str) -> int:
    return db.query(Category).filter(Category.name == name).count()


class TestEnsureFallback:
    """Tests for lookup-or-create of the sentinel."""

    def test_repeated_calls_create_one_row(self, db: Session, store: CatalogStore):
        """Test N calls with no sentinel present create exactly one row."""
        resolver = FallbackCategoryResolver(store)

        with store.transaction():
            results = [resolver.ensure_fallback() for _ in range(5)]

        assert count_named(db, "Other") == 1
        assert all(category is results[0] for category in results)

    def test_separate_resolvers_reuse_the_row(self, db: Session, store: CatalogStore):
        """Test the sentinel is found by name, not remembered by id."""
        with store.transaction():
            first = FallbackCategoryResolver(store).ensure_fallback()
        with store.transaction():
            second = FallbackCategoryResolver(CatalogStore(db)).ensure_fallback()

        assert first.id == second.id
        assert count_named(db, "Other") == 1

    def test_existing_sentinel_with_products(self, db: Session, store: CatalogStore):
        """Test ensuring is safe when the sentinel already holds products."""
        other = Category(name="Other")
        bread = Product(name="Bread", description="wheat", price=50)
        bread.add_category(other)
        with store.transaction():
            store.save_product(bread)

        with store.transaction():
            resolved = FallbackCategoryResolver(store).ensure_fallback()

        assert resolved is other
        assert resolved.product_count == 1

    def test_custom_name(self, db: Session, store: CatalogStore):
        """Test the sentinel name can be configured."""
        resolver = FallbackCategoryResolver(store, name="Misc")
        with store.transaction():
            category = resolver.ensure_fallback()

        assert category.name == "Misc"
        assert resolver.is_fallback(category)
        assert count_named(db, "Other") == 0


class TestAttachAndRemove:
    """Tests for attaching and dropping the sentinel on a product."""

    def test_attach_if_empty(self, store: CatalogStore):
        """Test an empty product gets the sentinel."""
        resolver = FallbackCategoryResolver(store)
        bread = Product(name="Bread", description="wheat", price=50)

        assert resolver.attach_if_empty(bread) is True
        assert bread.category_names == ["Other"]

    def test_attach_skips_non_empty(self, store: CatalogStore):
        """Test a product with a category is left alone."""
        resolver = FallbackCategoryResolver(store)
        bread = Product(name="Bread", description="wheat", price=50)
        bread.add_category(Category(name="Bakery"))

        assert resolver.attach_if_empty(bread) is False
        assert bread.category_names == ["Bakery"]

    def test_remove_if_redundant(self, store: CatalogStore):
        """Test the sentinel is dropped when it is the only category."""
        resolver = FallbackCategoryResolver(store)
        bread = Product(name="Bread", description="wheat", price=50)
        resolver.attach_if_empty(bread)

        assert resolver.remove_if_redundant(bread) is True
        assert not bread.has_any_category()

    def test_remove_keeps_sentinel_next_to_real_category(self, store: CatalogStore):
        """Test nothing is removed unless the sentinel is the only category."""
        resolver = FallbackCategoryResolver(store)
        bread = Product(name="Bread", description="wheat", price=50)
        bread.add_categories([Category(name="Other"), Category(name="Bakery")])

        assert resolver.remove_if_redundant(bread) is False
        assert bread.category_names == ["Bakery", "Other"]

    def test_remove_ignores_other_single_category(self, store: CatalogStore):
        """Test a single non-sentinel category is kept."""
        resolver = FallbackCategoryResolver(store)
        bread = Product(name="Bread", description="wheat", price=50)
        bread.add_category(Category(name="Bakery"))

        assert resolver.remove_if_redundant(bread) is False
        assert bread.category_names == ["Bakery"]
