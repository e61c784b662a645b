"""
==============================================================================
Database Initialization Tests
==============================================================================

Tests for fallback bootstrap and demo seeding.

==============================================================================
"""

from sqlalchemy.orm import Session

from productmanager.db.init_db import DEMO_PRODUCTS, DatabaseInitializer
from productmanager.db.models import Category, Product


class TestDatabaseInitializer:
    """Tests for DatabaseInitializer against the test session."""

    def test_verify_tables(self, db: Session):
        assert DatabaseInitializer(session=db).verify_tables() is True

    def test_ensure_fallback_is_idempotent(self, db: Session):
        """Test bootstrapping twice leaves one fallback row."""
        initializer = DatabaseInitializer(session=db)

        first = initializer.ensure_fallback_category()
        second = initializer.ensure_fallback_category()

        assert first.id == second.id
        assert db.query(Category).filter(Category.name == "Other").count() == 1

    def test_seed_demo_data(self, db: Session, assert_consistent):
        """Test the demo catalog goes through the product service."""
        products = DatabaseInitializer(session=db).seed_demo_data()

        assert len(products) == len(DEMO_PRODUCTS)
        gift_card = next(p for p in products if p.name == "Gift card")
        assert gift_card.category_names == ["Other"]
        assert_consistent()

    def test_seed_skips_non_empty_catalog(self, db: Session):
        """Test seeding a second time does nothing."""
        initializer = DatabaseInitializer(session=db)
        initializer.seed_demo_data()

        assert initializer.seed_demo_data() == []
        assert db.query(Product).count() == len(DEMO_PRODUCTS)
