"""
==============================================================================
Catalog Bootstrap Module
==============================================================================

Brings a database up to a usable catalog on startup.

Steps performed by ``init_db()``:
--------------------------------
1. Create missing tables (and the SQLite directory)
2. Make sure the fallback category row exists
3. Optionally insert a demo catalog (development with SEED_DEMO_DATA=true)
4. Confirm the database answers queries

Every step is idempotent, so restarting the service is always safe.

Usage:
------
    from productmanager.db.init_db import DatabaseInitializer, init_db

    init_db()

    # Against an existing session (tests, scripts)
    DatabaseInitializer(session=session).ensure_fallback_category()

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, List, Optional

from sqlalchemy.orm import Session

from productmanager.config import get_settings
from productmanager.db.database import DatabaseManager
from productmanager.db.models import Category, Product
from productmanager.db.store import CatalogStore
from productmanager.schemas.product import ProductCreate
from productmanager.services.fallback import FallbackCategoryResolver
from productmanager.services.product_service import ProductService


# Module logger
logger = logging.getLogger(__name__)


# Small catalog used by seed_demo_data
DEMO_PRODUCTS = [
    ProductCreate(name="Bread", description="Wheat bread, 500 g", price=350, categories=["Bakery", "Grocery"]),
    ProductCreate(name="Croissant", description="Butter croissant", price=180, categories=["Bakery"]),
    ProductCreate(name="Cheddar", description="Aged cheddar cheese, 200 g", price=890, categories=["Dairy", "Grocery"]),
    ProductCreate(name="Milk", description="Whole milk, 1 l", price=290, categories=["Dairy"]),
    ProductCreate(name="Kettle", description="Electric kettle, 1.7 l", price=4999, categories=["Kitchen"]),
    ProductCreate(name="Gift card", description="Store gift card", price=2500, categories=[]),
]


class DatabaseInitializer:
    """
    Database initialization manager.

    Attributes:
        _db_manager: DatabaseManager instance
        _settings: Application settings
        _session_override: Externally managed session (tests, scripts)

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()  # Full setup
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        """
        Initialize the database initializer.

        Args:
            db_manager: Optional DatabaseManager instance (creates new if None)
            session: Optional existing session (creates new if None)
        """
        self._db_manager = db_manager or DatabaseManager()
        self._settings = get_settings()
        self._session_override = session

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        """The external session if one was given, otherwise a scoped one."""
        if self._session_override is not None:
            yield self._session_override
            return

        with self._db_manager.session_scope() as session:
            yield session

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """Create missing tables (and the SQLite directory) from the models."""
        logger.info("Creating database tables...")
        self._settings.ensure_directories()
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def verify_tables(self) -> bool:
        """
        Check that the catalog tables can be queried.

        Returns:
            True if both tables answer a query
        """
        try:
            with self._session() as session:
                session.query(Product.id).first()
                session.query(Category.id).first()
        except Exception as e:
            logger.error(f"Table verification failed: {e}")
            return False

        logger.debug("Database tables verified successfully")
        return True

    # =========================================================================
    # CATALOG BOOTSTRAP
    # =========================================================================

    def ensure_fallback_category(self) -> Category:
        """
        Create the fallback category if it doesn't exist yet.

        Returns:
            The fallback Category
        """
        with self._session() as session:
            store = CatalogStore(session)
            with store.transaction():
                category = FallbackCategoryResolver(store).ensure_fallback()

        logger.info(f"Fallback category ready: {category.name} (id={category.id})")
        return category

    def seed_demo_data(self) -> List[Product]:
        """
        Insert the demo catalog through the product service.

        Only runs in development, and only on an empty catalog.

        Returns:
            Created products (empty if nothing was seeded)
        """
        if not self._settings.is_development:
            logger.error("Demo data can only be seeded in development!")
            raise RuntimeError("Demo data seeding only allowed in development")

        with self._session() as session:
            service = ProductService(session)
            if service.store.count_products() > 0:
                logger.info("Catalog not empty, skipping demo data")
                return []

            products = service.add_products(DEMO_PRODUCTS)

        logger.info(f"✅ Seeded {len(products)} demo products")
        return products

    # =========================================================================
    # INITIALIZATION METHODS
    # =========================================================================

    def initialize(self) -> None:
        """Run every bootstrap step in order."""
        logger.info("🗄️ Bootstrapping catalog database...")

        self.create_tables()
        self.ensure_fallback_category()

        if self._settings.seed_demo_data and self._settings.is_development:
            self.seed_demo_data()

        if self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")

        logger.info("✅ Catalog database ready")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> None:
    """Bootstrap the configured database (called from the app lifespan)."""
    DatabaseInitializer().initialize()
