"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, service and invariant-check fixtures.

==============================================================================
"""

import os

# Must be set before the application (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"

import pytest
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from productmanager.main import app
from productmanager.db.database import Base, enable_sqlite_foreign_keys, get_db
from productmanager.db.models import Category, Product, product_categories
from productmanager.db.store import CatalogStore
from productmanager.services.category_service import CategoryService
from productmanager.services.product_service import ProductService
from productmanager.websockets.broker import get_broker


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)

TestingSessionLocal = sessionmaker(
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fresh_broker() -> Generator[None, None, None]:
    """Give every test its own topic broker."""
    get_broker.cache_clear()
    yield
    get_broker.cache_clear()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def store(db: Session) -> CatalogStore:
    return CatalogStore(db)


@pytest.fixture
def product_service(db: Session) -> ProductService:
    return ProductService(db)


@pytest.fixture
def category_service(db: Session) -> CategoryService:
    return CategoryService(db)


# ============================================================================
# INVARIANT FIXTURES
# ============================================================================

@pytest.fixture
def assert_consistent(db: Session) -> Callable[[], None]:
    """
    Check the catalog invariants against freshly loaded rows.

    - every product has at least one category
    - product.categories and category.products agree on every pair
    - the in-memory edges match the join table
    """
    def check() -> None:
        db.expire_all()
        products = db.query(Product).all()
        categories = db.query(Category).all()

        for product in products:
            assert product.categories, f"{product.name} has no category"
            for category in product.categories:
                assert product in category.products

        for category in categories:
            for product in category.products:
                assert category in product.categories

        join_rows = db.execute(
            select(func.count()).select_from(product_categories)
        ).scalar()
        assert join_rows == sum(len(p.categories) for p in products)

    return check
