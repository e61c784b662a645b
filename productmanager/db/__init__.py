"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

This package provides:
- DatabaseManager: Singleton class for database connections
- ORM models: Product, Category and their join table

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SQLAlchemy ORM model classes
├── store.py      - CatalogStore data access
└── init_db.py    - DatabaseInitializer for setup

Usage:
------
    from productmanager.db import DatabaseManager, Product, Category

    db_manager = DatabaseManager()
    with db_manager.session_scope() as session:
        products = session.query(Product).all()

==============================================================================
"""

from .database import DatabaseManager, Base, get_db
from .models import Product, Category, product_categories

__all__ = [
    # Database management
    "DatabaseManager",
    "Base",
    "get_db",
    # Models
    "Product",
    "Category",
    "product_categories",
]
