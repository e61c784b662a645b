"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes keeping the product catalog consistent.

This package provides:
- ProductService: Product CRUD, batch operations and search
- CategoryService: Category CRUD with cascade-consistent deletion
- FallbackCategoryResolver: Lookup-or-create of the sentinel category


Architecture Pattern: Service Layer
----------------------------------
    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Invariants, transactions
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  CatalogStore   │  ← Data Access (via ORM)
    └─────────────────┘

Usage:
------
    from productmanager.services import ProductService

    service = ProductService(db_session)
    product = service.add_product(ProductCreate(
        name="Bread", description="wheat", price=50, categories=["Bakery"]
    ))

==============================================================================
"""

from .fallback import FallbackCategoryResolver
from .product_service import ProductService
from .category_service import CategoryService

__all__ = [
    # Services
    "FallbackCategoryResolver",
    "ProductService",
    "CategoryService",
]
