"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- products: Product CRUD, search and batch operations
- categories: Category CRUD and batch operations

==============================================================================
"""

from . import health, products, categories

__all__ = ["health", "products", "categories"]
