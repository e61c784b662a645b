"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Product: Product CRUD schemas and search criteria
- Category: Category CRUD schemas

==============================================================================
"""

from .common import MessageResponse, DeletedResponse
from .product import (
    ProductCreate,
    ProductUpdate,
    ProductSearchCriteria,
    ProductDetail,
    ProductResponse,
    ProductListResponse,
)
from .category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryDetail,
    CategoryResponse,
    CategoryListResponse,
)

__all__ = [
    # Common
    "MessageResponse",
    "DeletedResponse",
    # Product
    "ProductCreate",
    "ProductUpdate",
    "ProductSearchCriteria",
    "ProductDetail",
    "ProductResponse",
    "ProductListResponse",
    # Category
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryDetail",
    "CategoryResponse",
    "CategoryListResponse",
]
