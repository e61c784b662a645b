"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for services, sorting and search parameters.

This module implements:
- Service providers bound to the request-scoped session
- Sort parameter parsing shared by the list endpoints
- Search criteria assembled from query parameters
- Access to the WebSocket topic broker

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │    get_db()     │
                    └────────┬────────┘
                             │
              ┌──────────────┴──────────────┐
              │                             │
    ┌─────────▼──────────┐       ┌──────────▼──────────┐
    │get_product_service │       │get_category_service │
    └────────────────────┘       └─────────────────────┘

Usage Examples:
--------------
    @router.get("/products")
    async def list_products(
        criteria: ProductSearchCriteria = Depends(get_search_criteria),
        sort: SortSpec = Depends(get_product_sort),
        service: ProductService = Depends(get_product_service),
    ):
        ...

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from productmanager.db.database import get_db
from productmanager.db.store import CATEGORY_SORTABLE_FIELDS
from productmanager.schemas.product import ProductSearchCriteria
from productmanager.services.category_service import CategoryService
from productmanager.search.filters import SORTABLE_FIELDS, SortDirection, SortSpec
from productmanager.services.product_service import ProductService
from productmanager.websockets.broker import TopicBroker, get_broker


# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """FastAPI dependency providing a ProductService for the request."""
    return ProductService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """FastAPI dependency providing a CategoryService for the request."""
    return CategoryService(db)


def get_topic_broker() -> TopicBroker:
    """FastAPI dependency providing the process-wide topic broker."""
    return get_broker()


# =============================================================================
# SORT DEPENDENCIES
# =============================================================================

def get_product_sort(
    sort_by: Optional[str] = Query(None, description="Sort field (default: id)"),
    direction: Optional[SortDirection] = Query(None, description="asc or desc")
) -> SortSpec:
    """
    Parse product sort parameters.

    Raises:
        AppException: INVALID_SORT_FIELD for an unknown field
    """
    return SortSpec.parse(sort_by, direction, SORTABLE_FIELDS)


def get_category_sort(
    sort_by: Optional[str] = Query(None, description="Sort field: id or name"),
    direction: Optional[SortDirection] = Query(None, description="asc or desc")
) -> SortSpec:
    """
    Parse category sort parameters.

    Raises:
        AppException: INVALID_SORT_FIELD for an unknown field
    """
    return SortSpec.parse(sort_by, direction, CATEGORY_SORTABLE_FIELDS)


# =============================================================================
# SEARCH DEPENDENCY
# =============================================================================

def get_search_criteria(
    name: Optional[str] = Query(None, description="Name contains (case-insensitive)"),
    description: Optional[str] = Query(None, description="Description contains"),
    price_min: Optional[int] = Query(None, ge=0, description="Minimum price, inclusive"),
    price_max: Optional[int] = Query(None, ge=0, description="Maximum price, inclusive"),
    created_before: Optional[datetime] = Query(None),
    created_after: Optional[datetime] = Query(None),
    modified_before: Optional[datetime] = Query(None),
    modified_after: Optional[datetime] = Query(None),
    categories: Optional[List[str]] = Query(
        None,
        description="Category names; a product matches if it is in any of them"
    )
) -> ProductSearchCriteria:
    """
    Collect product search criteria from query parameters.

    Every parameter is optional; ``categories`` may be repeated.
    """
    return ProductSearchCriteria(
        name=name,
        description=description,
        price_min=price_min,
        price_max=price_max,
        created_before=created_before,
        created_after=created_after,
        modified_before=modified_before,
        modified_after=modified_after,
        categories=categories
    )
