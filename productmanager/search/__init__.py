"""
==============================================================================
Search Package
==============================================================================

Store-agnostic product search filters and sort orders.

This package provides:
- FilterClause / ProductFilter: AND-of-ORs over tagged clauses
- build_filter: Composition from optional search criteria
- SortSpec: Validated sort field and direction

==============================================================================
"""

from .filters import (
    DEFAULT_SORT,
    SORTABLE_FIELDS,
    ClauseKind,
    FilterClause,
    ProductFilter,
    SortDirection,
    SortSpec,
    build_filter,
)

__all__ = [
    "DEFAULT_SORT",
    "SORTABLE_FIELDS",
    "ClauseKind",
    "FilterClause",
    "ProductFilter",
    "SortDirection",
    "SortSpec",
    "build_filter",
]
