"""
==============================================================================
Product Filter Module
==============================================================================

Composable search filters for products.

A search request carries any subset of optional criteria. Each present
criterion becomes a FilterClause; clauses are arranged in OR-groups and the
groups are AND-ed together:

    name ∧ price_max ∧ (category = A ∨ category = Grocery)

    groups = (
        (NAME_CONTAINS "e",),
        (PRICE_AT_MOST 1000,),
        (IN_CATEGORY "A", IN_CATEGORY "Grocery"),
    )

The clauses are plain data. ``ProductFilter.matches`` evaluates them in
memory; ``CatalogStore`` compiles the very same clauses into SQL.

Matching Rules:
--------------
- Text criteria: case-insensitive substring
- Ranges: inclusive on both bounds
- Categories: a product matches if it belongs to any listed category
- No criteria at all: no filter (``build_filter`` returns None)

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from productmanager.core import exceptions
from productmanager.db.models import Product
from productmanager.schemas.product import ProductSearchCriteria


# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# CLAUSES
# =============================================================================

class ClauseKind(str, enum.Enum):
    """Kinds of filter clause a search can contain."""

    NAME_CONTAINS = "name_contains"
    DESCRIPTION_CONTAINS = "description_contains"
    PRICE_AT_LEAST = "price_at_least"
    PRICE_AT_MOST = "price_at_most"
    CREATED_BEFORE = "created_before"
    CREATED_AFTER = "created_after"
    MODIFIED_BEFORE = "modified_before"
    MODIFIED_AFTER = "modified_after"
    IN_CATEGORY = "in_category"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FilterClause:
    """One tagged filter condition, e.g. ``(PRICE_AT_MOST, 1000)``."""

    kind: ClauseKind
    value: Any

    def matches(self, product: Product) -> bool:
        """Evaluate the clause against an in-memory product."""
        return _EVALUATORS[self.kind](product, self.value)


OrGroup = Tuple[FilterClause, ...]


@dataclass(frozen=True)
class ProductFilter:
    """
    AND-of-ORs over filter clauses.

    Attributes:
        groups: OR-groups; a product must satisfy at least one clause in
            every group
    """

    groups: Tuple[OrGroup, ...]

    @property
    def clauses(self) -> Tuple[FilterClause, ...]:
        """All clauses, flattened."""
        return tuple(clause for group in self.groups for clause in group)

    def matches(self, product: Product) -> bool:
        """Evaluate the whole filter against an in-memory product."""
        return all(
            any(clause.matches(product) for clause in group)
            for group in self.groups
        )


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


_EVALUATORS: Dict[ClauseKind, Callable[[Product, Any], bool]] = {
    ClauseKind.NAME_CONTAINS: lambda p, v: _contains(p.name, v),
    ClauseKind.DESCRIPTION_CONTAINS: lambda p, v: _contains(p.description, v),
    ClauseKind.PRICE_AT_LEAST: lambda p, v: p.price >= v,
    ClauseKind.PRICE_AT_MOST: lambda p, v: p.price <= v,
    ClauseKind.CREATED_BEFORE: lambda p, v: p.created_at <= v,
    ClauseKind.CREATED_AFTER: lambda p, v: p.created_at >= v,
    ClauseKind.MODIFIED_BEFORE: lambda p, v: p.modified_at <= v,
    ClauseKind.MODIFIED_AFTER: lambda p, v: p.modified_at >= v,
    ClauseKind.IN_CATEGORY: lambda p, v: any(c.name == v for c in p.categories),
}


# =============================================================================
# COMPOSER
# =============================================================================

# Scalar criteria and the clause each one produces
_SCALAR_CRITERIA: Tuple[Tuple[str, ClauseKind], ...] = (
    ("name", ClauseKind.NAME_CONTAINS),
    ("description", ClauseKind.DESCRIPTION_CONTAINS),
    ("price_min", ClauseKind.PRICE_AT_LEAST),
    ("price_max", ClauseKind.PRICE_AT_MOST),
    ("created_before", ClauseKind.CREATED_BEFORE),
    ("created_after", ClauseKind.CREATED_AFTER),
    ("modified_before", ClauseKind.MODIFIED_BEFORE),
    ("modified_after", ClauseKind.MODIFIED_AFTER),
)


def build_filter(criteria: ProductSearchCriteria) -> Optional[ProductFilter]:
    """
    Compose a filter from whichever criteria are present.

    Args:
        criteria: Search criteria; every field is optional

    Returns:
        ProductFilter, or None when no criterion is present
    """
    groups = []

    for field, kind in _SCALAR_CRITERIA:
        value = getattr(criteria, field)
        if value is not None:
            groups.append((FilterClause(kind, value),))

    if criteria.categories:
        groups.append(tuple(
            FilterClause(ClauseKind.IN_CATEGORY, name)
            for name in sorted(set(criteria.categories))
        ))

    if not groups:
        return None

    product_filter = ProductFilter(groups=tuple(groups))
    logger.debug(f"Built product filter with {len(product_filter.clauses)} clauses")
    return product_filter


# =============================================================================
# SORTING
# =============================================================================

class SortDirection(str, enum.Enum):
    """Sort direction for listings."""

    ASC = "asc"
    DESC = "desc"

    def __str__(self) -> str:
        return self.value


SORTABLE_FIELDS = ("id", "name", "description", "price", "created_at", "modified_at")


@dataclass(frozen=True)
class SortSpec:
    """Sort order for product and category listings. Defaults to id ascending."""

    field: str = "id"
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(
        cls,
        field: Optional[str],
        direction: Optional[SortDirection] = None,
        allowed: Tuple[str, ...] = SORTABLE_FIELDS,
    ) -> SortSpec:
        """
        Build a SortSpec from raw request values.

        Raises:
            AppException: INVALID_SORT_FIELD if the field is not sortable
        """
        field = field or "id"
        if field not in allowed:
            raise exceptions.invalid_sort_field(field, allowed)
        return cls(field=field, direction=direction or SortDirection.ASC)

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC


DEFAULT_SORT = SortSpec()
