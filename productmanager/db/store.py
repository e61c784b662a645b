"""
==============================================================================
Catalog Store Module
==============================================================================

Data access for products, categories and the join rows between them.

This module implements:
- CatalogStore: Point and bulk lookups, saves and deletes
- Transaction boundary used by every mutating service operation
- Compilation of ProductFilter clauses into SQLAlchemy expressions

Saves flush immediately so that new rows get their ids and later lookups in
the same transaction (e.g. find_category_by_name) see them. Nothing is
committed outside ``transaction()``.

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Generator, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement

from productmanager.db.models import Category, Product, product_categories
from productmanager.search.filters import (
    DEFAULT_SORT,
    ClauseKind,
    FilterClause,
    ProductFilter,
    SortSpec,
)


# Module logger
logger = logging.getLogger(__name__)


def _contains(column, value: str) -> ColumnElement:
    return column.ilike(f"%{_escape_like(value)}%", escape="\\")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# Clause kind -> SQL expression builder
_COMPILERS = {
    ClauseKind.NAME_CONTAINS: lambda v: _contains(Product.name, v),
    ClauseKind.DESCRIPTION_CONTAINS: lambda v: _contains(Product.description, v),
    ClauseKind.PRICE_AT_LEAST: lambda v: Product.price >= v,
    ClauseKind.PRICE_AT_MOST: lambda v: Product.price <= v,
    ClauseKind.CREATED_BEFORE: lambda v: Product.created_at <= v,
    ClauseKind.CREATED_AFTER: lambda v: Product.created_at >= v,
    ClauseKind.MODIFIED_BEFORE: lambda v: Product.modified_at <= v,
    ClauseKind.MODIFIED_AFTER: lambda v: Product.modified_at >= v,
    ClauseKind.IN_CATEGORY: lambda v: Product.categories.any(Category.name == v),
}

_PRODUCT_COLUMNS: Dict[str, ColumnElement] = {
    "id": Product.id,
    "name": Product.name,
    "description": Product.description,
    "price": Product.price,
    "created_at": Product.created_at,
    "modified_at": Product.modified_at,
}

_CATEGORY_COLUMNS: Dict[str, ColumnElement] = {
    "id": Category.id,
    "name": Category.name,
}

CATEGORY_SORTABLE_FIELDS = tuple(_CATEGORY_COLUMNS)


def compile_clause(clause: FilterClause) -> ColumnElement:
    """Translate one filter clause into a SQL boolean expression."""
    return _COMPILERS[clause.kind](clause.value)


def compile_filter(product_filter: ProductFilter) -> ColumnElement:
    """Translate a whole filter: OR within each group, AND across groups."""
    return and_(*(
        or_(*(compile_clause(clause) for clause in group))
        for group in product_filter.groups
    ))


class CatalogStore:
    """
    Persistence operations for the product catalog.

    Wraps a single request-scoped session. The store never enforces catalog
    invariants; it only reads and writes rows.

    Attributes:
        _db: Database session

    Example:
        >>> store = CatalogStore(db_session)
        >>> with store.transaction():
        ...     grocery = store.save_category(Category(name="Grocery"))
        >>> store.find_category_by_name("Grocery") is grocery
        True
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the store.

        Args:
            db: SQLAlchemy database session
        """
        self._db = db

    @property
    def session(self) -> Session:
        return self._db

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        All-or-nothing boundary around one service operation.

        Commits when the block completes, rolls back and re-raises on any
        exception.
        """
        try:
            yield self._db
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

    def flush(self) -> None:
        self._db.flush()

    # =========================================================================
    # PRODUCT LOOKUPS
    # =========================================================================

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        return self._db.get(Product, product_id)

    def find_products_by_ids(self, product_ids: Iterable[int]) -> List[Product]:
        """
        Find every product whose id is in the given set.

        Missing ids are simply absent from the result.
        """
        ids = set(product_ids)
        if not ids:
            return []
        return (
            self._db.query(Product)
            .filter(Product.id.in_(ids))
            .order_by(Product.id)
            .all()
        )

    def query_products(
        self,
        product_filter: Optional[ProductFilter] = None,
        sort: Optional[SortSpec] = None
    ) -> List[Product]:
        """
        List products matching an optional filter.

        Args:
            product_filter: Composed filter, or None for every product
            sort: Sort order (default: id ascending)

        Returns:
            Matching products, each appearing once
        """
        sort = sort or DEFAULT_SORT
        query = self._db.query(Product)

        if product_filter is not None:
            query = query.filter(compile_filter(product_filter))

        column = _PRODUCT_COLUMNS[sort.field]
        order = column.desc() if sort.descending else column.asc()
        return query.order_by(order, Product.id.asc()).all()

    def count_products(self) -> int:
        return self._db.query(Product).count()

    # =========================================================================
    # CATEGORY LOOKUPS
    # =========================================================================

    def find_category_by_id(self, category_id: int) -> Optional[Category]:
        return self._db.get(Category, category_id)

    def find_category_by_name(self, name: str) -> Optional[Category]:
        """Find a category by exact (case-sensitive) name."""
        return self._db.query(Category).filter(Category.name == name).first()

    def exists_category_by_name(self, name: str) -> bool:
        return self._db.query(
            self._db.query(Category).filter(Category.name == name).exists()
        ).scalar()

    def find_categories_by_ids(self, category_ids: Iterable[int]) -> List[Category]:
        """
        Find every category whose id is in the given set.

        Missing ids are simply absent from the result.
        """
        ids = set(category_ids)
        if not ids:
            return []
        return (
            self._db.query(Category)
            .filter(Category.id.in_(ids))
            .order_by(Category.id)
            .all()
        )

    def list_categories(self, sort: Optional[SortSpec] = None) -> List[Category]:
        """
        List every category.

        Args:
            sort: Sort order; only ``id`` and ``name`` are meaningful here
        """
        sort = sort or DEFAULT_SORT
        column = _CATEGORY_COLUMNS[sort.field]
        order = column.desc() if sort.descending else column.asc()
        return self._db.query(Category).order_by(order, Category.id.asc()).all()

    def count_categories(self) -> int:
        return self._db.query(Category).count()

    # =========================================================================
    # SAVES
    # =========================================================================

    def save_product(self, product: Product) -> Product:
        self._db.add(product)
        self._db.flush()
        return product

    def save_products(self, products: Iterable[Product]) -> List[Product]:
        products = list(products)
        self._db.add_all(products)
        self._db.flush()
        return products

    def save_category(self, category: Category) -> Category:
        self._db.add(category)
        self._db.flush()
        return category

    def save_categories(self, categories: Iterable[Category]) -> List[Category]:
        categories = list(categories)
        self._db.add_all(categories)
        self._db.flush()
        return categories

    # =========================================================================
    # DELETES
    # =========================================================================

    def delete_product_by_id(self, product_id: int) -> bool:
        """
        Delete a product row.

        Returns:
            True if a row was deleted, False if it was already gone
        """
        deleted = (
            self._db.query(Product)
            .filter(Product.id == product_id)
            .delete(synchronize_session="fetch")
        )
        if not deleted:
            logger.info(f"Product {product_id} already deleted")
        return bool(deleted)

    def delete_category_by_id(self, category_id: int) -> bool:
        """
        Delete a category row.

        Join rows must already be gone (see ``purge_category_links``).

        Returns:
            True if a row was deleted, False if it was already gone
        """
        deleted = (
            self._db.query(Category)
            .filter(Category.id == category_id)
            .delete(synchronize_session="fetch")
        )
        if not deleted:
            logger.info(f"Category {category_id} already deleted")
        return bool(deleted)

    def purge_category_links(self, category_id: int) -> int:
        """
        Delete every join row referencing a category.

        Returns:
            Number of join rows removed
        """
        result = self._db.execute(
            product_categories.delete().where(
                product_categories.c.category_id == category_id
            )
        )
        if result.rowcount:
            logger.debug(f"Purged {result.rowcount} links of category {category_id}")
        return result.rowcount
