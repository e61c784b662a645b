"""
==============================================================================
Category Service Module
==============================================================================

Business logic for categories.

This module implements:
- CategoryService: Category CRUD and batch operations
- Cascade-consistent deletion that never orphans a product

Deletion Flow:
-------------
    for each product in category:
        detach edge
        product left empty? -> attach sentinel ("Other")
    flush products
    purge join rows of the category
    delete category row

When the category being deleted is the sentinel itself, its products are
reattached to a freshly created sentinel once the old row is gone.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from productmanager.core import exceptions
from productmanager.db.models import Category
from productmanager.db.store import CatalogStore
from productmanager.services.fallback import FallbackCategoryResolver
from productmanager.search.filters import SortSpec


# Module logger
logger = logging.getLogger(__name__)


class CategoryService:
    """
    Category management service.

    Attributes:
        _store: CatalogStore for the session
        _fallback: Sentinel category resolver

    Example:
        >>> service = CategoryService(db_session)
        >>> snacks = service.add_category("Snacks")
        >>> service.add_category("Snacks") is snacks
        True
        >>> service.delete_category(snacks.id)  # its products move to "Other"
    """

    def __init__(
        self,
        db: Session,
        fallback: Optional[FallbackCategoryResolver] = None
    ) -> None:
        """
        Initialize the category service.

        Args:
            db: SQLAlchemy database session
            fallback: Optional resolver (built from the session if None)
        """
        self._store = CatalogStore(db)
        self._fallback = fallback or FallbackCategoryResolver(self._store)

    @property
    def store(self) -> CatalogStore:
        return self._store

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_category(self, category_id: int) -> Category:
        """
        Get category by ID.

        Raises:
            AppException: CATEGORY_NOT_FOUND if the category doesn't exist
        """
        category = self._store.find_category_by_id(category_id)
        if category is None:
            logger.warning(f"Category not found: {category_id}")
            raise exceptions.category_not_found(category_id)
        return category

    def get_by_name(self, name: str) -> Optional[Category]:
        return self._store.find_category_by_name(name)

    def list_categories(self, sort: Optional[SortSpec] = None) -> List[Category]:
        """List every category (default: id ascending)."""
        return self._store.list_categories(sort)

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    def add_category(self, name: str) -> Category:
        """
        Create a category, or return the existing one with that name.

        Args:
            name: Category name (exact, case-sensitive)

        Returns:
            New or existing Category
        """
        existing = self._store.find_category_by_name(name)
        if existing is not None:
            logger.info(f"Category already exists: {name}")
            return existing

        try:
            with self._store.transaction():
                category = self._store.save_category(Category(name=name))
        except IntegrityError:
            # Lost an insert race on the unique name
            existing = self._store.find_category_by_name(name)
            if existing is None:
                raise
            logger.info(f"Category created concurrently: {name}")
            return existing

        logger.info(f"✅ Category created: {category.name} (id={category.id})")
        return category

    def add_categories(self, names: Iterable[str]) -> List[Category]:
        """Create several categories; existing names are returned as-is."""
        return [self.add_category(name) for name in names]

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    def update_category(self, category_id: int, name: str) -> Category:
        """
        Rename a category. Membership is not touched.

        Raises:
            AppException: CATEGORY_NOT_FOUND if the category doesn't exist
        """
        with self._store.transaction():
            category = self.get_category(category_id)
            old_name = category.name
            category.name = name
            self._store.save_category(category)

        logger.info(f"Category renamed: {old_name} → {name}")
        return category

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    def delete_category(self, category_id: int) -> None:
        """
        Delete a category, moving products it leaves empty to the sentinel.

        Raises:
            AppException: CATEGORY_NOT_FOUND if the category doesn't exist
        """
        with self._store.transaction():
            category = self.get_category(category_id)
            self._delete_category(category)

        logger.info(f"Category deleted: {category_id}")

    def delete_categories(self, category_ids: Iterable[int]) -> List[int]:
        """
        Delete several categories, skipping ids that don't exist.

        Returns:
            Ids of the deleted categories

        Raises:
            AppException: CATEGORIES_NOT_FOUND if none of the ids exist
        """
        requested = sorted(set(category_ids))

        with self._store.transaction():
            categories = self._store.find_categories_by_ids(requested)
            if not categories:
                logger.warning(f"No categories found for ids: {requested}")
                raise exceptions.categories_not_found(requested)

            deleted = [category.id for category in categories]
            missing = sorted(set(requested) - set(deleted))
            if missing:
                logger.info(f"Skipping missing categories: {missing}")

            for category in categories:
                self._delete_category(category)

        logger.info(f"Categories deleted: {deleted}")
        return deleted

    def _delete_category(self, category: Category) -> None:
        category_id = category.id
        is_fallback = self._fallback.is_fallback(category)
        products = sorted(category.products, key=lambda p: p.id)

        orphans = []
        for product in products:
            product.remove_category(category)
            if is_fallback:
                if not product.has_any_category():
                    orphans.append(product)
            else:
                self._fallback.attach_if_empty(product)

        self._store.flush()
        self._store.purge_category_links(category_id)
        self._store.delete_category_by_id(category_id)
        self._store.flush()

        for product in orphans:
            self._fallback.attach_if_empty(product)
        if orphans:
            self._store.flush()
            logger.info(
                f"{len(orphans)} products moved to a new '{self._fallback.name}' category"
            )
