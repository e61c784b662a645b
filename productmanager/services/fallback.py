"""
==============================================================================
Fallback Category Module
==============================================================================

Resolver for the sentinel category that keeps every product in at least
one category.

The sentinel is identified by its configured name only (default "Other").
It is created lazily the first time a product would otherwise be left
without a category, and reused afterwards.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from productmanager.config import get_settings
from productmanager.db.models import Category, Product
from productmanager.db.store import CatalogStore


# Module logger
logger = logging.getLogger(__name__)


class FallbackCategoryResolver:
    """
    Lookup-or-create access to the sentinel category.

    Attributes:
        _store: CatalogStore used for lookups and saves
        _name: Reserved sentinel name

    Example:
        >>> resolver = FallbackCategoryResolver(store)
        >>> other = resolver.ensure_fallback()
        >>> resolver.ensure_fallback() is other
        True
    """

    def __init__(self, store: CatalogStore, name: Optional[str] = None) -> None:
        """
        Initialize the resolver.

        Args:
            store: CatalogStore for the current session
            name: Sentinel name (default: settings.fallback_category_name)
        """
        self._store = store
        self._name = name or get_settings().fallback_category_name

    @property
    def name(self) -> str:
        return self._name

    def ensure_fallback(self) -> Category:
        """
        Return the sentinel category, creating it if it does not exist.

        Idempotent: repeated calls return the same row.
        """
        category = self._store.find_category_by_name(self._name)
        if category is None:
            category = self._store.save_category(Category(name=self._name))
            logger.info(f"Created fallback category '{self._name}' (id={category.id})")
        return category

    def is_fallback(self, category: Category) -> bool:
        return category.name == self._name

    def attach_if_empty(self, product: Product) -> bool:
        """
        Attach the sentinel to a product that has no categories.

        Returns:
            True if the sentinel was attached
        """
        if product.has_any_category():
            return False
        product.add_category(self.ensure_fallback())
        logger.debug(f"Product '{product.name}' moved to '{self._name}'")
        return True

    def remove_if_redundant(self, product: Product) -> bool:
        """
        Detach the sentinel if it is the product's only category.

        Only call this right before attaching a non-empty set of real
        categories, otherwise the product is left empty.

        Returns:
            True if the sentinel was detached
        """
        only = product.only_category()
        if only is None or not self.is_fallback(only):
            return False
        product.remove_category(only)
        return True
