"""
==============================================================================
Product Service Module
==============================================================================

Business logic for products and their category memberships.

This module implements:
- ProductService: Product CRUD, batch operations and search
- Category resolution by name ("create on reference")
- Fallback handling so no product is ever left without a category

Invariants (hold after every public operation):
----------------------------------------------
- Every persisted product belongs to at least one category
- product in category.products  <=>  category in product.categories

Every mutating operation runs in a single transaction.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from productmanager.core import exceptions
from productmanager.db.models import Category, Product
from productmanager.db.store import CatalogStore
from productmanager.schemas.product import (
    ProductCreate,
    ProductSearchCriteria,
    ProductUpdate,
)
from productmanager.services.fallback import FallbackCategoryResolver
from productmanager.search.filters import SortSpec, build_filter


# Module logger
logger = logging.getLogger(__name__)


class ProductService:
    """
    Product management service.

    Attributes:
        _store: CatalogStore for the session
        _fallback: Sentinel category resolver

    Example:
        >>> service = ProductService(db_session)
        >>> bread = service.add_product(ProductCreate(
        ...     name="Bread", description="wheat", price=50
        ... ))
        >>> bread.category_names
        ['Other']
        >>> service.update_product(bread.id, ProductUpdate(categories=["Grocery"])).category_names
        ['Grocery']
    """

    def __init__(
        self,
        db: Session,
        fallback: Optional[FallbackCategoryResolver] = None
    ) -> None:
        """
        Initialize the product service.

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

    def get_product(self, product_id: int) -> Product:
        """
        Get product by ID.

        Raises:
            AppException: PRODUCT_NOT_FOUND if the product doesn't exist
        """
        product = self._store.find_product_by_id(product_id)
        if product is None:
            logger.warning(f"Product not found: {product_id}")
            raise exceptions.product_not_found(product_id)
        return product

    def list_products(self, sort: Optional[SortSpec] = None) -> List[Product]:
        """List every product (default: id ascending)."""
        return self._store.query_products(sort=sort)

    def search(
        self,
        criteria: ProductSearchCriteria,
        sort: Optional[SortSpec] = None
    ) -> List[Product]:
        """
        Search products.

        Args:
            criteria: Optional search criteria; none at all lists everything
            sort: Sort order (default: id ascending)

        Returns:
            Matching products
        """
        product_filter = build_filter(criteria)
        return self._store.query_products(product_filter, sort)

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    def add_product(self, data: ProductCreate) -> Product:
        """
        Create a product.

        Category names are matched exactly; unknown names create new
        categories. With no categories the product goes to the sentinel.

        Args:
            data: ProductCreate schema

        Returns:
            Persisted Product
        """
        with self._store.transaction():
            product = self._add_product(data)

        logger.info(f"✅ Product created: {product.name} (id={product.id})")
        return product

    def add_products(self, items: Iterable[ProductCreate]) -> List[Product]:
        """
        Create several products.

        All-or-nothing: if any element fails, none are kept.

        Returns:
            Persisted products in input order
        """
        with self._store.transaction():
            products = [self._add_product(data) for data in items]

        logger.info(f"✅ {len(products)} products created")
        return products

    def _add_product(self, data: ProductCreate) -> Product:
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price
        )
        product.add_categories(self._resolve_categories(data.categories))
        self._fallback.attach_if_empty(product)
        return self._store.save_product(product)

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """
        Update product attributes.

        Only provided fields are changed. A non-empty ``categories`` list is
        added to the current categories; if the product was only in the
        sentinel, the sentinel is dropped first.

        Raises:
            AppException: PRODUCT_NOT_FOUND if the product doesn't exist
        """
        with self._store.transaction():
            product = self.get_product(product_id)

            if data.name is not None:
                product.set_name(data.name)
            if data.description is not None:
                product.set_description(data.description)
            if data.price is not None:
                product.set_price(data.price)

            if data.categories:
                self._fallback.remove_if_redundant(product)
                product.add_categories(self._resolve_categories(data.categories))

            self._fallback.attach_if_empty(product)
            self._store.save_product(product)

        logger.info(f"Product updated: {product.name} (id={product.id})")
        return product

    def clear_categories(self, product_id: int) -> Product:
        """
        Remove a product from all of its categories.

        The product ends up in the sentinel category only.

        Raises:
            AppException: PRODUCT_NOT_FOUND if the product doesn't exist
        """
        with self._store.transaction():
            product = self.get_product(product_id)
            product.clear_categories()
            self._fallback.attach_if_empty(product)
            self._store.save_product(product)

        logger.info(f"Categories cleared for product {product.id}")
        return product

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product.

        Raises:
            AppException: PRODUCT_NOT_FOUND if the product doesn't exist
        """
        with self._store.transaction():
            product = self.get_product(product_id)
            self._delete_product(product)

        logger.info(f"Product deleted: {product_id}")

    def delete_products(self, product_ids: Iterable[int]) -> List[int]:
        """
        Delete several products, skipping ids that don't exist.

        Returns:
            Ids of the deleted products

        Raises:
            AppException: PRODUCTS_NOT_FOUND if none of the ids exist
        """
        requested = sorted(set(product_ids))

        with self._store.transaction():
            products = self._store.find_products_by_ids(requested)
            if not products:
                logger.warning(f"No products found for ids: {requested}")
                raise exceptions.products_not_found(requested)

            deleted = [product.id for product in products]
            missing = sorted(set(requested) - set(deleted))
            if missing:
                logger.info(f"Skipping missing products: {missing}")

            for product in products:
                self._delete_product(product)

        logger.info(f"Products deleted: {deleted}")
        return deleted

    def _delete_product(self, product: Product) -> None:
        """Detach from every category, then remove the row."""
        product_id = product.id
        product.clear_categories()
        self._store.flush()
        self._store.delete_product_by_id(product_id)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_categories(self, names: Iterable[str]) -> List[Category]:
        """
        Map names to categories, creating the ones that don't exist.

        Duplicates are resolved once; input order is kept.
        """
        categories: List[Category] = []
        for name in dict.fromkeys(names):
            category = self._store.find_category_by_name(name)
            if category is None:
                category = self._store.save_category(Category(name=name))
                logger.info(f"Category created on reference: {name}")
            categories.append(category)
        return categories
