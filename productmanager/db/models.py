"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the product catalog.

This module defines:
- product_categories: Association table for the many-to-many link
- Category: Named group of products
- Product: Sellable item belonging to one or more categories

Database Schema:
---------------

    ┌──────────────────────────────────┐       ┌──────────────────────────────┐
    │             products             │       │          categories          │
    ├──────────────────────────────────┤       ├──────────────────────────────┤
    │ id (INTEGER, PK)                 │       │ id (INTEGER, PK)             │
    │ name (VARCHAR, NOT NULL)         │       │ name (VARCHAR, UNIQUE)       │
    │ description (TEXT, NOT NULL)     │       └──────────────┬───────────────┘
    │ price (BIGINT, CHECK > 0)        │                      │
    │ created_at (DATETIME)            │                      │
    │ modified_at (DATETIME)           │                      │
    └────────────────┬─────────────────┘                      │
                     │ N:M                                    │
                     ▼                                        ▼
             ┌─────────────────────────────────────────────────────┐
             │                 product_categories                  │
             ├─────────────────────────────────────────────────────┤
             │ product_id (FK → products.id, PK, ON DELETE CASCADE) │
             │ category_id (FK → categories.id, PK, CASCADE)        │
             └─────────────────────────────────────────────────────┘

Both sides of the association are kept in sync in memory by
``back_populates``; the join table is the persisted truth.

Entities sort by name but set membership is by identity: two categories
that happen to share a name are still two distinct members of a set.

=============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, relationship

from productmanager.db.database import Base


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form SQLite hands back)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ASSOCIATION TABLE
# =============================================================================

product_categories: Table = Table(
    "product_categories",
    Base.metadata,
    Column(
        "product_id",
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


# =============================================================================
# CATEGORY MODEL
# =============================================================================

class Category(Base):
    """
    Product category.

    Attributes:
        id: Auto-incrementing primary key
        name: Unique, case-sensitive display name

    Relationships:
        products: Products in this category

    Example:
        >>> grocery = Category(name="Grocery")
        >>> grocery.add_product(bread)
        >>> grocery in bread.categories
        True
    """

    __tablename__ = "categories"

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Auto-incrementing category ID"
    )

    name: str = Column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique, case-sensitive category name"
    )

    products: Mapped[Set["Product"]] = relationship(
        "Product",
        secondary=product_categories,
        back_populates="categories",
        collection_class=set,
        doc="Products in this category"
    )

    def add_product(self, product: Product) -> None:
        """Link a product to this category (both sides)."""
        product.add_category(self)

    def remove_product(self, product: Product) -> None:
        """Unlink a product from this category (both sides)."""
        product.remove_category(self)

    @property
    def product_count(self) -> int:
        """Number of products in this category."""
        return len(self.products)

    def __lt__(self, other: Category) -> bool:
        return self.name < other.name

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return f"Category(id={self.id!r}, name={self.name!r})"

    def __str__(self) -> str:
        return self.name


# =============================================================================
# PRODUCT MODEL
# =============================================================================

class Product(Base):
    """
    Catalog product.

    Products hold no invariants of their own: keeping every product in at
    least one category is the job of the services. The setters here only
    change local state and bump ``modified_at``.

    Attributes:
        id: Auto-incrementing primary key
        name: Display name
        description: Free-text description
        price: Price in the smallest currency unit (positive)
        created_at: Creation timestamp, never changed after construction
        modified_at: Timestamp of the last change

    Relationships:
        categories: Categories this product belongs to

    Example:
        >>> bread = Product(name="Bread", description="wheat", price=50)
        >>> bread.add_category(Category(name="Bakery"))
        >>> bread.category_names
        ['Bakery']
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
    )

    # =========================================================================
    # COLUMNS
    # =========================================================================

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Auto-incrementing product ID"
    )

    name: str = Column(
        String(255),
        nullable=False,
        index=True,
        doc="Product name"
    )

    description: str = Column(
        Text,
        nullable=False,
        doc="Product description"
    )

    price: int = Column(
        BigInteger,
        nullable=False,
        doc="Price in the smallest currency unit"
    )

    created_at: datetime = Column(
        DateTime,
        default=utcnow,
        nullable=False,
        doc="Creation timestamp"
    )

    modified_at: datetime = Column(
        DateTime,
        default=utcnow,
        nullable=False,
        doc="Last modification timestamp"
    )

    # =========================================================================
    # RELATIONSHIPS
    # =========================================================================

    categories: Mapped[Set["Category"]] = relationship(
        "Category",
        secondary=product_categories,
        back_populates="products",
        collection_class=set,
        lazy="selectin",
        doc="Categories this product belongs to"
    )

    def __init__(self, **kwargs) -> None:
        now = utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("modified_at", now)
        super().__init__(**kwargs)

    # =========================================================================
    # FIELD SETTERS
    # =========================================================================

    def set_name(self, name: str) -> None:
        """Rename the product."""
        self.name = name
        self.touch()

    def set_description(self, description: str) -> None:
        """Replace the description."""
        self.description = description
        self.touch()

    def set_price(self, price: int) -> None:
        """Replace the price."""
        self.price = price
        self.touch()

    def touch(self) -> None:
        """Bump the last-modified timestamp."""
        self.modified_at = utcnow()

    # =========================================================================
    # CATEGORY EDGES
    # =========================================================================

    def add_category(self, category: Category) -> None:
        """
        Link this product to a category.

        ``back_populates`` adds the product to ``category.products`` in the
        same step.
        """
        self.categories.add(category)
        self.touch()

    def remove_category(self, category: Category) -> None:
        """Unlink this product from a category (no-op if not linked)."""
        self.categories.discard(category)
        self.touch()

    def add_categories(self, categories: Iterable[Category]) -> None:
        """Link this product to every category given."""
        for category in categories:
            self.categories.add(category)
        self.touch()

    def remove_categories(self, categories: Iterable[Category]) -> None:
        """Unlink this product from every category given."""
        for category in list(categories):
            self.categories.discard(category)
        self.touch()

    def clear_categories(self) -> None:
        """Remove this product from every category it is linked to."""
        self.remove_categories(list(self.categories))

    def has_any_category(self) -> bool:
        """Check if the product belongs to at least one category."""
        return len(self.categories) > 0

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def sorted_categories(self) -> List[Category]:
        """Categories ordered by name."""
        return sorted(self.categories)

    @property
    def category_names(self) -> List[str]:
        """Names of the categories, ordered."""
        return [category.name for category in self.sorted_categories]

    def only_category(self) -> Optional[Category]:
        """Return the single category if there is exactly one."""
        if len(self.categories) == 1:
            return next(iter(self.categories))
        return None

    def __lt__(self, other: Product) -> bool:
        return self.name < other.name

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"Product(id={self.id!r}, "
            f"name={self.name!r}, "
            f"price={self.price!r}, "
            f"categories={self.category_names})"
        )

    def __str__(self) -> str:
        return self.name
