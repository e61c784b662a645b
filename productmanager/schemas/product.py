"""
==============================================================================
Product Schemas Module
==============================================================================

Request and response schemas for product operations, plus the search
criteria model handed to the filter composer.

==============================================================================
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_category_names(names: Optional[List[str]]) -> Optional[List[str]]:
    """Strip names and drop duplicates, keeping first-seen order."""
    if names is None:
        return None
    cleaned: List[str] = []
    for name in names:
        name = name.strip()
        if not name:
            raise ValueError("Category names cannot be blank")
        if name not in cleaned:
            cleaned.append(name)
    return cleaned


# =============================================================================
# CREATE / UPDATE SCHEMAS
# =============================================================================

class ProductCreate(BaseModel):
    """Product creation. Unknown category names are created on the fly."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: int = Field(..., gt=0)
    categories: List[str] = Field(default_factory=list)

    @field_validator("name", "description")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("categories")
    @classmethod
    def clean_categories(cls, v: List[str]) -> List[str]:
        return _clean_category_names(v)


class ProductUpdate(BaseModel):
    """
    Partial product update.

    Absent fields are left alone. A non-empty ``categories`` list is added
    to the product's current categories.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, gt=0)
    categories: Optional[List[str]] = Field(default=None)

    @field_validator("name", "description")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("categories")
    @classmethod
    def clean_categories(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_category_names(v)


# =============================================================================
# SEARCH CRITERIA
# =============================================================================

class ProductSearchCriteria(BaseModel):
    """
    Optional product search criteria.

    Every field is independent; ``None`` means "not filtered on".
    Datetimes are compared as naive UTC.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    price_min: Optional[int] = Field(default=None, ge=0)
    price_max: Optional[int] = Field(default=None, ge=0)
    created_before: Optional[datetime] = None
    created_after: Optional[datetime] = None
    modified_before: Optional[datetime] = None
    modified_after: Optional[datetime] = None
    categories: Optional[List[str]] = None

    @field_validator("name", "description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("created_before", "created_after", "modified_before", "modified_after")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("categories")
    @classmethod
    def clean_categories(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        names = [name.strip() for name in v if name and name.strip()]
        return list(dict.fromkeys(names)) or None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ProductDetail(BaseModel):
    """Product with its category names."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: int
    created_at: datetime
    modified_at: datetime
    categories: List[str]

    @classmethod
    def from_model(cls, product):
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            created_at=product.created_at,
            modified_at=product.modified_at,
            categories=product.category_names
        )


class ProductResponse(BaseModel):
    """Single product response."""
    success: bool = Field(default=True)
    product: ProductDetail


class ProductListResponse(BaseModel):
    """List of products response."""
    success: bool = Field(default=True)
    products: List[ProductDetail]
    total: int
