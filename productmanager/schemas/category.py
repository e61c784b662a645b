"""
==============================================================================
Category Schemas Module
==============================================================================

Request and response schemas for category operations.

==============================================================================
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryCreate(BaseModel):
    """Category creation (also used for rename)."""
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CategoryUpdate(CategoryCreate):
    """Category rename."""


class CategoryDetail(BaseModel):
    """Category with the names of its products."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    product_count: int
    products: List[str]

    @classmethod
    def from_model(cls, category):
        return cls(
            id=category.id,
            name=category.name,
            product_count=category.product_count,
            products=[p.name for p in sorted(category.products)]
        )


class CategoryResponse(BaseModel):
    """Single category response."""
    success: bool = Field(default=True)
    category: CategoryDetail


class CategoryListResponse(BaseModel):
    """List of categories response."""
    success: bool = Field(default=True)
    categories: List[CategoryDetail]
    total: int
