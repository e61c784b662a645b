"""
==============================================================================
Common Schemas Module
==============================================================================

Shared response schemas used across all API endpoints.

==============================================================================
"""

from typing import List

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Simple message response."""
    success: bool = Field(default=True)
    message: str


class DeletedResponse(BaseModel):
    """Result of a (batch) delete: which ids were actually removed."""
    success: bool = Field(default=True)
    message: str
    deleted_ids: List[int]
