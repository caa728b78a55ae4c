"""
Blog post document model.

Maps to the `blogs` MongoDB collection. Comments use the same embedded shape
as recipe comments.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.base import MongoBaseModel, PyObjectId, UtcDatetime
from schemas.models.recipe import Comment


class BlogDoc(MongoBaseModel):
    """Document model for the `blogs` collection."""

    title: str
    summary: Optional[str] = None
    content: str
    tags: list[str] = []
    thumbnail: Optional[str] = None
    author: PyObjectId
    comments: list[Comment] = []
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
