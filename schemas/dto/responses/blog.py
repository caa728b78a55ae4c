"""
Response DTOs for blog endpoints.

BlogResponse      — single post
BlogListResponse  — GET /api/blogs
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.dto.responses.recipe import CommentOut
from schemas.models.blog import BlogDoc
from shared.datetime_utils import to_iso


class BlogResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    summary: Optional[str] = None
    content: str
    tags: list[str]
    thumbnail: Optional[str] = None
    author: str
    comments: list[CommentOut]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_doc(cls, blog: BlogDoc) -> "BlogResponse":
        return cls(
            id=str(blog.id),
            title=blog.title,
            summary=blog.summary,
            content=blog.content,
            tags=blog.tags,
            thumbnail=blog.thumbnail,
            author=str(blog.author),
            comments=[CommentOut.from_model(c) for c in blog.comments],
            created_at=to_iso(blog.created_at),
            updated_at=to_iso(blog.updated_at),
        )


class BlogListResponse(BaseModel):
    items: list[BlogResponse]
    pagination: PaginationMeta
