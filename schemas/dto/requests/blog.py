"""
Request DTOs for blog endpoints.

CreateBlogRequest — POST /api/blogs  (admin)
UpdateBlogRequest — PUT /api/blogs/{id}  (admin, partial)

Comments reuse CommentRequest from the recipe DTOs.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from schemas.dto.requests.recipe import Tags


class CreateBlogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=5, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    content: str = Field(min_length=20)
    tags: Tags = []
    thumbnail: Optional[HttpUrl] = None


class UpdateBlogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=5, max_length=200)
    summary: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = Field(default=None, min_length=20)
    tags: Optional[Tags] = None
    thumbnail: Optional[HttpUrl] = None
