"""
Recipe document model.

Maps to the `recipes` MongoDB collection.

likes    — set of user ids ($addToSet / $pull), mirrored by likes_count so
           "popular" can sort on an indexed scalar
ratings  — at most one entry per user; rating again replaces the entry
comments — append-only list, each entry with its own _id
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel, PyObjectId, UtcDatetime

DIFFICULTIES = ("easy", "medium", "hard")
Difficulty = Literal["easy", "medium", "hard"]


class Ingredient(BaseModel):
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None


class RecipeTime(BaseModel):
    """Minutes. total defaults to prep + cook when not given."""

    prep: float = 0
    cook: float = 0
    total: float = 0


class Rating(BaseModel):
    user: PyObjectId
    stars: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class Comment(BaseModel):
    """Embedded comment shared by recipes and blogs."""

    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId = Field(alias="_id")
    user: PyObjectId
    content: str
    created_at: Optional[UtcDatetime] = None


class RecipeDoc(MongoBaseModel):
    """Document model for the `recipes` collection."""

    title: str
    summary: Optional[str] = None
    content: str
    ingredients: list[Ingredient] = []
    steps: list[str] = []
    time: RecipeTime = RecipeTime()
    difficulty: Difficulty = "easy"
    servings: float = 1
    tags: list[str] = []
    thumbnail: Optional[str] = None
    images: list[str] = []
    created_by: PyObjectId
    is_hidden: bool = False
    likes: list[PyObjectId] = []
    likes_count: int = 0
    ratings: list[Rating] = []
    comments: list[Comment] = []
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
