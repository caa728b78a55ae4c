"""
Response DTOs for recipe endpoints.

RecipeResponse      — single recipe
RecipeListResponse  — GET /api/recipes, GET /api/recipes/by-user/{user_id}
LikeResponse        — POST /api/recipes/{id}/like
RatingsResponse     — rate / delete rating
CommentsResponse    — add / delete comment
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.models.recipe import Comment, Rating, RecipeDoc
from shared.datetime_utils import to_iso


class RatingOut(BaseModel):
    user: str
    stars: int
    comment: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_model(cls, rating: Rating) -> "RatingOut":
        return cls(
            user=str(rating.user),
            stars=rating.stars,
            comment=rating.comment,
            created_at=to_iso(rating.created_at),
            updated_at=to_iso(rating.updated_at),
        )


class CommentOut(BaseModel):
    id: str
    user: str
    content: str
    created_at: Optional[str] = None

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentOut":
        return cls(
            id=str(comment.id),
            user=str(comment.user),
            content=comment.content,
            created_at=to_iso(comment.created_at),
        )


class RatingStats(BaseModel):
    count: int
    avg: float

    @classmethod
    def of(cls, ratings: list[Rating]) -> "RatingStats":
        if not ratings:
            return cls(count=0, avg=0)
        return cls(
            count=len(ratings),
            avg=round(sum(r.stars for r in ratings) / len(ratings), 2),
        )


class RecipeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    summary: Optional[str] = None
    content: str
    ingredients: list[dict]
    steps: list[str]
    time: dict
    difficulty: str
    servings: float
    tags: list[str]
    thumbnail: Optional[str] = None
    images: list[str]
    created_by: str
    is_hidden: bool
    likes_count: int
    rating: RatingStats
    ratings: list[RatingOut]
    comments: list[CommentOut]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_doc(cls, recipe: RecipeDoc) -> "RecipeResponse":
        return cls(
            id=str(recipe.id),
            title=recipe.title,
            summary=recipe.summary,
            content=recipe.content,
            ingredients=[i.model_dump() for i in recipe.ingredients],
            steps=recipe.steps,
            time=recipe.time.model_dump(),
            difficulty=recipe.difficulty,
            servings=recipe.servings,
            tags=recipe.tags,
            thumbnail=recipe.thumbnail,
            images=recipe.images,
            created_by=str(recipe.created_by),
            is_hidden=recipe.is_hidden,
            likes_count=recipe.likes_count,
            rating=RatingStats.of(recipe.ratings),
            ratings=[RatingOut.from_model(r) for r in recipe.ratings],
            comments=[CommentOut.from_model(c) for c in recipe.comments],
            created_at=to_iso(recipe.created_at),
            updated_at=to_iso(recipe.updated_at),
        )


class RecipeListResponse(BaseModel):
    items: list[RecipeResponse]
    pagination: PaginationMeta


class LikeResponse(BaseModel):
    liked: bool
    likes: int


class MyRating(BaseModel):
    stars: int
    comment: Optional[str] = None


class RatingsResponse(BaseModel):
    ratings: list[RatingOut]
    stats: RatingStats
    mine: Optional[MyRating] = None


class CommentsResponse(BaseModel):
    comments: list[CommentOut]
