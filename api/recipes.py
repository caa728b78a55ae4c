"""
Recipe endpoints — /api/recipes.

Public reads, authenticated writes and interactions, admin moderation.
Ownership checks live in RecipeService; admin-only routes are gated here.
"""

from __future__ import annotations

from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query

from dependencies import get_current_user, get_recipe_service, object_id, require_admin
from schemas.dto.requests.recipe import (
    CommentRequest,
    CreateRecipeRequest,
    RateRecipeRequest,
    UpdateRecipeRequest,
)
from schemas.dto.responses.common import MessageResponse, PaginationMeta
from schemas.dto.responses.recipe import (
    CommentOut,
    CommentsResponse,
    LikeResponse,
    MyRating,
    RatingOut,
    RatingsResponse,
    RatingStats,
    RecipeListResponse,
    RecipeResponse,
)
from schemas.models.recipe import Difficulty, RecipeDoc
from schemas.models.user import UserDoc
from services.recipe_service import RecipeService, parse_tags

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _ratings_response(recipe: RecipeDoc, user_id: ObjectId) -> RatingsResponse:
    mine = next((r for r in recipe.ratings if r.user == user_id), None)
    return RatingsResponse(
        ratings=[RatingOut.from_model(r) for r in recipe.ratings],
        stats=RatingStats.of(recipe.ratings),
        mine=MyRating(stars=mine.stars, comment=mine.comment) if mine else None,
    )


def _comments_response(recipe: RecipeDoc) -> CommentsResponse:
    return CommentsResponse(comments=[CommentOut.from_model(c) for c in recipe.comments])


def _list_response(
    items: list[RecipeDoc], page: int, limit: int, total: int
) -> RecipeListResponse:
    return RecipeListResponse(
        items=[RecipeResponse.from_doc(r) for r in items],
        pagination=PaginationMeta.build(page, limit, total),
    )


# ── Reads ───────────────────────────────────────────────────────────────────


@router.get("", response_model=RecipeListResponse)
async def list_recipes(
    q: Optional[str] = Query(default=None, max_length=200),
    tags: Optional[list[str]] = Query(default=None),
    difficulty: Optional[Difficulty] = Query(default=None),
    max_total_time: Optional[float] = Query(default=None, ge=0),
    page: int = 1,
    limit: int = 12,
    sort: str = "newest",
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeListResponse:
    items, total = await recipes.list_recipes(
        q=q,
        tags=parse_tags(tags),
        difficulty=difficulty,
        max_total_time=max_total_time,
        page=page,
        limit=limit,
        sort=sort,
    )
    return _list_response(items, page, limit, total)


@router.get("/by-user/{user_id}", response_model=RecipeListResponse)
async def list_by_author(
    user_id: str,
    page: int = 1,
    limit: int = 12,
    sort: str = "newest",
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeListResponse:
    items, total = await recipes.list_by_author(
        object_id(user_id, field="user_id"), page=page, limit=limit, sort=sort
    )
    return _list_response(items, page, limit, total)


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = await recipes.get_recipe(object_id(recipe_id))
    return RecipeResponse.from_doc(recipe)


# ── Writes ──────────────────────────────────────────────────────────────────


@router.post("", response_model=RecipeResponse, status_code=201)
async def create_recipe(
    body: CreateRecipeRequest,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = await recipes.create_recipe(user, body)
    return RecipeResponse.from_doc(recipe)


@router.put("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: str,
    body: UpdateRecipeRequest,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = await recipes.update_recipe(user, object_id(recipe_id), body)
    return RecipeResponse.from_doc(recipe)


@router.delete("/{recipe_id}", response_model=MessageResponse)
async def delete_recipe(
    recipe_id: str,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> MessageResponse:
    await recipes.delete_recipe(user, object_id(recipe_id))
    return MessageResponse(message="Recipe deleted")


# ── Interactions ────────────────────────────────────────────────────────────


@router.post("/{recipe_id}/like", response_model=LikeResponse)
async def toggle_like(
    recipe_id: str,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> LikeResponse:
    liked, likes = await recipes.toggle_like(user, object_id(recipe_id))
    return LikeResponse(liked=liked, likes=likes)


@router.post("/{recipe_id}/rate", response_model=RatingsResponse)
async def rate_recipe(
    recipe_id: str,
    body: RateRecipeRequest,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RatingsResponse:
    """Rating again replaces the caller's previous rating."""
    recipe = await recipes.rate(user, object_id(recipe_id), body.stars, body.comment)
    return _ratings_response(recipe, user.id)


@router.delete("/{recipe_id}/rating", response_model=RatingsResponse)
async def delete_own_rating(
    recipe_id: str,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RatingsResponse:
    recipe = await recipes.delete_rating(object_id(recipe_id), user.id)
    return _ratings_response(recipe, user.id)


@router.post("/{recipe_id}/comments", response_model=CommentsResponse, status_code=201)
async def add_comment(
    recipe_id: str,
    body: CommentRequest,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> CommentsResponse:
    recipe = await recipes.add_comment(user, object_id(recipe_id), body.content)
    return _comments_response(recipe)


@router.delete("/{recipe_id}/comments/{comment_id}", response_model=CommentsResponse)
async def delete_comment(
    recipe_id: str,
    comment_id: str,
    user: UserDoc = Depends(get_current_user),
    recipes: RecipeService = Depends(get_recipe_service),
) -> CommentsResponse:
    recipe = await recipes.delete_comment(
        user, object_id(recipe_id), object_id(comment_id, field="comment_id")
    )
    return _comments_response(recipe)


@router.delete("/{recipe_id}/comments/{comment_id}/admin", response_model=CommentsResponse)
async def moderate_comment(
    recipe_id: str,
    comment_id: str,
    admin: UserDoc = Depends(require_admin),
    recipes: RecipeService = Depends(get_recipe_service),
) -> CommentsResponse:
    """Admin removes any comment on the recipe."""
    recipe = await recipes.moderate_comment(
        admin, object_id(recipe_id), object_id(comment_id, field="comment_id")
    )
    return _comments_response(recipe)


# ── Admin ───────────────────────────────────────────────────────────────────


@router.patch("/{recipe_id}/hide", response_model=RecipeResponse)
async def hide_recipe(
    recipe_id: str,
    admin: UserDoc = Depends(require_admin),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = await recipes.set_hidden(object_id(recipe_id), True)
    return RecipeResponse.from_doc(recipe)


@router.patch("/{recipe_id}/unhide", response_model=RecipeResponse)
async def unhide_recipe(
    recipe_id: str,
    admin: UserDoc = Depends(require_admin),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = await recipes.set_hidden(object_id(recipe_id), False)
    return RecipeResponse.from_doc(recipe)


@router.delete("/{recipe_id}/rating/{user_id}", response_model=RatingsResponse)
async def delete_user_rating(
    recipe_id: str,
    user_id: str,
    admin: UserDoc = Depends(require_admin),
    recipes: RecipeService = Depends(get_recipe_service),
) -> RatingsResponse:
    recipe = await recipes.delete_rating(
        object_id(recipe_id), object_id(user_id, field="user_id")
    )
    return _ratings_response(recipe, admin.id)
