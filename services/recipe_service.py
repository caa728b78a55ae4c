"""
RecipeService — recipe CRUD, likes, ratings, comments and moderation.

Ownership rules:
    update / delete recipe       author or admin
    delete a comment             comment author or admin
    delete any comment (admin)   recipe author or admin
    hide / unhide, delete another user's rating   admin (enforced by the router)
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId

from config import MediaSettings
from errors import ForbiddenError, NotFoundError, ValidationError
from repositories.recipe_repository import SORTS, RecipeRepository
from schemas.dto.requests.recipe import CreateRecipeRequest, UpdateRecipeRequest
from schemas.models.recipe import RecipeDoc
from schemas.models.user import UserDoc
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger
from shared.validators import escape_regex

log = get_logger(__name__)

MAX_PAGE_SIZE = 100


def build_list_query(
    q: Optional[str] = None,
    tags: Optional[list[str]] = None,
    difficulty: Optional[str] = None,
    max_total_time: Optional[float] = None,
) -> dict:
    """Public listing filter. Hidden recipes never match."""
    query: dict[str, Any] = {"is_hidden": {"$ne": True}}
    pattern = escape_regex(q)
    if pattern:
        rx = {"$regex": pattern, "$options": "i"}
        query["$or"] = [{"title": rx}, {"summary": rx}, {"ingredients.name": rx}]
    if tags:
        query["tags"] = {"$in": tags}
    if difficulty:
        query["difficulty"] = difficulty
    if max_total_time is not None:
        query["time.total"] = {"$lte": max_total_time}
    return query


def parse_tags(raw: Optional[list[str]]) -> list[str]:
    """Flatten ``?tags=a,b&tags=c`` into ``["a", "b", "c"]``."""
    tags: list[str] = []
    for item in raw or []:
        tags.extend(t.strip() for t in item.split(",") if t.strip())
    return tags


def _check_paging(page: int, limit: int, sort: str) -> None:
    if page < 1:
        raise ValidationError("page must be at least 1", field="page")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
    if sort not in SORTS:
        raise ValidationError(f"sort must be one of: {', '.join(SORTS)}", field="sort")


def _is_owner_or_admin(user: UserDoc, owner_id: ObjectId) -> bool:
    return user.is_admin or user.id == owner_id


class RecipeService:
    def __init__(
        self,
        recipes: RecipeRepository,
        media: MediaSettings,
        clock: Clock = utcnow,
    ) -> None:
        self._recipes = recipes
        self._media = media
        self._clock = clock

    # ── Reads ────────────────────────────────────────────────────────────────

    async def list_recipes(
        self,
        q: Optional[str] = None,
        tags: Optional[list[str]] = None,
        difficulty: Optional[str] = None,
        max_total_time: Optional[float] = None,
        page: int = 1,
        limit: int = 12,
        sort: str = "newest",
    ) -> tuple[list[RecipeDoc], int]:
        sort = (sort or "newest").strip().lower()
        _check_paging(page, limit, sort)
        query = build_list_query(q, tags, difficulty, max_total_time)
        return await self._recipes.find_many(
            query, sort=sort, skip=(page - 1) * limit, limit=limit
        )

    async def list_by_author(
        self, author_id: ObjectId, page: int = 1, limit: int = 12, sort: str = "newest"
    ) -> tuple[list[RecipeDoc], int]:
        sort = (sort or "newest").strip().lower()
        _check_paging(page, limit, sort)
        query = {"created_by": author_id, "is_hidden": {"$ne": True}}
        return await self._recipes.find_many(
            query, sort=sort, skip=(page - 1) * limit, limit=limit
        )

    async def get_recipe(self, recipe_id: ObjectId) -> RecipeDoc:
        recipe = await self._recipes.find_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    async def _get_any(self, recipe_id: ObjectId) -> RecipeDoc:
        recipe = await self._recipes.find_by_id(recipe_id, include_hidden=True)
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    # ── Writes ───────────────────────────────────────────────────────────────

    async def create_recipe(self, user: UserDoc, data: CreateRecipeRequest) -> RecipeDoc:
        now = self._clock()
        fields = data.model_dump(mode="json", exclude_none=True)
        doc = {
            **fields,
            "time": fields.get("time") or {"prep": 0, "cook": 0, "total": 0},
            "servings": fields.get("servings", 1),
            "thumbnail": fields.get("thumbnail") or self._media.default_recipe_thumbnail or None,
            "created_by": user.id,
            "is_hidden": False,
            "likes": [],
            "likes_count": 0,
            "ratings": [],
            "comments": [],
            "created_at": now,
            "updated_at": now,
        }
        recipe = await self._recipes.create(doc)
        log.info("recipe_created", recipe_id=str(recipe.id), user_id=str(user.id))
        return recipe

    async def update_recipe(
        self, user: UserDoc, recipe_id: ObjectId, data: UpdateRecipeRequest
    ) -> RecipeDoc:
        existing = await self._get_any(recipe_id)
        if not _is_owner_or_admin(user, existing.created_by):
            raise ForbiddenError("You are not allowed to edit this recipe")

        fields = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")

        updated = await self._recipes.update_fields(recipe_id, fields, self._clock())
        if updated is None:
            raise NotFoundError("Recipe not found")
        return updated

    async def delete_recipe(self, user: UserDoc, recipe_id: ObjectId) -> None:
        existing = await self._get_any(recipe_id)
        if not _is_owner_or_admin(user, existing.created_by):
            raise ForbiddenError("You are not allowed to delete this recipe")
        await self._recipes.delete(recipe_id)
        log.info("recipe_deleted", recipe_id=str(recipe_id), user_id=str(user.id))

    async def set_hidden(self, recipe_id: ObjectId, hidden: bool) -> RecipeDoc:
        updated = await self._recipes.set_hidden(recipe_id, hidden, self._clock())
        if updated is None:
            raise NotFoundError("Recipe not found")
        log.info("recipe_visibility_changed", recipe_id=str(recipe_id), hidden=hidden)
        return updated

    # ── Interactions ─────────────────────────────────────────────────────────

    async def toggle_like(self, user: UserDoc, recipe_id: ObjectId) -> tuple[bool, int]:
        """Returns (liked, likes_count) after the toggle."""
        liked = await self._recipes.toggle_like(recipe_id, user.id)
        if liked is None:
            raise NotFoundError("Recipe not found")
        recipe = await self._get_any(recipe_id)
        return liked, recipe.likes_count

    async def rate(
        self, user: UserDoc, recipe_id: ObjectId, stars: int, comment: Optional[str] = None
    ) -> RecipeDoc:
        if not 1 <= stars <= 5:
            raise ValidationError("stars must be between 1 and 5", field="stars")
        comment = comment.strip() if comment else None
        recipe = await self._recipes.upsert_rating(
            recipe_id, user.id, stars, comment, self._clock()
        )
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    async def delete_rating(self, recipe_id: ObjectId, rater_id: ObjectId) -> RecipeDoc:
        """Remove *rater_id*'s rating (own rating, or any rating for admins)."""
        if not await self._recipes.remove_rating(recipe_id, rater_id):
            await self._get_any(recipe_id)
            raise NotFoundError("Rating not found")
        return await self._get_any(recipe_id)

    async def add_comment(self, user: UserDoc, recipe_id: ObjectId, content: str) -> RecipeDoc:
        content = content.strip()
        if not content:
            raise ValidationError("Comment must not be empty", field="content")
        comment = {
            "_id": ObjectId(),
            "user": user.id,
            "content": content,
            "created_at": self._clock(),
        }
        recipe = await self._recipes.add_comment(recipe_id, comment)
        if recipe is None:
            raise NotFoundError("Recipe not found")
        return recipe

    async def delete_comment(
        self, user: UserDoc, recipe_id: ObjectId, comment_id: ObjectId
    ) -> RecipeDoc:
        """Delete one's own comment; admins may delete any."""
        recipe = await self._get_any(recipe_id)
        target = next((c for c in recipe.comments if c.id == comment_id), None)
        if target is None:
            raise NotFoundError("Comment not found")
        if not _is_owner_or_admin(user, target.user):
            raise ForbiddenError("You are not allowed to delete this comment")
        return await self._remove_comment(recipe_id, comment_id)

    async def moderate_comment(
        self, user: UserDoc, recipe_id: ObjectId, comment_id: ObjectId
    ) -> RecipeDoc:
        """Admin deletes any comment on the recipe."""
        if not user.is_admin:
            raise ForbiddenError("Only admins can moderate comments")
        await self._get_any(recipe_id)
        return await self._remove_comment(recipe_id, comment_id)

    async def _remove_comment(self, recipe_id: ObjectId, comment_id: ObjectId) -> RecipeDoc:
        if not await self._recipes.remove_comment(recipe_id, comment_id):
            raise NotFoundError("Comment not found")
        return await self._get_any(recipe_id)
