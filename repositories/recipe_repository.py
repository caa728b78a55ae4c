"""
RecipeRepository — reads and writes against the `recipes` collection.

Array sub-fields are only ever changed with atomic operators:

    likes     $addToSet / $pull, likes_count moved by $inc in the same write
    ratings   positional $set when the user already rated, else guarded $push
    comments  $push / $pull by comment _id
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from schemas.models.recipe import RecipeDoc

SORTS: dict[str, list[tuple[str, int]]] = {
    "newest": [("created_at", -1)],
    "oldest": [("created_at", 1)],
    "popular": [("likes_count", -1), ("created_at", -1)],
}


class RecipeRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def create(self, doc: dict) -> RecipeDoc:
        result = await self._col.insert_one(doc)
        return RecipeDoc.from_mongo({**doc, "_id": result.inserted_id})

    async def find_by_id(
        self, recipe_id: ObjectId, include_hidden: bool = False
    ) -> Optional[RecipeDoc]:
        query: dict = {"_id": recipe_id}
        if not include_hidden:
            query["is_hidden"] = {"$ne": True}
        return RecipeDoc.from_mongo(await self._col.find_one(query))

    async def find_many(
        self,
        query: Mapping[str, Any],
        sort: str = "newest",
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[RecipeDoc], int]:
        """Return one page of recipes and the total match count."""
        cursor = (
            self._col.find(dict(query))
            .sort(SORTS.get(sort, SORTS["newest"]))
            .skip(skip)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        total = await self._col.count_documents(dict(query))
        return [RecipeDoc.from_mongo(d) for d in docs], total

    async def update_fields(
        self, recipe_id: ObjectId, fields: Mapping[str, Any], now: datetime
    ) -> Optional[RecipeDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": recipe_id},
            {"$set": {**fields, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return RecipeDoc.from_mongo(doc)

    async def delete(self, recipe_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": recipe_id})
        return result.deleted_count == 1

    async def set_hidden(
        self, recipe_id: ObjectId, hidden: bool, now: datetime
    ) -> Optional[RecipeDoc]:
        return await self.update_fields(recipe_id, {"is_hidden": hidden}, now)

    # ── Likes ────────────────────────────────────────────────────────────────

    async def toggle_like(self, recipe_id: ObjectId, user_id: ObjectId) -> Optional[bool]:
        """Flip the user's like. Returns the new liked state, None if no recipe."""
        unliked = await self._col.update_one(
            {"_id": recipe_id, "likes": user_id},
            {"$pull": {"likes": user_id}, "$inc": {"likes_count": -1}},
        )
        if unliked.modified_count:
            return False

        liked = await self._col.update_one(
            {"_id": recipe_id, "likes": {"$ne": user_id}},
            {"$addToSet": {"likes": user_id}, "$inc": {"likes_count": 1}},
        )
        if liked.modified_count:
            return True

        # Neither filter matched: the recipe is gone, or a concurrent toggle
        # landed between the two writes
        doc = await self._col.find_one({"_id": recipe_id}, {"likes": 1})
        if doc is None:
            return None
        return user_id in doc.get("likes", [])

    # ── Ratings ──────────────────────────────────────────────────────────────

    async def upsert_rating(
        self,
        recipe_id: ObjectId,
        user_id: ObjectId,
        stars: int,
        comment: Optional[str],
        now: datetime,
    ) -> Optional[RecipeDoc]:
        """Replace the user's rating if present, otherwise append one."""
        for _ in range(2):
            replaced = await self._col.find_one_and_update(
                {"_id": recipe_id, "ratings.user": user_id},
                {
                    "$set": {
                        "ratings.$.stars": stars,
                        "ratings.$.comment": comment,
                        "ratings.$.updated_at": now,
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
            if replaced is not None:
                return RecipeDoc.from_mongo(replaced)

            added = await self._col.find_one_and_update(
                {"_id": recipe_id, "ratings.user": {"$ne": user_id}},
                {
                    "$push": {
                        "ratings": {
                            "user": user_id,
                            "stars": stars,
                            "comment": comment,
                            "created_at": now,
                            "updated_at": now,
                        }
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
            if added is not None:
                return RecipeDoc.from_mongo(added)

            # A concurrent request pushed this user's rating first; go round
            # once more and replace it
            if await self._col.find_one({"_id": recipe_id}, {"_id": 1}) is None:
                return None
        return None

    async def remove_rating(self, recipe_id: ObjectId, user_id: ObjectId) -> bool:
        result = await self._col.update_one(
            {"_id": recipe_id, "ratings.user": user_id},
            {"$pull": {"ratings": {"user": user_id}}},
        )
        return result.modified_count == 1

    # ── Comments ─────────────────────────────────────────────────────────────

    async def add_comment(
        self, recipe_id: ObjectId, comment: Mapping[str, Any]
    ) -> Optional[RecipeDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": recipe_id},
            {"$push": {"comments": dict(comment)}},
            return_document=ReturnDocument.AFTER,
        )
        return RecipeDoc.from_mongo(doc)

    async def remove_comment(self, recipe_id: ObjectId, comment_id: ObjectId) -> bool:
        result = await self._col.update_one(
            {"_id": recipe_id, "comments._id": comment_id},
            {"$pull": {"comments": {"_id": comment_id}}},
        )
        return result.modified_count == 1
