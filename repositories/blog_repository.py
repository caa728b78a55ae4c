"""BlogRepository — reads and writes against the `blogs` collection."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from schemas.models.blog import BlogDoc


class BlogRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def create(self, doc: dict) -> BlogDoc:
        result = await self._col.insert_one(doc)
        return BlogDoc.from_mongo({**doc, "_id": result.inserted_id})

    async def find_by_id(self, blog_id: ObjectId) -> Optional[BlogDoc]:
        return BlogDoc.from_mongo(await self._col.find_one({"_id": blog_id}))

    async def find_page(self, skip: int = 0, limit: int = 20) -> tuple[list[BlogDoc], int]:
        """Newest first."""
        cursor = self._col.find({}).sort("created_at", -1).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self._col.count_documents({})
        return [BlogDoc.from_mongo(d) for d in docs], total

    async def update_fields(
        self, blog_id: ObjectId, fields: Mapping[str, Any], now: datetime
    ) -> Optional[BlogDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": blog_id},
            {"$set": {**fields, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return BlogDoc.from_mongo(doc)

    async def delete(self, blog_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": blog_id})
        return result.deleted_count == 1

    async def add_comment(
        self, blog_id: ObjectId, comment: Mapping[str, Any]
    ) -> Optional[BlogDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": blog_id},
            {"$push": {"comments": dict(comment)}},
            return_document=ReturnDocument.AFTER,
        )
        return BlogDoc.from_mongo(doc)

    async def remove_comment(self, blog_id: ObjectId, comment_id: ObjectId) -> bool:
        result = await self._col.update_one(
            {"_id": blog_id, "comments._id": comment_id},
            {"$pull": {"comments": {"_id": comment_id}}},
        )
        return result.modified_count == 1
