"""
UserRepository — all reads and writes against the `users` collection.

Besides plain CRUD it holds the atomic primitives the challenge state
machine is built from. Each one is a single-document operation whose filter
re-validates the challenge at write time, so concurrent requests never see
a lost update:

    set_challenge               overwrite the whole sub-document (issue)
    consume_challenge_by_token  match digest + expiry, set flag, unset record
    record_failed_code_attempt  guarded $inc of code_attempts
    consume_challenge_by_code   match digest + expiry + budget, set flag, unset
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from schemas.models.user import UserDoc

# Post-images handed back to callers never include the password hash
PUBLIC_PROJECTION = {"password_hash": 0}


class UserRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    # ── Reads ────────────────────────────────────────────────────────────────

    async def find_by_id(self, user_id: ObjectId) -> Optional[UserDoc]:
        doc = await self._col.find_one({"_id": user_id})
        return UserDoc.from_mongo(doc)

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        doc = await self._col.find_one({"email": email.strip().lower()})
        return UserDoc.from_mongo(doc)

    async def find_by_username(self, username: str) -> Optional[UserDoc]:
        doc = await self._col.find_one({"username": username.strip()})
        return UserDoc.from_mongo(doc)

    async def find_by_identifier(self, identifier: str) -> Optional[UserDoc]:
        """Look a user up by email OR username (login accepts either)."""
        value = identifier.strip()
        doc = await self._col.find_one(
            {"$or": [{"email": value.lower()}, {"username": value}]}
        )
        return UserDoc.from_mongo(doc)

    async def list_all(self, skip: int = 0, limit: int = 50) -> list[UserDoc]:
        cursor = (
            self._col.find({}, PUBLIC_PROJECTION)
            .sort("created_at", -1)
            .skip(skip)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        return [UserDoc.from_mongo(d) for d in docs]

    async def count(self) -> int:
        return await self._col.count_documents({})

    # ── Writes ───────────────────────────────────────────────────────────────

    async def create(self, doc: dict) -> ObjectId:
        """Insert a new user.

        Uniqueness of email and username is enforced by the unique indexes;
        a DuplicateKeyError propagates to the error translator.
        """
        result = await self._col.insert_one(doc)
        return result.inserted_id

    async def update_fields(
        self, user_id: ObjectId, fields: Mapping[str, Any], now: datetime
    ) -> Optional[UserDoc]:
        """Partial $set that always stamps updated_at. Returns the post-image."""
        doc = await self._col.find_one_and_update(
            {"_id": user_id},
            {"$set": {**fields, "updated_at": now}},
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def update_password(
        self, user_id: ObjectId, password_hash: str, now: datetime
    ) -> bool:
        result = await self._col.update_one(
            {"_id": user_id},
            {"$set": {"password_hash": password_hash, "updated_at": now}},
        )
        return result.matched_count == 1

    async def change_email(
        self, user_id: ObjectId, new_email: str, now: datetime
    ) -> Optional[UserDoc]:
        """Switch to *new_email* and drop both challenges tied to the old one."""
        doc = await self._col.find_one_and_update(
            {"_id": user_id},
            {
                "$set": {
                    "email": new_email,
                    "email_verified": False,
                    "last_email_changed_at": now,
                    "updated_at": now,
                },
                "$unset": {"email_verification": "", "password_reset": ""},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def delete(self, user_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": user_id})
        return result.deleted_count == 1

    # ── Challenge primitives ─────────────────────────────────────────────────

    async def set_challenge(
        self, user_id: ObjectId, field: str, record: Mapping[str, Any], now: datetime
    ) -> Optional[UserDoc]:
        """Replace the whole challenge sub-document in one write."""
        doc = await self._col.find_one_and_update(
            {"_id": user_id},
            {"$set": {field: dict(record), "updated_at": now}},
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def consume_challenge_by_token(
        self,
        field: str,
        token_hash: str,
        now: datetime,
        on_success: Mapping[str, Any],
    ) -> Optional[UserDoc]:
        """Consume a live token challenge. None when nothing matched."""
        doc = await self._col.find_one_and_update(
            {
                f"{field}.token_hash": token_hash,
                f"{field}.token_expires_at": {"$gt": now},
            },
            {
                "$set": {**on_success, "updated_at": now},
                "$unset": {field: ""},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def find_challenge_holder(self, selector: Mapping[str, Any]) -> Optional[UserDoc]:
        doc = await self._col.find_one(dict(selector))
        return UserDoc.from_mongo(doc)

    async def record_failed_code_attempt(
        self,
        selector: Mapping[str, Any],
        field: str,
        code_hash: str,
        now: datetime,
        max_attempts: int,
    ) -> bool:
        """$inc code_attempts for the issuance identified by *code_hash*.

        Returns False when the challenge was consumed, reissued, expired or
        exhausted between the caller's read and this write.
        """
        result = await self._col.update_one(
            _live_code_filter(selector, field, code_hash, now, max_attempts),
            {"$inc": {f"{field}.code_attempts": 1}},
        )
        return result.modified_count == 1

    async def consume_challenge_by_code(
        self,
        selector: Mapping[str, Any],
        field: str,
        code_hash: str,
        now: datetime,
        max_attempts: int,
        on_success: Mapping[str, Any],
    ) -> Optional[UserDoc]:
        """Consume a live OTP challenge. None when nothing matched."""
        doc = await self._col.find_one_and_update(
            _live_code_filter(selector, field, code_hash, now, max_attempts),
            {
                "$set": {**on_success, "updated_at": now},
                "$unset": {field: ""},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)


def _live_code_filter(
    selector: Mapping[str, Any],
    field: str,
    code_hash: str,
    now: datetime,
    max_attempts: int,
) -> dict:
    return {
        **selector,
        f"{field}.code_hash": code_hash,
        f"{field}.code_expires_at": {"$gt": now},
        f"{field}.code_attempts": {"$lt": max_attempts},
    }
