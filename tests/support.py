"""
Test doubles and helpers shared by the unit and integration suites.

mongomock is synchronous; the thin Async* wrappers below expose the subset of
the pymongo async API the repositories use, and mimic a ``tz_aware=True``
client: aware datetimes go in as naive UTC and come back aware.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import mongomock
from bson import ObjectId

from config import AppSettings, DatabaseSettings, JWTSettings
from infrastructure.email.base import TemplatedEmailProvider
from infrastructure.email.protocol import SendResult
from schemas.models.user import UserDoc
from shared.crypto import hash_password

TEST_JWT_SECRET = "test-secret-key-for-unit-tests-only-0123456789"
DEFAULT_PASSWORD = "Passw0rdX"


# ── Async mongomock adapter ─────────────────────────────────────────────────


def _to_naive(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, dict):
        return {k: _to_naive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_to_naive(v) for v in value)
    return value


def _to_aware(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value
    if isinstance(value, dict):
        return {k: _to_aware(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_aware(v) for v in value]
    return value


class AsyncCursor:
    def __init__(self, cursor) -> None:
        self._cursor = cursor

    def sort(self, *args, **kwargs) -> "AsyncCursor":
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, n: int) -> "AsyncCursor":
        self._cursor = self._cursor.skip(n)
        return self

    def limit(self, n: int) -> "AsyncCursor":
        self._cursor = self._cursor.limit(n)
        return self

    async def to_list(self, length: Optional[int] = None) -> list:
        docs = [_to_aware(d) for d in self._cursor]
        return docs if length is None else docs[:length]


class AsyncCollection:
    def __init__(self, collection) -> None:
        self.sync = collection

    async def find_one(self, filter=None, *args, **kwargs):
        return _to_aware(self.sync.find_one(_to_naive(filter), *args, **kwargs))

    def find(self, filter=None, *args, **kwargs) -> AsyncCursor:
        return AsyncCursor(self.sync.find(_to_naive(filter), *args, **kwargs))

    async def find_one_and_update(self, filter, update, **kwargs):
        doc = self.sync.find_one_and_update(_to_naive(filter), _to_naive(update), **kwargs)
        return _to_aware(doc)

    async def update_one(self, filter, update, **kwargs):
        return self.sync.update_one(_to_naive(filter), _to_naive(update), **kwargs)

    async def insert_one(self, doc, **kwargs):
        return self.sync.insert_one(_to_naive(doc), **kwargs)

    async def delete_one(self, filter, **kwargs):
        return self.sync.delete_one(_to_naive(filter), **kwargs)

    async def count_documents(self, filter, **kwargs) -> int:
        return self.sync.count_documents(_to_naive(filter), **kwargs)

    async def create_index(self, keys, **kwargs):
        return self.sync.create_index(keys, **kwargs)


class AsyncDatabase:
    def __init__(self, database) -> None:
        self.sync = database
        self._collections: dict[str, AsyncCollection] = {}

    def __getitem__(self, name: str) -> AsyncCollection:
        if name not in self._collections:
            self._collections[name] = AsyncCollection(self.sync[name])
        return self._collections[name]


# ── Clock ───────────────────────────────────────────────────────────────────


class FrozenClock:
    """Injectable clock; tests move time with advance()."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ── Email ───────────────────────────────────────────────────────────────────


class RecordingEmailProvider(TemplatedEmailProvider):
    """Renders the real templates and keeps every message in memory."""

    def __init__(self) -> None:
        super().__init__(app_name="Recipe Hub")
        self.messages: list[dict] = []
        self.challenges: list[dict] = []
        self.fail = False

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        to_name: Optional[str] = None,
    ) -> SendResult:
        self.messages.append(
            {"to": to_email, "subject": subject, "html": html_body, "text": text_body}
        )
        if self.fail:
            return SendResult(success=False, error="provider down")
        return SendResult(success=True)

    async def send_verification_email(self, email, user_name, link, otp_code, expires_minutes):
        self.challenges.append(
            {"kind": "verification", "to": email, "link": link, "otp": otp_code}
        )
        return await super().send_verification_email(
            email, user_name, link, otp_code, expires_minutes
        )

    async def send_password_reset_email(self, email, user_name, link, otp_code, expires_minutes):
        self.challenges.append(
            {"kind": "reset", "to": email, "link": link, "otp": otp_code}
        )
        return await super().send_password_reset_email(
            email, user_name, link, otp_code, expires_minutes
        )

    @property
    def last_challenge(self) -> dict:
        return self.challenges[-1]

    @property
    def last_link_token(self) -> Optional[str]:
        link = self.last_challenge["link"]
        return link.split("token=", 1)[1] if link else None


# ── Settings and users ──────────────────────────────────────────────────────


def make_settings(**overrides) -> AppSettings:
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/", db_name="test"),
        jwt=JWTSettings(jwt_secret=TEST_JWT_SECRET),
        **overrides,
    )


def new_db() -> AsyncDatabase:
    return AsyncDatabase(mongomock.MongoClient().db)


async def insert_user(
    db: AsyncDatabase,
    username: str = "alice",
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
    role: str = "user",
    status: str = "active",
    email_verified: bool = False,
    **extra,
) -> UserDoc:
    doc = {
        "_id": ObjectId(),
        "username": username,
        "email": email or f"{username}@example.com",
        "password_hash": hash_password(password),
        "fullname": username.title(),
        "role": role,
        "status": status,
        "email_verified": email_verified,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        **extra,
    }
    await db["users"].insert_one(doc)
    return UserDoc.from_mongo(doc)
