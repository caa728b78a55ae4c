"""
Index bootstrap, run once from the app lifespan.

create_index is idempotent, so calling this on every startup is safe.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING

from shared.logging import get_logger

log = get_logger(__name__)

USERS = "users"
RECIPES = "recipes"
BLOGS = "blogs"


async def ensure_indexes(db) -> None:
    users = db[USERS]
    await users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
    await users.create_index(
        [("username", ASCENDING)], unique=True, name="username_unique"
    )

    recipes = db[RECIPES]
    await recipes.create_index([("created_at", DESCENDING)])
    await recipes.create_index([("tags", ASCENDING)])
    await recipes.create_index([("time.total", ASCENDING)])
    await recipes.create_index([("created_by", ASCENDING)])
    await recipes.create_index([("likes_count", DESCENDING)])

    blogs = db[BLOGS]
    await blogs.create_index([("created_at", DESCENDING)])
    await blogs.create_index([("author", ASCENDING)])

    log.info("indexes_ensured", collections=[USERS, RECIPES, BLOGS])
