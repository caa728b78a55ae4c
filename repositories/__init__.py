"""
Repository layer — one class per MongoDB collection.

Repositories own every query and update document. Services never build
MongoDB filters themselves; they call repository methods whose filters
re-check preconditions at write time.
"""

from repositories.blog_repository import BlogRepository
from repositories.indexes import ensure_indexes
from repositories.recipe_repository import RecipeRepository
from repositories.user_repository import UserRepository

__all__ = [
    "BlogRepository",
    "RecipeRepository",
    "UserRepository",
    "ensure_indexes",
]
