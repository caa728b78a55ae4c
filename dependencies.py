"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived objects (settings, db, email provider,
token service, clock) are created once in the app lifespan and read from
app.state; repositories and services are cheap and built per request.
"""

from __future__ import annotations

from typing import Callable, Optional

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import AppSettings
from errors import AuthenticationError, ForbiddenError, InvalidIdError
from infrastructure.email.protocol import EmailProvider
from repositories import BlogRepository, RecipeRepository, UserRepository
from repositories.indexes import BLOGS, RECIPES, USERS
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.blog_service import BlogService
from services.challenge_service import ChallengePolicy, ChallengePurpose, ChallengeService
from services.recipe_service import RecipeService
from services.token_service import TokenService
from services.user_service import UserService
from shared.datetime_utils import Clock, utcnow

_bearer = HTTPBearer(auto_error=False)


def object_id(value: str, field: str = "id") -> ObjectId:
    """Parse a path/query id, raising the public invalid_id error."""
    if not ObjectId.is_valid(value):
        raise InvalidIdError("invalid id", field=field)
    return ObjectId(value)


# ── Application state ───────────────────────────────────────────────────────


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", utcnow)


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


# ── Repositories ────────────────────────────────────────────────────────────


def get_user_repository(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db[USERS])


def get_recipe_repository(db=Depends(get_db)) -> RecipeRepository:
    return RecipeRepository(db[RECIPES])


def get_blog_repository(db=Depends(get_db)) -> BlogRepository:
    return BlogRepository(db[BLOGS])


# ── Services ────────────────────────────────────────────────────────────────


def get_verification_service(
    users: UserRepository = Depends(get_user_repository),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ChallengeService:
    return ChallengeService(
        users,
        ChallengePurpose.EMAIL_VERIFICATION,
        ChallengePolicy.for_verification(settings.verification),
        clock=clock,
    )


def get_reset_service(
    users: UserRepository = Depends(get_user_repository),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ChallengeService:
    return ChallengeService(
        users,
        ChallengePurpose.PASSWORD_RESET,
        ChallengePolicy.for_reset(settings.verification),
        clock=clock,
    )


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    verification: ChallengeService = Depends(get_verification_service),
    reset: ChallengeService = Depends(get_reset_service),
    tokens: TokenService = Depends(get_token_service),
    email: EmailProvider = Depends(get_email_provider),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(users, verification, reset, tokens, email, settings, clock=clock)


def get_user_service(
    users: UserRepository = Depends(get_user_repository),
    email: EmailProvider = Depends(get_email_provider),
    clock: Clock = Depends(get_clock),
) -> UserService:
    return UserService(users, email, clock=clock)


def get_recipe_service(
    recipes: RecipeRepository = Depends(get_recipe_repository),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> RecipeService:
    return RecipeService(recipes, settings.media, clock=clock)


def get_blog_service(
    blogs: BlogRepository = Depends(get_blog_repository),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> BlogService:
    return BlogService(blogs, settings.media, clock=clock)


# ── Auth ────────────────────────────────────────────────────────────────────


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    auth: AuthService = Depends(get_auth_service),
) -> UserDoc:
    """Resolve the bearer JWT to a live user, or fail with 401/403."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("authentication required")
    return await auth.resolve_user(credentials.credentials)


def require_roles(*roles: str) -> Callable:
    """Dependency factory: the current user must hold one of *roles*."""

    async def _check(user: UserDoc = Depends(get_current_user)) -> UserDoc:
        if user.role not in roles:
            raise ForbiddenError("insufficient permissions")
        return user

    return _check


require_admin = require_roles("admin")
