"""
Response DTOs for user data.

UserResponse      — public user shape (never includes hashes or challenges)
UserListResponse  — GET /api/users  (admin)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.models.user import UserDoc
from shared.datetime_utils import to_iso


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    fullname: str
    avatar_url: Optional[str] = None
    role: str
    status: str
    email_verified: bool
    created_at: Optional[str] = None  # ISO 8601 string
    updated_at: Optional[str] = None

    @classmethod
    def from_doc(cls, user: UserDoc) -> "UserResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            fullname=user.fullname,
            avatar_url=user.avatar_url,
            role=user.role,
            status=user.status,
            email_verified=user.email_verified,
            created_at=to_iso(user.created_at),
            updated_at=to_iso(user.updated_at),
        )


class UserListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[UserResponse]
    pagination: PaginationMeta
