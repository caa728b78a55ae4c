"""
Request DTOs for user endpoints.

UpdateInfoRequest       — PUT /api/users/update-info
ChangePasswordRequest   — PUT /api/users/change-password
AvatarRequest           — PUT /api/users/avatar
SetStatusRequest        — PUT /api/users/{id}/status  (admin)
SetRoleRequest          — PUT /api/users/{id}/role    (admin)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl

from schemas.models.user import Role, Status


class UpdateInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[EmailStr] = None
    fullname: Optional[str] = Field(default=None, min_length=2, max_length=100)


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(alias="oldPassword")
    new_password: str = Field(alias="newPassword")
    confirm_password: str = Field(alias="confirmPassword")


class AvatarRequest(BaseModel):
    """Images are referenced by URL; uploading is handled outside this API."""

    model_config = ConfigDict(populate_by_name=True)

    avatar_url: HttpUrl = Field(alias="avatarUrl")


class SetStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Status


class SetRoleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: Role
