"""
Request DTOs for authentication endpoints.

RegisterRequest          — POST /api/auth/register
LoginRequest             — POST /api/auth/login
ConfirmTokenRequest      — POST /api/auth/verify/confirm  (token may also be a query param)
ConfirmCodeRequest       — POST /api/auth/verify/confirm-code
ForgotPasswordRequest    — POST /api/auth/forgot
ResetByTokenRequest      — POST /api/auth/reset/token
ResetByCodeRequest       — POST /api/auth/reset/code
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    Username format and password strength are checked by AuthService so the
    error carries the offending field.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=30)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    confirm_password: str = Field(alias="confirmPassword")
    fullname: Optional[str] = Field(default=None, min_length=2, max_length=100)


class LoginRequest(BaseModel):
    """``identifier`` is either the email or the username."""

    model_config = ConfigDict(populate_by_name=True)

    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ConfirmTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None


class ConfirmCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class ResetByTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    new_password: str = Field(alias="newPassword")


class ResetByCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    code: str
    new_password: str = Field(alias="newPassword")
