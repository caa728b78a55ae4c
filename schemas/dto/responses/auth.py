"""
Response DTOs for authentication endpoints.

AuthResponse              — POST /api/auth/register (201), POST /api/auth/login (200)
VerificationSentResponse  — POST /api/auth/verify/request
VerifyEmailResponse       — verify/confirm and verify/confirm-code
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.user import UserResponse


class AuthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    access_token: str
    user: UserResponse


class VerificationSentResponse(BaseModel):
    """Which proof modes were sent, so the client knows whether to show a code input."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    link_sent: bool
    code_sent: bool
    code_expires_at: Optional[str] = None  # ISO 8601 string
    resend_after_seconds: Optional[int] = None


class VerifyEmailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    email_verified: bool
