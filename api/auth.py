"""
Authentication endpoints — /api/auth.

Registration and login return a bearer access token. Email verification and
password reset each accept either the link token or the numeric code that
was emailed; both proofs belong to one challenge, so using either consumes
both.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from config import AppSettings
from dependencies import get_auth_service, get_current_user, get_settings
from schemas.dto.requests.auth import (
    ConfirmCodeRequest,
    ConfirmTokenRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetByCodeRequest,
    ResetByTokenRequest,
)
from schemas.dto.responses.auth import (
    AuthResponse,
    VerificationSentResponse,
    VerifyEmailResponse,
)
from schemas.dto.responses.common import MessageResponse
from schemas.dto.responses.user import UserResponse
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from shared.datetime_utils import to_iso

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user, access_token = await auth.register(
        username=body.username,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        fullname=body.fullname,
    )
    return AuthResponse(
        message="Registration successful",
        access_token=access_token,
        user=UserResponse.from_doc(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user, access_token = await auth.login(body.identifier, body.password)
    return AuthResponse(
        message="Login successful",
        access_token=access_token,
        user=UserResponse.from_doc(user),
    )


@router.post("/verify/request", response_model=VerificationSentResponse)
async def request_verification(
    user: UserDoc = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> VerificationSentResponse:
    """Email a fresh verification link and/or code, replacing any earlier one."""
    issued = await auth.request_verification(user)
    return VerificationSentResponse(
        message="Verification email sent",
        link_sent=issued.token is not None,
        code_sent=issued.code is not None,
        code_expires_at=to_iso(issued.code_expires_at),
        resend_after_seconds=(
            settings.verification.resend_cooldown_seconds if issued.code else None
        ),
    )


@router.get("/verify/confirm", response_model=VerifyEmailResponse)
async def confirm_verification_link(
    token: Optional[str] = Query(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    """Target of the emailed link: ``/verify/confirm?token=...``."""
    await auth.confirm_verification_token(token)
    return VerifyEmailResponse(message="Email verified", email_verified=True)


@router.post("/verify/confirm", response_model=VerifyEmailResponse)
async def confirm_verification_token(
    body: Optional[ConfirmTokenRequest] = Body(default=None),
    token: Optional[str] = Query(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    """Token from the query string wins over the body."""
    raw = token if token is not None else (body.token if body else None)
    await auth.confirm_verification_token(raw)
    return VerifyEmailResponse(message="Email verified", email_verified=True)


@router.post("/verify/confirm-code", response_model=VerifyEmailResponse)
async def confirm_verification_code(
    body: ConfirmCodeRequest,
    user: UserDoc = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    await auth.confirm_verification_code(user, body.code)
    return VerifyEmailResponse(message="Email verified", email_verified=True)


@router.post("/forgot", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Same response whether or not the account exists."""
    message = await auth.forgot_password(body.email)
    return MessageResponse(message=message)


@router.post("/reset/token", response_model=MessageResponse)
async def reset_password_by_token(
    body: ResetByTokenRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.reset_password_by_token(body.token, body.new_password)
    return MessageResponse(message="Password has been reset")


@router.post("/reset/code", response_model=MessageResponse)
async def reset_password_by_code(
    body: ResetByCodeRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.reset_password_by_code(body.email, body.code, body.new_password)
    return MessageResponse(message="Password has been reset")
