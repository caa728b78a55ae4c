"""
AuthService — registration, login, and the email verification / password
reset flows built on two ChallengeService instances.

Error mapping for the OTP outcomes:

    WRONG_CODE     → WrongCodeError             (one attempt consumed)
    NOT_AVAILABLE  → ChallengeUnavailableError  (expired, exhausted, not requested)

forgot_password never reveals whether an account exists: unknown email,
unverified email, cooldown and delivery failure are logged and the caller
always gets the same generic response.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from bson import ObjectId

from config import AppSettings
from errors import (
    AuthenticationError,
    ChallengeUnavailableError,
    ConflictError,
    EmailDeliveryError,
    ForbiddenError,
    RateLimitError,
    ValidationError,
    WrongCodeError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import UserRepository
from schemas.models.user import ChallengeRecord, UserDoc
from services.challenge_service import (
    ChallengeService,
    CodeConfirmation,
    CodeOutcome,
    IssuedChallenge,
)
from services.token_service import TokenService
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger
from shared.validators import password_problems, validate_username

log = get_logger(__name__)

GENERIC_RESET_MESSAGE = (
    "If an account with that email exists, we have sent instructions to reset the password."
)


def check_new_password(password: str, field: str = "password") -> None:
    """Raise ValidationError listing every unmet strength rule."""
    problems = password_problems(password)
    if problems:
        raise ValidationError(
            "Password must have at least 8 characters with upper case, lower case and a number",
            field=field,
            details=problems,
        )


def raise_for_outcome(result: CodeConfirmation) -> UserDoc:
    if result.outcome is CodeOutcome.WRONG_CODE:
        raise WrongCodeError("Incorrect code", field="code")
    if result.outcome is CodeOutcome.NOT_AVAILABLE:
        raise ChallengeUnavailableError(
            "Code expired or not requested. Please request a new one.", field="code"
        )
    return result.user


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        verification: ChallengeService,
        reset: ChallengeService,
        tokens: TokenService,
        email: EmailProvider,
        settings: AppSettings,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._verification = verification
        self._reset = reset
        self._tokens = tokens
        self._email = email
        self._settings = settings
        self._clock = clock

    # ── Accounts ─────────────────────────────────────────────────────────────

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        confirm_password: str,
        fullname: Optional[str] = None,
    ) -> tuple[UserDoc, str]:
        """Create an unverified account and return it with an access token.

        Raises:
            ValidationError: bad username, weak password, confirmation mismatch.
            ConflictError: username or email already taken.
        """
        username = username.strip()
        email = email.strip().lower()
        if not validate_username(username):
            raise ValidationError(
                "Username may only contain letters, digits and underscores (3-30 characters)",
                field="username",
            )
        check_new_password(password)
        if password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")

        if await self._users.find_by_username(username) is not None:
            raise ConflictError("Username is already taken", field="username")
        if await self._users.find_by_email(email) is not None:
            raise ConflictError("Email is already registered", field="email")

        now = self._clock()
        doc = {
            "username": username,
            "email": email,
            "password_hash": hash_password(password),
            "fullname": (fullname or "").strip() or "Anonymous",
            "avatar_url": self._settings.media.default_avatar_url or None,
            "role": "user",
            "status": "active",
            "email_verified": False,
            "created_at": now,
            "updated_at": now,
        }
        # A concurrent registration can still win the race; the unique index
        # raises DuplicateKeyError, which the error translator maps to 409.
        user_id = await self._users.create(doc)
        user = UserDoc.from_mongo({**doc, "_id": user_id})

        log.info("user_registered", user_id=str(user_id))
        return user, self._tokens.issue_access_token(str(user_id), user.role)

    async def login(self, identifier: str, password: str) -> tuple[UserDoc, str]:
        """Unknown account and wrong password fail identically."""
        user = await self._users.find_by_identifier(identifier)
        if user is None or not user.password_hash:
            log.info("login_failed", reason="unknown_identifier")
            raise AuthenticationError("Invalid credentials")
        if not verify_password(password, user.password_hash):
            log.info("login_failed", reason="wrong_password", user_id=str(user.id))
            raise AuthenticationError("Invalid credentials")
        if user.is_blocked:
            log.info("login_failed", reason="blocked", user_id=str(user.id))
            raise ForbiddenError("Your account has been blocked")

        log.info("login_success", user_id=str(user.id))
        return user, self._tokens.issue_access_token(str(user.id), user.role)

    async def resolve_user(self, access_jwt: str) -> UserDoc:
        """Map a bearer token to a live, non-blocked user."""
        claims = self._tokens.verify_access_token(access_jwt)
        sub = claims.get("sub")
        if not sub or not ObjectId.is_valid(sub):
            raise AuthenticationError("invalid access token")
        user = await self._users.find_by_id(ObjectId(sub))
        if user is None:
            raise AuthenticationError("user no longer exists")
        if user.is_blocked:
            raise ForbiddenError("Your account has been blocked")
        return user

    # ── Email verification ───────────────────────────────────────────────────

    def _cooldown_until(self, record: Optional[ChallengeRecord]) -> Optional[datetime]:
        if record is None or not record.is_outstanding:
            return None
        return record.resend_available_at(
            self._settings.verification.resend_cooldown_seconds
        )

    def _expires_minutes(self, service: ChallengeService, issued: IssuedChallenge) -> int:
        policy = service.policy
        minutes = []
        if issued.token:
            minutes.append(policy.token_expires_minutes)
        if issued.code:
            minutes.append(policy.code_expires_minutes)
        return min(minutes)

    async def request_verification(self, user: UserDoc) -> IssuedChallenge:
        """Issue a verification challenge and email it.

        The challenge is persisted before sending; if delivery fails the user
        can simply request again once the cooldown has passed.

        Raises:
            ValidationError: email already verified.
            RateLimitError: a code was sent less than the cooldown ago.
            EmailDeliveryError: the email provider reported a failure.
        """
        if user.email_verified:
            raise ValidationError("Email is already verified")

        now = self._clock()
        available_at = self._cooldown_until(user.email_verification)
        if available_at is not None and now < available_at:
            retry_after = math.ceil((available_at - now).total_seconds())
            raise RateLimitError(
                "Please wait before requesting another verification email",
                details={"retry_after_seconds": retry_after},
            )

        issued = await self._verification.issue(user.id)
        link = (
            f"{self._settings.app_url}/verify-email?token={issued.token}"
            if issued.token
            else None
        )
        result = await self._email.send_verification_email(
            user.email,
            user.username,
            link,
            issued.code,
            self._expires_minutes(self._verification, issued),
        )
        if not result.success:
            log.error(
                "verification_email_failed",
                user_id=str(user.id),
                error=result.error,
            )
            raise EmailDeliveryError(
                "Could not send the verification email. Please try again later."
            )
        return issued

    async def confirm_verification_token(self, raw_token: Optional[str]) -> UserDoc:
        return await self._verification.confirm_by_token(raw_token)

    async def confirm_verification_code(self, user: UserDoc, raw_code: str) -> UserDoc:
        result = await self._verification.confirm_by_code({"_id": user.id}, raw_code)
        return raise_for_outcome(result)

    # ── Password reset ───────────────────────────────────────────────────────

    async def forgot_password(self, email: str) -> str:
        """Start a reset if the account qualifies. Always returns the same message."""
        user = await self._users.find_by_email(email)
        if user is None:
            log.info("password_reset_skipped", reason="unknown_email")
            return GENERIC_RESET_MESSAGE
        if not user.email_verified:
            log.info("password_reset_skipped", reason="unverified", user_id=str(user.id))
            return GENERIC_RESET_MESSAGE
        if user.is_blocked:
            log.info("password_reset_skipped", reason="blocked", user_id=str(user.id))
            return GENERIC_RESET_MESSAGE

        now = self._clock()
        available_at = self._cooldown_until(user.password_reset)
        if available_at is not None and now < available_at:
            log.info("password_reset_skipped", reason="cooldown", user_id=str(user.id))
            return GENERIC_RESET_MESSAGE

        issued = await self._reset.issue(user.id)
        link = (
            f"{self._settings.app_url}/reset-password?token={issued.token}"
            if issued.token
            else None
        )
        result = await self._email.send_password_reset_email(
            user.email,
            user.username,
            link,
            issued.code,
            self._expires_minutes(self._reset, issued),
        )
        if not result.success:
            log.error("password_reset_email_failed", user_id=str(user.id), error=result.error)
        return GENERIC_RESET_MESSAGE

    async def reset_password_by_token(self, raw_token: str, new_password: str) -> UserDoc:
        check_new_password(new_password, field="new_password")
        user = await self._reset.consume_reset_token(raw_token)
        await self._users.update_password(user.id, hash_password(new_password), self._clock())
        log.info("password_reset_completed", user_id=str(user.id), via="link")
        return user

    async def reset_password_by_code(
        self, email: str, raw_code: str, new_password: str
    ) -> UserDoc:
        check_new_password(new_password, field="new_password")
        user = raise_for_outcome(await self._reset.consume_reset_code(email, raw_code))
        await self._users.update_password(user.id, hash_password(new_password), self._clock())
        log.info("password_reset_completed", user_id=str(user.id), via="otp")
        return user
