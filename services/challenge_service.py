"""
ChallengeService — hybrid token + OTP proof-of-possession challenges.

One class, two instances: ChallengePurpose.EMAIL_VERIFICATION gates the
user's ``email_verified`` flag, ChallengePurpose.PASSWORD_RESET gates a
password update. Per purpose a user holds at most one challenge record,
which may carry a link token, a numeric code, or both:

    NONE ──issue──▶ ISSUED ──confirm (either mode)──▶ NONE
                      │
                      ├── expiry passes ──▶ EXPIRED   (that mode only)
                      └── attempts hit max ──▶ EXHAUSTED (code mode only)

Every transition is one atomic document write in UserRepository whose filter
re-checks the challenge, so racing requests cannot both succeed and the
attempt counter cannot lose increments. Issuing always overwrites the whole
record (last write wins; the stored token/code pair always comes from a
single issuance).

Plaintext tokens and codes are returned to the caller exactly once and are
never stored; only SHA-256 digests are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from bson import ObjectId

from config import VerificationSettings
from errors import InvalidChallengeError, NotFoundError, ValidationError
from repositories.user_repository import UserRepository
from schemas.models.user import ChallengeState, UserDoc
from shared.crypto import hash_secret, secrets_match
from shared.datetime_utils import Clock, minutes_after, utcnow
from shared.generators import generate_numeric_code, generate_token
from shared.logging import get_logger
from shared.validators import (
    is_valid_code,
    is_valid_token,
    normalize_code,
    normalize_token,
)

log = get_logger(__name__)

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 10


class ChallengePurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

    @property
    def field(self) -> str:
        """User document field holding the challenge record."""
        return self.value

    @property
    def on_success(self) -> dict:
        """Fields $set in the same write that consumes the challenge."""
        if self is ChallengePurpose.EMAIL_VERIFICATION:
            return {"email_verified": True}
        return {}


@dataclass(frozen=True)
class ChallengePolicy:
    token_enabled: bool
    otp_enabled: bool
    token_expires_minutes: int
    code_expires_minutes: int
    code_length: int = 6
    max_attempts: int = 5

    def __post_init__(self) -> None:
        if not (self.token_enabled or self.otp_enabled):
            raise ValueError("a challenge needs token mode, OTP mode, or both")
        if not MIN_CODE_LENGTH <= self.code_length <= MAX_CODE_LENGTH:
            raise ValueError(
                f"code_length must be {MIN_CODE_LENGTH}-{MAX_CODE_LENGTH} digits"
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def for_verification(cls, settings: VerificationSettings) -> "ChallengePolicy":
        return cls(
            token_enabled=settings.verify_mode_token,
            otp_enabled=settings.verify_mode_otp,
            token_expires_minutes=settings.verify_token_expires_min,
            code_expires_minutes=settings.verify_code_expires_min,
            code_length=settings.verify_code_length,
            max_attempts=settings.verify_max_attempts,
        )

    @classmethod
    def for_reset(cls, settings: VerificationSettings) -> "ChallengePolicy":
        return cls(
            token_enabled=settings.reset_mode_token,
            otp_enabled=settings.reset_mode_otp,
            token_expires_minutes=settings.reset_token_expires_min,
            code_expires_minutes=settings.reset_code_expires_min,
            code_length=settings.reset_code_length,
            max_attempts=settings.reset_max_attempts,
        )


@dataclass(frozen=True)
class IssuedChallenge:
    """Plaintexts for one-time delivery. Inactive modes are None."""

    token: Optional[str]
    code: Optional[str]
    token_expires_at: Optional[datetime] = None
    code_expires_at: Optional[datetime] = None


class CodeOutcome(str, Enum):
    CONFIRMED = "confirmed"
    WRONG_CODE = "wrong_code"
    NOT_AVAILABLE = "not_available"


@dataclass(frozen=True)
class CodeConfirmation:
    outcome: CodeOutcome
    user: Optional[UserDoc] = None

    @property
    def confirmed(self) -> bool:
        return self.outcome is CodeOutcome.CONFIRMED


class ChallengeService:
    def __init__(
        self,
        users: UserRepository,
        purpose: ChallengePurpose,
        policy: ChallengePolicy,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._purpose = purpose
        self._policy = policy
        self._clock = clock

    @property
    def purpose(self) -> ChallengePurpose:
        return self._purpose

    @property
    def policy(self) -> ChallengePolicy:
        return self._policy

    async def issue(
        self, user_id: ObjectId, policy: Optional[ChallengePolicy] = None
    ) -> IssuedChallenge:
        """Create a fresh challenge, replacing any outstanding one.

        Raises:
            NotFoundError: the user does not exist.
        """
        policy = policy or self._policy
        now = self._clock()

        token = code = None
        token_expires_at = code_expires_at = None
        record: dict = {
            "token_hash": None,
            "token_expires_at": None,
            "code_hash": None,
            "code_expires_at": None,
            "code_attempts": 0,
            "code_last_sent_at": None,
        }
        if policy.token_enabled:
            token = generate_token()
            token_expires_at = minutes_after(now, policy.token_expires_minutes)
            record["token_hash"] = hash_secret(token)
            record["token_expires_at"] = token_expires_at
        if policy.otp_enabled:
            code = generate_numeric_code(policy.code_length)
            code_expires_at = minutes_after(now, policy.code_expires_minutes)
            record["code_hash"] = hash_secret(code)
            record["code_expires_at"] = code_expires_at
            record["code_last_sent_at"] = now

        user = await self._users.set_challenge(
            user_id, self._purpose.field, record, now
        )
        if user is None:
            raise NotFoundError("user not found")

        log.info(
            "challenge_issued",
            purpose=self._purpose.value,
            user_id=str(user_id),
            link_mode=policy.token_enabled,
            otp_mode=policy.otp_enabled,
        )
        return IssuedChallenge(
            token=token,
            code=code,
            token_expires_at=token_expires_at,
            code_expires_at=code_expires_at,
        )

    async def confirm_by_token(self, raw_token: Optional[str]) -> UserDoc:
        """Consume the challenge whose link token matches *raw_token*.

        Malformed input is rejected before any database call. Wrong, expired,
        already used and never issued all fail the same way.

        Raises:
            ValidationError: not a 64-character hex token.
            InvalidChallengeError: no live challenge holds this token.
        """
        token = normalize_token(raw_token)
        if not is_valid_token(token):
            raise ValidationError("Invalid token format", field="token")

        now = self._clock()
        user = await self._users.consume_challenge_by_token(
            self._purpose.field, hash_secret(token), now, self._purpose.on_success
        )
        if user is None:
            log.info("challenge_token_rejected", purpose=self._purpose.value)
            raise InvalidChallengeError("Invalid or expired link")

        log.info(
            "challenge_confirmed",
            purpose=self._purpose.value,
            user_id=str(user.id),
            via="link",
        )
        return user

    async def confirm_by_code(
        self,
        selector: Mapping[str, Any],
        raw_code: Optional[str],
        max_attempts: Optional[int] = None,
    ) -> CodeConfirmation:
        """Check *raw_code* against the challenge of the user matched by *selector*.

        A wrong guess on a live code costs one attempt. Once the code is
        expired or out of attempts every guess, right or wrong, is
        NOT_AVAILABLE and nothing is written.

        Raises:
            ValidationError: not 4-10 ASCII digits (no attempt consumed).
        """
        code = normalize_code(raw_code)
        if not is_valid_code(code):
            raise ValidationError(
                f"Code must be {MIN_CODE_LENGTH}-{MAX_CODE_LENGTH} digits",
                field="code",
            )

        budget = max_attempts if max_attempts is not None else self._policy.max_attempts
        field = self._purpose.field
        now = self._clock()

        holder = await self._users.find_challenge_holder(selector)
        record = getattr(holder, field) if holder is not None else None
        if record is None or record.code_state(now, budget) is not ChallengeState.ISSUED:
            return CodeConfirmation(CodeOutcome.NOT_AVAILABLE)

        digest = hash_secret(code)
        if not secrets_match(digest, record.code_hash):
            counted = await self._users.record_failed_code_attempt(
                selector, field, record.code_hash, now, budget
            )
            if not counted:
                return CodeConfirmation(CodeOutcome.NOT_AVAILABLE)
            log.info(
                "challenge_wrong_guess",
                purpose=self._purpose.value,
                user_id=str(holder.id),
                attempts=record.code_attempts + 1,
                max_attempts=budget,
            )
            return CodeConfirmation(CodeOutcome.WRONG_CODE)

        user = await self._users.consume_challenge_by_code(
            selector, field, digest, now, budget, self._purpose.on_success
        )
        if user is None:
            return CodeConfirmation(CodeOutcome.NOT_AVAILABLE)

        log.info(
            "challenge_confirmed",
            purpose=self._purpose.value,
            user_id=str(user.id),
            via="otp",
        )
        return CodeConfirmation(CodeOutcome.CONFIRMED, user)

    # Password reset is keyed by email: the requester is not signed in.
    # Consuming the challenge and writing the new password hash are two
    # separate writes; a crash in between leaves the old password in place
    # with the reset cleared, and the user simply requests a new reset.

    async def consume_reset_token(self, raw_token: Optional[str]) -> UserDoc:
        return await self.confirm_by_token(raw_token)

    async def consume_reset_code(
        self, email: str, raw_code: Optional[str]
    ) -> CodeConfirmation:
        return await self.confirm_by_code(
            {"email": email.strip().lower()}, raw_code
        )
