"""
User document model.

Maps to the `users` MongoDB collection.

`email_verification` and `password_reset` hold one outstanding challenge
each (see ChallengeRecord). They are absent from the document whenever no
challenge is outstanding; an empty record is never stored.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from schemas.models.base import MongoBaseModel, UtcDatetime

ROLES = ("user", "admin", "staff")
STATUSES = ("active", "blocked")

Role = Literal["user", "admin", "staff"]
Status = Literal["active", "blocked"]


class ChallengeState(str, Enum):
    """Lifecycle state of one proof mode (token or OTP) of a challenge.

    CONFIRMED is not represented: a confirmed challenge is unset, which
    reads back as NONE.
    """

    NONE = "none"
    ISSUED = "issued"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class ChallengeRecord(BaseModel):
    """One outstanding proof-of-possession challenge.

    Token mode and OTP mode live side by side and may both be active; they
    share a single fate, so confirming either one removes the whole record.
    Only SHA-256 digests are stored.
    """

    token_hash: Optional[str] = None
    token_expires_at: Optional[UtcDatetime] = None

    code_hash: Optional[str] = None
    code_expires_at: Optional[UtcDatetime] = None
    code_attempts: int = Field(default=0, ge=0)
    code_last_sent_at: Optional[UtcDatetime] = None

    @property
    def has_token(self) -> bool:
        return self.token_hash is not None

    @property
    def has_code(self) -> bool:
        return self.code_hash is not None

    @property
    def is_outstanding(self) -> bool:
        return self.has_token or self.has_code

    def token_state(self, now: datetime) -> ChallengeState:
        if not self.has_token or self.token_expires_at is None:
            return ChallengeState.NONE
        if self.token_expires_at <= now:
            return ChallengeState.EXPIRED
        return ChallengeState.ISSUED

    def code_state(self, now: datetime, max_attempts: int) -> ChallengeState:
        # Expiry is checked first: attempts on an expired code are never read
        if not self.has_code or self.code_expires_at is None:
            return ChallengeState.NONE
        if self.code_expires_at <= now:
            return ChallengeState.EXPIRED
        if self.code_attempts >= max_attempts:
            return ChallengeState.EXHAUSTED
        return ChallengeState.ISSUED

    def resend_available_at(self, cooldown_seconds: int) -> Optional[datetime]:
        if self.code_last_sent_at is None:
            return None
        return self.code_last_sent_at + timedelta(seconds=cooldown_seconds)


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    username: str
    email: str
    password_hash: Optional[str] = None
    fullname: str = "Anonymous"
    avatar_url: Optional[str] = None
    role: Role = "user"
    status: Status = "active"
    email_verified: bool = False
    email_verification: Optional[ChallengeRecord] = None
    password_reset: Optional[ChallengeRecord] = None
    last_email_changed_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @property
    def is_blocked(self) -> bool:
        return self.status == "blocked"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
