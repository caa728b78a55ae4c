"""EmailProvider protocol — services depend on this, not the concrete implementation."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: Optional[str] = None


class EmailProvider(Protocol):
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        to_name: Optional[str] = None,
    ) -> SendResult: ...

    async def send_verification_email(
        self,
        email: str,
        user_name: Optional[str],
        link: Optional[str],
        otp_code: Optional[str],
        expires_minutes: int,
    ) -> SendResult: ...

    async def send_password_reset_email(
        self,
        email: str,
        user_name: Optional[str],
        link: Optional[str],
        otp_code: Optional[str],
        expires_minutes: int,
    ) -> SendResult: ...

    async def send_email_changed_notice(
        self, old_email: str, user_name: Optional[str], new_email: str
    ) -> SendResult: ...
