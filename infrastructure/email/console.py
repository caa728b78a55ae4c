"""Console implementation of EmailProvider, used when no ZeptoMail token is set.

Messages are written to the log instead of being delivered, so link tokens
and codes can be picked up from the dev server output.
"""

from typing import Optional

from infrastructure.email.base import TemplatedEmailProvider
from infrastructure.email.protocol import SendResult
from shared.logging import get_logger

log = get_logger(__name__)


class ConsoleEmailProvider(TemplatedEmailProvider):
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        to_name: Optional[str] = None,
    ) -> SendResult:
        log.info(
            "email_logged",
            to_email=to_email,
            subject=subject,
            body=text_body or html_body,
        )
        return SendResult(True)
