"""ZeptoMail implementation of EmailProvider.

Sends through the ZeptoMail HTTP API via the shared async HttpClient.
Failures of any kind are logged and reported as SendResult(success=False);
nothing is retried here.
"""

from typing import Optional

from config import EmailSettings
from infrastructure.email.base import _DEFAULT_TEMPLATE_DIR, TemplatedEmailProvider
from infrastructure.email.protocol import SendResult
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_AUTH_SCHEME = "Zoho-enczapikey"


def _recipient_domain(address: str) -> str:
    return address.rpartition("@")[2] or "unknown"


class ZeptoMailProvider(TemplatedEmailProvider):
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_name: str = "Recipe Hub",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        super().__init__(app_name=app_name, template_dir=template_dir)
        self._settings = settings
        self._http = http_client

    def _authorization(self) -> str:
        # Tokens are pasted either bare or with the scheme already in front
        token = self._settings.zepto_api_token.strip()
        if token.startswith(f"{_AUTH_SCHEME} "):
            return token
        return f"{_AUTH_SCHEME} {token}"

    def _payload(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str],
        to_name: Optional[str],
    ) -> dict:
        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": to_name or to_email}}],
            "subject": subject,
            "htmlbody": html_body,
        }
        if text_body:
            payload["textbody"] = text_body
        return payload

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        to_name: Optional[str] = None,
    ) -> SendResult:
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", reason="token_not_configured")
            return SendResult(False, "email provider not configured")

        domain = _recipient_domain(to_email)
        try:
            response = await self._http.post(
                self._settings.zepto_api_url,
                json=self._payload(to_email, subject, html_body, text_body, to_name),
                headers={
                    "Authorization": self._authorization(),
                    "Content-Type": "application/json",
                },
            )
        except Exception as exc:
            log.error(
                "email_send_failed",
                reason="transport_error",
                recipient_domain=domain,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return SendResult(False, str(exc))

        if 200 <= response.status_code < 300:
            log.info("email_sent", recipient_domain=domain, subject=subject)
            return SendResult(True)

        log.error(
            "email_send_failed",
            reason="provider_rejected",
            recipient_domain=domain,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return SendResult(False, f"provider returned HTTP {response.status_code}")
