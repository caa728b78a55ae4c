"""Template rendering shared by every EmailProvider implementation.

Subclasses implement ``send``; the message-level methods render the Jinja2
templates under templates/emails and hand the result to it.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from infrastructure.email.protocol import SendResult

_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class TemplatedEmailProvider:
    def __init__(
        self,
        app_name: str = "Recipe Hub",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._app_name = app_name
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
        to_name: Optional[str] = None,
    ) -> SendResult:
        raise NotImplementedError

    def _render(self, template_name: str, **context) -> str:
        template = self._jinja.get_template(template_name)
        return template.render(app_name=self._app_name, **context)

    @staticmethod
    def _challenge_text(
        title: str,
        user_name: Optional[str],
        link: Optional[str],
        otp_code: Optional[str],
        expires_minutes: int,
        app_name: str,
    ) -> str:
        greeting = f"Hello {user_name}," if user_name else "Hello,"
        lines = [f"{title} - {app_name}", "", greeting, ""]
        if link:
            lines += ["Open this link:", link, ""]
        if otp_code:
            lines += [f"Or enter this code: {otp_code}", ""]
        lines += [
            f"This expires in {expires_minutes} minutes.",
            "If you did not request this, you can ignore this email.",
        ]
        return "\n".join(lines)

    async def send_verification_email(
        self,
        email: str,
        user_name: Optional[str],
        link: Optional[str],
        otp_code: Optional[str],
        expires_minutes: int,
    ) -> SendResult:
        subject = f"Verify your email - {self._app_name}"
        html_body = self._render(
            "verification.html",
            user_name=user_name,
            button_label="Verify email",
            link=link,
            otp_code=otp_code,
            minutes=expires_minutes,
        )
        text_body = self._challenge_text(
            "Verify Your Email", user_name, link, otp_code, expires_minutes, self._app_name
        )
        return await self.send(email, subject, html_body, text_body, user_name)

    async def send_password_reset_email(
        self,
        email: str,
        user_name: Optional[str],
        link: Optional[str],
        otp_code: Optional[str],
        expires_minutes: int,
    ) -> SendResult:
        subject = f"Reset your password - {self._app_name}"
        html_body = self._render(
            "password_reset.html",
            user_name=user_name,
            button_label="Reset password",
            link=link,
            otp_code=otp_code,
            minutes=expires_minutes,
        )
        text_body = self._challenge_text(
            "Reset Your Password", user_name, link, otp_code, expires_minutes, self._app_name
        )
        return await self.send(email, subject, html_body, text_body, user_name)

    async def send_email_changed_notice(
        self, old_email: str, user_name: Optional[str], new_email: str
    ) -> SendResult:
        subject = f"Your account email was changed - {self._app_name}"
        html_body = self._render(
            "email_changed.html", user_name=user_name, new_email=new_email
        )
        text_body = (
            f"Account Email Changed - {self._app_name}\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"The email on your account was changed to: {new_email}\n"
            f"The new address must be verified before it can be used.\n\n"
            f"If you did not make this change, contact support right away."
        )
        return await self.send(old_email, subject, html_body, text_body, user_name)
