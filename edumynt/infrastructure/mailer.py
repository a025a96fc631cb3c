"""Transactional email for recovery and signup confirmation links.

Modes:
    - console: log the message (development)
    - smtp: deliver through an SMTP relay
"""
from email.message import EmailMessage

import aiosmtplib
import structlog

from ..config import settings

logger = structlog.get_logger(__name__)

TEMPLATES = {
    "recovery": (
        "Reset your Edumynt password",
        "Hi,\n\nWe received a request to reset your password. Follow this link to choose a new one:\n\n"
        "{link}\n\nIf you didn't ask for this, you can ignore this email.\n\nThe Edumynt Team",
    ),
    "signup": (
        "Confirm your Edumynt account",
        "Welcome to Edumynt!\n\nPlease confirm your email address by following this link:\n\n"
        "{link}\n\nThe Edumynt Team",
    ),
}


class Mailer:
    def __init__(self, mode: str | None = None):
        self.mode = mode or settings.EMAIL_MODE
        if self.mode == "smtp" and not settings.SMTP_HOST:
            logger.warning("smtp_host_missing", fallback="console")
            self.mode = "console"

    def build(self, template_key: str, to: str, link: str) -> EmailMessage:
        if template_key not in TEMPLATES:
            raise ValueError(f"Unknown email template: {template_key}")
        subject, body = TEMPLATES[template_key]
        message = EmailMessage()
        message["From"] = settings.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body.format(link=link))
        return message

    async def send(self, template_key: str, to: str, link: str) -> bool:
        message = self.build(template_key, to, link)
        if self.mode == "console":
            logger.info("email_console", template=template_key, to=to, link=link)
            return True
        try:
            await aiosmtplib.send(
                message,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER,
                password=settings.SMTP_PASSWORD,
                use_tls=settings.SMTP_PORT == 465,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("email_send_failed", template=template_key, to=to, error=str(e))
            return False
        logger.info("email_sent", template=template_key, to=to)
        return True

    async def send_password_reset(self, to: str, link: str) -> bool:
        return await self.send("recovery", to, link)

    async def send_signup_confirmation(self, to: str, link: str) -> bool:
        return await self.send("signup", to, link)


def get_mailer() -> Mailer:
    return Mailer()
