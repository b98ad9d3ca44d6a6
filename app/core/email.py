import logging

import aiosmtplib
from email.message import EmailMessage
from app.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(subject: str, email_to: str, html: str, text: str = "") -> None:
    """
    Sends an email asynchronously using SMTP.

    Raises aiosmtplib.SMTPException / OSError on delivery failure; callers
    decide whether that matters.
    """
    message = EmailMessage()
    message["From"] = settings.EMAILS_FROM_EMAIL
    message["To"] = email_to
    message["Subject"] = subject
    message.set_content(text or "This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")

    # In Dev/Test, if no config provided, just log
    if settings.SMTP_HOST == "localhost":
        logger.info("[EMAIL SKIPPED] To: %s | Subject: %s", email_to, subject)
        return

    await aiosmtplib.send(
        message,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=settings.SMTP_USE_TLS,
    )
