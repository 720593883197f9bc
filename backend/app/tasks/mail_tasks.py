"""Mail delivery over SMTP."""

import logging
import smtplib
from email.message import EmailMessage

from app.config import get_settings
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
settings = get_settings()


def build_message(to: str, subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.mail_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


@celery_app.task(
    name="app.tasks.mail_tasks.send_email",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_email(to: str, subject: str, html: str):
    """Send one HTML email through the configured SMTP relay."""
    message = build_message(to, subject, html)
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)

    logger.info("Sent '%s' to %s", subject, to)
    return {"sent": to}
