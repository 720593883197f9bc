"""Outgoing mail, handed to the Celery mail task."""

import logging

from app.config import get_settings
from app.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)
settings = get_settings()

RESET_SUBJECT = "Password Reset - Placement Management System"


def reset_link(raw_token: str) -> str:
    return f"{settings.site_url.rstrip('/')}/auth/reset-password/{raw_token}"


def render_reset_email(raw_token: str) -> str:
    link = reset_link(raw_token)
    return (
        "<h2>Password Reset Request</h2>"
        "<p>You requested a password reset. Click the link below to reset your password:</p>"
        f'<a href="{link}">Reset Password</a>'
        f"<p>This link will expire in {settings.reset_token_ttl_minutes} minutes.</p>"
        "<p>If you did not request this, please ignore this email.</p>"
    )


def send_password_reset(email: str, raw_token: str) -> None:
    """Queue the reset email. Raises ExternalServiceError if the broker is down."""
    from app.tasks.mail_tasks import send_email

    try:
        send_email.delay(email, RESET_SUBJECT, render_reset_email(raw_token))
    except Exception as e:
        logger.error("Could not queue reset email for %s: %s", email, e)
        raise ExternalServiceError("Error sending reset email. Please try again.") from e
