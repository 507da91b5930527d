"""
OpsLedger Backend — Email Delivery Service
============================================

What:  Sends password-reset emails over SMTP.
Why:   The reset flow must not block the HTTP response on a slow relay, and
       transient SMTP failures (greylisting, dropped connections) should be
       retried rather than lost.
How:   `send_password_reset` is scheduled as a FastAPI background task. The
       SMTP exchange runs in a worker thread (smtplib is blocking) inside a
       tenacity retry with exponential backoff and jitter.
       With no SMTP_HOST configured the link is logged instead, which is
       how local development and the test suite operate.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from app.config import settings
from app.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset your password"


def retry_wait():
    """Exponential backoff between the configured bounds, plus up to 1s of jitter."""
    return wait_exponential(
        multiplier=1,
        min=settings.retry_min_wait,
        max=settings.retry_max_wait,
    ) + wait_random(0, 1)


def build_reset_link(user_id: str, token: str) -> str:
    return f"{settings.client_url}/{user_id}/reset-password/{token}/"


def build_reset_message(recipient: str, link: str) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = RESET_SUBJECT
    message["From"] = settings.smtp_sender
    message["To"] = recipient
    message.set_content(
        "A password reset was requested for your account.\n\n"
        f"Open the link below within {settings.reset_token_ttl_minutes} minutes "
        "to choose a new password:\n\n"
        f"{link}\n\n"
        "If you did not request this, you can ignore this email."
    )
    return message


class EmailService:
    """Thin SMTP client; one connection per message."""

    @property
    def enabled(self) -> bool:
        return bool(settings.smtp_host)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)

    @retry(
        retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=retry_wait(),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )
    async def _send_with_retry(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._deliver, message)

    async def send(self, message: EmailMessage) -> None:
        """
        Deliver a message, retrying transient failures.

        Raises:
            EmailDeliveryError once every attempt has failed.
        """
        try:
            await self._send_with_retry(message)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            raise EmailDeliveryError(
                context={"to": message["To"], "last_error": str(last)},
            )
        logger.info("Email '%s' sent to %s", message["Subject"], message["To"])

    async def send_password_reset(self, recipient: str, user_id: str, token: str) -> None:
        """
        Background task body for POST /api/auth/reset-password.

        Delivery failures are logged here: the HTTP response has already
        been sent, so there is no caller left to surface them to.
        """
        link = build_reset_link(user_id, token)
        if not self.enabled:
            logger.info("SMTP not configured; password reset link for %s: %s", recipient, link)
            return
        try:
            await self.send(build_reset_message(recipient, link))
        except EmailDeliveryError as e:
            logger.error("Password reset email to %s failed: %s | Context: %s", recipient, e.message, e.context)


# ── Singleton Instance ────────────────────────────────────────────────────
email_service = EmailService()
