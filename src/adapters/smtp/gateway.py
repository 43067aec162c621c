"""
SMTP notification gateway - Implements NotificationGateway protocol.

Delivers plain-text messages through an SMTP relay. Every failure,
including a missing host, surfaces as NotificationDeliveryError so the
calling flow can react; nothing is swallowed.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from src.config.settings import Settings
from src.domain.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


class SmtpNotificationGateway:
    """Sends one message per call over a fresh SMTP connection."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _create_message(self, to_address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self._settings.smtp_from_email
        message["To"] = to_address
        message.set_content(body)
        return message

    def _connect(self) -> smtplib.SMTP:
        settings = self._settings
        if settings.smtp_use_tls and not settings.smtp_starttls:
            # Implicit TLS (port 465)
            return smtplib.SMTP_SSL(
                settings.smtp_host,
                settings.smtp_port,
                timeout=settings.smtp_timeout_seconds,
                context=ssl.create_default_context(),
            )
        return smtplib.SMTP(
            settings.smtp_host,
            settings.smtp_port,
            timeout=settings.smtp_timeout_seconds,
        )

    def send(self, to_address: str, subject: str, body: str) -> None:
        settings = self._settings
        if not settings.smtp_host:
            logger.error("SMTP host not configured")
            raise NotificationDeliveryError("SMTP host not configured")

        message = self._create_message(to_address, subject, body)
        smtp_password = (
            settings.smtp_password.get_secret_value() if settings.smtp_password else ""
        )

        try:
            with self._connect() as server:
                if settings.smtp_starttls:
                    server.starttls(context=ssl.create_default_context())
                if settings.smtp_user:
                    server.login(settings.smtp_user, smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_address, type(e).__name__)
            raise NotificationDeliveryError(f"delivery to {to_address} failed") from e

        logger.info("Email sent to %s", to_address)
