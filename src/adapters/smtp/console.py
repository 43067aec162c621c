"""
Console notification gateway - Implements NotificationGateway protocol.

This module provides a console-based implementation of the domain's
notification port, logging outbound messages for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotificationGateway:
    """
    Implements NotificationGateway protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - the message body, including any
    verification or reset link, is printed so the flow can be completed
    without a mail server.
    """

    def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Log the message at INFO level (simulates email delivery).

        Args:
            to_address: Recipient email address (normalized by domain layer)
            subject: Message subject
            body: Plain-text message body
        """
        logger.info("[NOTIFICATION] To: %s Subject: %s\n%s", to_address, subject, body)
