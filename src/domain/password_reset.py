"""
Password reset domain service - single-use, expiring reset tokens.

Only the most recently issued token is honourable: each request overwrites
the stored token, so earlier links die even before their expiry. Expiry is
checked lazily whenever a token is presented; nothing sweeps old tokens.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .exceptions import InvalidInput, InvalidOrExpiredToken, UnknownAccount
from .models import Credential, normalize_email, utc_now
from .ports import CredentialStore, NotificationGateway, SecretHasher, TokenGenerator

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)

PASSWORD_RESET_SUBJECT = "Password Reset"

PASSWORD_RESET_TEXT = """You are receiving this because you (or someone else) requested a password reset for your account.

Please click on the following link, or paste it into your browser, to complete the process:

{reset_link}

The link is valid for {ttl_minutes} minutes. If you did not request this, please ignore this email and your password will remain unchanged.
"""


@dataclass
class PasswordResetService:
    """Domain service for requesting and consuming password reset tokens."""

    credential_store: CredentialStore
    hasher: SecretHasher
    token_generator: TokenGenerator
    notifier: NotificationGateway
    base_url: str
    token_ttl: timedelta = RESET_TOKEN_TTL
    clock: Callable[[], datetime] = field(default=utc_now)

    def request_reset(self, email: str) -> Credential:
        """
        Issue a fresh reset token and email the reset link.

        Any previously issued token is replaced and can no longer be used.

        Returns:
            The updated Credential carrying the new token and expiry

        Raises:
            UnknownAccount: If no credential exists for the email
            NotificationDeliveryError: If the email could not be sent; the
                token stays stored and a later request replaces it
        """
        normalized_email = normalize_email(email or "")
        credential = self.credential_store.find_by_email(normalized_email) if normalized_email else None
        if credential is None:
            logger.info("Password reset requested for unknown account")
            raise UnknownAccount(normalized_email)

        issued_at = self.clock()
        credential = self.credential_store.set_reset_token(
            credential.email,
            self.token_generator.generate(),
            issued_at + self.token_ttl,
        )
        if credential is None:
            logger.info("Password reset requested for unknown account")
            raise UnknownAccount(normalized_email)

        self.notifier.send(
            credential.email,
            PASSWORD_RESET_SUBJECT,
            PASSWORD_RESET_TEXT.format(
                reset_link=self.reset_link(credential.reset_token),
                ttl_minutes=int(self.token_ttl.total_seconds() // 60),
            ),
        )
        logger.info("Password reset token issued: %s", credential.email)
        return credential

    def check_reset_token(self, token: str) -> Credential:
        """
        Look up the credential a reset token belongs to, without consuming it.

        Raises:
            InvalidOrExpiredToken: If the token is unknown, replaced, used or expired
        """
        credential = None
        if token and token.strip():
            credential = self.credential_store.find_by_reset_token(token.strip(), self.clock())
        if credential is None:
            logger.warning("Rejected password reset token")
            raise InvalidOrExpiredToken("reset token is invalid or has expired")
        return credential

    def consume_reset(self, token: str, new_password: str) -> Credential:
        """
        Set a new password using a reset token; the token is spent.

        Raises:
            InvalidInput: If the new password is blank
            InvalidOrExpiredToken: If the token is unknown, replaced, used or expired
        """
        if not new_password or not new_password.strip():
            raise InvalidInput("new password is required")

        self.check_reset_token(token)
        password_hash = self.hasher.hash(new_password)

        # The store re-checks token and expiry in the same write, so a
        # concurrent consume of the same token loses here.
        credential = self.credential_store.consume_reset_token(
            token.strip(), password_hash, self.clock()
        )
        if credential is None:
            logger.warning("Reset token consumed concurrently")
            raise InvalidOrExpiredToken("reset token is invalid or has expired")

        logger.info("Password has been reset: %s", credential.email)
        return credential

    def reset_link(self, token: str) -> str:
        return f"{self.base_url.rstrip('/')}/v1/reset/{token}"
