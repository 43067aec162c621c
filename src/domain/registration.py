"""
Registration domain service - two-phase sign-up.

This module contains the core business logic for user registration:
an identity is first stored as a PendingRegistration, and only becomes a
Credential once the emailed verification token comes back.

Registration Lifecycle
======================

States (per email):
- ABSENT: email unknown to both stores
- PENDING: PendingRegistration exists, verification link sent
- ACTIVE: Credential exists

Transitions:
    ABSENT  -> PENDING  (submit)
    PENDING -> ACTIVE   (verify_token, exactly once)
    PENDING -> ABSENT   (verification email could not be delivered)
    PENDING -> PENDING  (submit after the retention window, if configured)

Email uniqueness across PENDING and ACTIVE is enforced by the stores at
write time; the service never checks-then-inserts.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .exceptions import EmailAlreadyClaimed, InvalidInput, InvalidToken, NotificationDeliveryError
from .models import Credential, PendingRegistration, normalize_email, utc_now
from .ports import NotificationGateway, PendingRegistrationStore, SecretHasher, TokenGenerator

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Email Verification"

VERIFICATION_TEXT = """Please verify your email by clicking the following link:

{verification_link}

If you did not sign up, you can ignore this email.
"""


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: input checks, password hashing,
    token generation, pending-record persistence, notification, and
    promotion to a Credential on verification.
    """

    pending_store: PendingRegistrationStore
    hasher: SecretHasher
    token_generator: TokenGenerator
    notifier: NotificationGateway
    base_url: str
    pending_retention: timedelta | None = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def submit(
        self, first_name: str, last_name: str, email: str, password: str
    ) -> PendingRegistration:
        """
        Register a new identity pending email verification.

        Args:
            first_name: Given name
            last_name: Family name
            email: Email address (will be normalized)
            password: Plaintext password (will be hashed)

        Returns:
            The stored PendingRegistration, including its verification token

        Raises:
            InvalidInput: If any field is blank
            EmailAlreadyClaimed: If the email is pending or registered
            NotificationDeliveryError: If the verification email could not be sent;
                the pending registration is withdrawn
        """
        if not all(value and value.strip() for value in (first_name, last_name, email, password)):
            raise InvalidInput("first name, last name, email and password are required")

        now = self.clock()
        pending = PendingRegistration(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=normalize_email(email),
            password_hash=self.hasher.hash(password),
            verification_token=self.token_generator.generate(),
            created_at=now,
        )

        reclaim_before = now - self.pending_retention if self.pending_retention else None
        if not self.pending_store.insert_if_email_unique(pending, reclaim_before=reclaim_before):
            raise EmailAlreadyClaimed(pending.email)

        try:
            self.notifier.send(
                pending.email,
                VERIFICATION_SUBJECT,
                VERIFICATION_TEXT.format(
                    verification_link=self.verification_link(pending.verification_token)
                ),
            )
        except NotificationDeliveryError:
            logger.error("Verification email failed, withdrawing registration: %s", pending.email)
            self.pending_store.delete_by_email(pending.email)
            raise

        logger.info("Registration pending verification: %s", pending.email)
        return pending

    def verify_token(self, token: str) -> Credential:
        """
        Consume a verification token and activate the identity.

        Raises:
            InvalidToken: If no pending registration holds the token
        """
        if not token or not token.strip():
            raise InvalidToken("verification token is required")

        created_after = self.clock() - self.pending_retention if self.pending_retention else None
        credential = self.pending_store.promote(token.strip(), created_after=created_after)
        if credential is None:
            logger.warning("Rejected verification token")
            raise InvalidToken("verification token is invalid")

        logger.info("Email verified, credential created: %s", credential.email)
        return credential

    def verification_link(self, token: str) -> str:
        return f"{self.base_url.rstrip('/')}/v1/verify-email/{token}"
