"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping.
"""

from datetime import datetime
from typing import Protocol

from .models import Credential, PendingRegistration


class SecretHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, plaintext: str) -> str:
        """Return a salted, slow hash of ``plaintext``."""
        ...

    def verify(self, plaintext: str, hashed: str) -> bool:
        """True iff ``plaintext`` is the secret ``hashed`` was made from."""
        ...

    def verify_dummy(self, plaintext: str) -> bool:
        """Spend one full comparison against a throwaway hash. Always False."""
        ...


class TokenGenerator(Protocol):
    """Port interface for opaque token production."""

    def generate(self) -> str:
        ...


class PendingRegistrationStore(Protocol):
    """Port interface for registrations awaiting email verification."""

    def find_by_email(self, email: str) -> PendingRegistration | None:
        ...

    def find_by_token(self, token: str) -> PendingRegistration | None:
        ...

    def insert_if_email_unique(
        self, pending: PendingRegistration, reclaim_before: datetime | None = None
    ) -> bool:
        """
        Atomically claim the email and store the pending registration.

        The email must be absent from both the pending and credential stores.
        When ``reclaim_before`` is given, a pending row for the same email
        created before that instant is treated as abandoned and replaced.

        Args:
            pending: Registration to store (email already normalized)
            reclaim_before: Cutoff for abandoned pending rows, or None

        Returns:
            True if stored, False if the email is already claimed
        """
        ...

    def delete_by_email(self, email: str) -> bool:
        """Remove the pending registration and release its email claim."""
        ...

    def promote(self, token: str, created_after: datetime | None = None) -> Credential | None:
        """
        Move the pending registration holding ``token`` into the credential store.

        Deleting the pending row and inserting the credential happen as one
        indivisible step. Of several concurrent calls with the same token,
        at most one returns a Credential.

        Args:
            token: Verification token from the emailed link
            created_after: Reject pending rows created at or before this instant

        Returns:
            The new Credential, or None if no (fresh) pending row holds the token
        """
        ...


class CredentialStore(Protocol):
    """Port interface for verified identities."""

    def find_by_email(self, email: str) -> Credential | None:
        ...

    def find_by_reset_token(self, token: str, now: datetime) -> Credential | None:
        """Credential whose reset token equals ``token`` and expires after ``now``."""
        ...

    def insert_if_email_unique(self, credential: Credential) -> bool:
        """Store an out-of-band credential; False if the email is claimed anywhere."""
        ...

    def update(self, credential: Credential) -> None:
        """Overwrite the stored credential with the same email."""
        ...

    def set_reset_token(
        self, email: str, token: str, expiry: datetime
    ) -> Credential | None:
        """
        Store a new reset token and expiry for the credential with ``email``.

        Only the two reset fields are written; the previous token stops
        matching. The password hash and names are never touched, so a
        concurrent consume_reset_token cannot be undone by this call.

        Returns:
            The updated Credential, or None if no credential has that email
        """
        ...

    def consume_reset_token(
        self, token: str, password_hash: str, now: datetime
    ) -> Credential | None:
        """
        Set a new password hash and clear the reset fields, atomically.

        Only applies while ``token`` is still the stored, unexpired reset
        token, so a token can be consumed at most once.

        Returns:
            The updated Credential, or None if the token no longer matches
        """
        ...


class NotificationGateway(Protocol):
    """Port interface for outbound message delivery."""

    def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Deliver a message.

        Raises:
            NotificationDeliveryError: If the message could not be delivered
        """
        ...
