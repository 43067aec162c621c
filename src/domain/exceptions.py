"""
Domain exceptions - Semantic error types for the identity lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class IdentityError(Exception):
    """Base class for identity domain errors."""

    pass


class InvalidInput(IdentityError):
    """A required field is missing or blank."""

    pass


class EmailAlreadyClaimed(IdentityError):
    """Email is already pending verification or registered."""

    pass


class InvalidToken(IdentityError):
    """Verification token does not match any pending registration."""

    pass


class InvalidOrExpiredToken(IdentityError):
    """Reset token was never issued, was replaced, was used, or has expired."""

    pass


class InvalidCredentials(IdentityError):
    """Unknown email or wrong password. The two cases are indistinguishable."""

    pass


class UnknownAccount(IdentityError):
    """No credential exists for the email a reset was requested for."""

    pass


class NotificationDeliveryError(IdentityError):
    """The notification gateway could not deliver a message."""

    pass


class StorageError(IdentityError):
    """Constraint violation, connectivity loss, or transaction failure in a store."""

    pass
