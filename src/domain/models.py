"""
Identity records - Typed entities shared by flows and stores.

PendingRegistration holds an identity that has not proven control of its
email address; Credential holds a login-capable identity. An email lives in
exactly one of the two at any time.

Reset Sub-State Machine (per Credential)
========================================

    NO_RESET_PENDING --request_reset--> RESET_PENDING(t1, e1)
    RESET_PENDING(t1, e1) --request_reset--> RESET_PENDING(t2, e2)   (t1 dead)
    RESET_PENDING(t, e) --consume_reset(t), now < e--> NO_RESET_PENDING
    RESET_PENDING(t, e) --consume_reset(t), now >= e--> unchanged (fails)

Expiry is lazy: an expired token stays stored until replaced or cleared,
it just never matches.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


class ResetState(str, Enum):
    """Reset sub-state of a Credential."""

    NO_RESET_PENDING = "NO_RESET_PENDING"
    RESET_PENDING = "RESET_PENDING"


@dataclass(frozen=True)
class PendingRegistration:
    """Submitted identity awaiting email verification."""

    first_name: str
    last_name: str
    email: str
    password_hash: str
    verification_token: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Credential:
    """Verified, login-capable identity."""

    first_name: str
    last_name: str
    email: str
    password_hash: str
    reset_token: str | None = None
    reset_token_expiry: datetime | None = None

    def __post_init__(self) -> None:
        if (self.reset_token is None) != (self.reset_token_expiry is None):
            raise ValueError("reset_token and reset_token_expiry must be set together")

    @classmethod
    def from_pending(cls, pending: PendingRegistration) -> "Credential":
        return cls(
            first_name=pending.first_name,
            last_name=pending.last_name,
            email=pending.email,
            password_hash=pending.password_hash,
        )

    def reset_state(self) -> ResetState:
        """Stored reset sub-state; expiry does not change it."""
        if self.reset_token is None:
            return ResetState.NO_RESET_PENDING
        return ResetState.RESET_PENDING

    def has_valid_reset_token(self, token: str, now: datetime) -> bool:
        """True iff ``token`` is the outstanding reset token and has not expired."""
        if self.reset_token is None or self.reset_token_expiry is None:
            return False
        if not secrets.compare_digest(self.reset_token.encode(), token.encode()):
            return False
        return now < self.reset_token_expiry
