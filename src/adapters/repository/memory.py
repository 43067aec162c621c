"""
In-memory repository adapters - Implement the identity store protocols.

Used for local development and tests (``storage_backend=memory``). Both
stores share one InMemoryIdentityDatabase; every check-and-write happens
under its lock, which stands in for the unique constraints and
transactions of the PostgreSQL adapter. Data lives for the life of the
process only.
"""

import threading
from dataclasses import replace
from datetime import datetime

from src.domain.exceptions import StorageError
from src.domain.models import Credential, PendingRegistration


class InMemoryIdentityDatabase:
    """Shared tables and lock for the in-memory stores."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.pending: dict[str, PendingRegistration] = {}
        self.pending_tokens: dict[str, str] = {}
        self.credentials: dict[str, Credential] = {}
        self.reset_tokens: dict[str, str] = {}

    def email_claimed(self, email: str) -> bool:
        return email in self.pending or email in self.credentials


class InMemoryPendingRegistrationStore:
    """Implements PendingRegistrationStore protocol over an InMemoryIdentityDatabase."""

    def __init__(self, database: InMemoryIdentityDatabase) -> None:
        self._db = database

    def find_by_email(self, email: str) -> PendingRegistration | None:
        with self._db.lock:
            return self._db.pending.get(email)

    def find_by_token(self, token: str) -> PendingRegistration | None:
        with self._db.lock:
            email = self._db.pending_tokens.get(token)
            return self._db.pending.get(email) if email is not None else None

    def insert_if_email_unique(
        self, pending: PendingRegistration, reclaim_before: datetime | None = None
    ) -> bool:
        with self._db.lock:
            existing = self._db.pending.get(pending.email)
            if (
                existing is not None
                and reclaim_before is not None
                and existing.created_at < reclaim_before
            ):
                self._remove_pending(existing)

            if self._db.email_claimed(pending.email):
                return False
            if pending.verification_token in self._db.pending_tokens:
                raise StorageError("insert pending registration failed: duplicate token")

            self._db.pending[pending.email] = pending
            self._db.pending_tokens[pending.verification_token] = pending.email
            return True

    def delete_by_email(self, email: str) -> bool:
        with self._db.lock:
            existing = self._db.pending.get(email)
            if existing is None:
                return False
            self._remove_pending(existing)
            return True

    def promote(self, token: str, created_after: datetime | None = None) -> Credential | None:
        with self._db.lock:
            email = self._db.pending_tokens.get(token)
            if email is None:
                return None
            pending = self._db.pending[email]
            if created_after is not None and pending.created_at <= created_after:
                return None

            credential = Credential.from_pending(pending)
            self._remove_pending(pending)
            self._db.credentials[email] = credential
            return credential

    def _remove_pending(self, pending: PendingRegistration) -> None:
        del self._db.pending[pending.email]
        del self._db.pending_tokens[pending.verification_token]


class InMemoryCredentialStore:
    """Implements CredentialStore protocol over an InMemoryIdentityDatabase."""

    def __init__(self, database: InMemoryIdentityDatabase) -> None:
        self._db = database

    def find_by_email(self, email: str) -> Credential | None:
        with self._db.lock:
            return self._db.credentials.get(email)

    def find_by_reset_token(self, token: str, now: datetime) -> Credential | None:
        with self._db.lock:
            return self._valid_reset_holder(token, now)

    def insert_if_email_unique(self, credential: Credential) -> bool:
        with self._db.lock:
            if self._db.email_claimed(credential.email):
                return False
            if credential.reset_token is not None:
                self._claim_reset_token(credential.reset_token, credential.email)
            self._db.credentials[credential.email] = credential
            return True

    def update(self, credential: Credential) -> None:
        with self._db.lock:
            current = self._db.credentials.get(credential.email)
            if current is None:
                raise StorageError("update credential failed: no such credential")
            if credential.reset_token != current.reset_token:
                if credential.reset_token is not None:
                    self._claim_reset_token(credential.reset_token, credential.email)
                if current.reset_token is not None:
                    del self._db.reset_tokens[current.reset_token]
            self._db.credentials[credential.email] = credential

    def set_reset_token(
        self, email: str, token: str, expiry: datetime
    ) -> Credential | None:
        with self._db.lock:
            current = self._db.credentials.get(email)
            if current is None:
                return None
            if token != current.reset_token:
                self._claim_reset_token(token, email)
                if current.reset_token is not None:
                    del self._db.reset_tokens[current.reset_token]
            updated = replace(current, reset_token=token, reset_token_expiry=expiry)
            self._db.credentials[email] = updated
            return updated

    def consume_reset_token(
        self, token: str, password_hash: str, now: datetime
    ) -> Credential | None:
        with self._db.lock:
            current = self._valid_reset_holder(token, now)
            if current is None:
                return None
            updated = replace(
                current,
                password_hash=password_hash,
                reset_token=None,
                reset_token_expiry=None,
            )
            del self._db.reset_tokens[token]
            self._db.credentials[current.email] = updated
            return updated

    def _valid_reset_holder(self, token: str, now: datetime) -> Credential | None:
        email = self._db.reset_tokens.get(token)
        if email is None:
            return None
        credential = self._db.credentials[email]
        if not credential.has_valid_reset_token(token, now):
            return None
        return credential

    def _claim_reset_token(self, token: str, email: str) -> None:
        if self._db.reset_tokens.get(token, email) != email:
            raise StorageError("update credential failed: duplicate reset token")
        self._db.reset_tokens[token] = email
