"""Repository adapters - Database implementations."""

from .memory import InMemoryCredentialStore, InMemoryIdentityDatabase, InMemoryPendingRegistrationStore
from .postgres import PostgresCredentialStore, PostgresPendingRegistrationStore, run_migrations

__all__ = [
    "InMemoryCredentialStore",
    "InMemoryIdentityDatabase",
    "InMemoryPendingRegistrationStore",
    "PostgresCredentialStore",
    "PostgresPendingRegistrationStore",
    "run_migrations",
]
