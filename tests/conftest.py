"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory stores sharing one database
- A controllable clock for expiry tests
- Domain services wired to a recording notification gateway
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import (
    InMemoryCredentialStore,
    InMemoryIdentityDatabase,
    InMemoryPendingRegistrationStore,
)
from src.domain.authentication import AuthenticationService
from src.domain.exceptions import NotificationDeliveryError
from src.domain.password_reset import PasswordResetService
from src.domain.registration import RegistrationService
from src.domain.security import BcryptSecretHasher, SecureTokenGenerator

BASE_URL = "http://testserver"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    """NotificationGateway that keeps every message it is asked to send."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    def send(self, to_address: str, subject: str, body: str) -> None:
        self.messages.append((to_address, subject, body))

    def last_body(self) -> str:
        return self.messages[-1][2]


@pytest.fixture(scope="session")
def hasher() -> BcryptSecretHasher:
    """bcrypt hasher at the minimum allowed cost (shared, it is stateless)."""
    return BcryptSecretHasher(rounds=10)


@pytest.fixture
def token_generator() -> SecureTokenGenerator:
    return SecureTokenGenerator()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def database() -> InMemoryIdentityDatabase:
    return InMemoryIdentityDatabase()


@pytest.fixture
def pending_store(database: InMemoryIdentityDatabase) -> InMemoryPendingRegistrationStore:
    return InMemoryPendingRegistrationStore(database)


@pytest.fixture
def credential_store(database: InMemoryIdentityDatabase) -> InMemoryCredentialStore:
    return InMemoryCredentialStore(database)


@pytest.fixture
def registration_service(
    pending_store: InMemoryPendingRegistrationStore,
    hasher: BcryptSecretHasher,
    token_generator: SecureTokenGenerator,
    notifier: RecordingNotifier,
    clock: FrozenClock,
) -> RegistrationService:
    return RegistrationService(
        pending_store=pending_store,
        hasher=hasher,
        token_generator=token_generator,
        notifier=notifier,
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def authentication_service(
    credential_store: InMemoryCredentialStore, hasher: BcryptSecretHasher
) -> AuthenticationService:
    return AuthenticationService(credential_store=credential_store, hasher=hasher)


@pytest.fixture
def password_reset_service(
    credential_store: InMemoryCredentialStore,
    hasher: BcryptSecretHasher,
    token_generator: SecureTokenGenerator,
    notifier: RecordingNotifier,
    clock: FrozenClock,
) -> PasswordResetService:
    return PasswordResetService(
        credential_store=credential_store,
        hasher=hasher,
        token_generator=token_generator,
        notifier=notifier,
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def failing_notifier() -> Mock:
    """Notifier whose every send raises NotificationDeliveryError."""
    notifier = Mock()
    notifier.send.side_effect = NotificationDeliveryError("relay unreachable")
    return notifier
