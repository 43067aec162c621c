"""
Shared fixtures for adversarial tests.

Every adversarial test runs once against the in-memory stores and once
against PostgreSQL; the PostgreSQL run is skipped when no database answers.
"""

from collections.abc import Generator
from dataclasses import dataclass

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import (
    InMemoryCredentialStore,
    InMemoryIdentityDatabase,
    InMemoryPendingRegistrationStore,
)
from src.adapters.repository.postgres import (
    PostgresCredentialStore,
    PostgresPendingRegistrationStore,
    run_migrations,
)
from src.config.settings import get_settings
from src.domain.authentication import AuthenticationService
from src.domain.password_reset import PasswordResetService
from src.domain.ports import CredentialStore, NotificationGateway, PendingRegistrationStore
from src.domain.registration import RegistrationService
from src.domain.security import BcryptSecretHasher, SecureTokenGenerator


@dataclass
class Stores:
    pending: PendingRegistrationStore
    credentials: CredentialStore


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create migrated connection pool for adversarial tests."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not reachable")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=20,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(params=["memory", "postgres"])
def stores(request: pytest.FixtureRequest) -> Stores:
    """Pending and credential stores sharing one backend."""
    if request.param == "memory":
        database = InMemoryIdentityDatabase()
        return Stores(
            pending=InMemoryPendingRegistrationStore(database),
            credentials=InMemoryCredentialStore(database),
        )

    pool: ConnectionPool = request.getfixturevalue("pool")
    with pool.connection() as conn:
        conn.execute("DELETE FROM credentials")
        conn.execute("DELETE FROM pending_registrations")
        conn.execute("DELETE FROM email_claims")
        conn.commit()
    return Stores(
        pending=PostgresPendingRegistrationStore(pool),
        credentials=PostgresCredentialStore(pool),
    )


@pytest.fixture
def registration_service(
    stores: Stores, hasher: BcryptSecretHasher, notifier: NotificationGateway
) -> RegistrationService:
    return RegistrationService(
        pending_store=stores.pending,
        hasher=hasher,
        token_generator=SecureTokenGenerator(),
        notifier=notifier,
        base_url="http://testserver",
    )


@pytest.fixture
def authentication_service(stores: Stores, hasher: BcryptSecretHasher) -> AuthenticationService:
    return AuthenticationService(credential_store=stores.credentials, hasher=hasher)


@pytest.fixture
def password_reset_service(
    stores: Stores, hasher: BcryptSecretHasher, notifier: NotificationGateway
) -> PasswordResetService:
    return PasswordResetService(
        credential_store=stores.credentials,
        hasher=hasher,
        token_generator=SecureTokenGenerator(),
        notifier=notifier,
        base_url="http://testserver",
    )
