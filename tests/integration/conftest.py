"""
Shared fixtures for integration tests.

PostgreSQL-backed tests need a reachable database at DATABASE_URL
and are skipped when none answers.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create migrated connection pool for integration tests."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not reachable")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every identity table before the test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM credentials")
        conn.execute("DELETE FROM pending_registrations")
        conn.execute("DELETE FROM email_claims")
        conn.commit()
    yield
