"""
PostgreSQL repository adapters - Implement the identity store protocols.

This module provides the PostgreSQL implementations of the domain's
PendingRegistrationStore and CredentialStore ports using psycopg3 with
raw SQL.

Integrity Design:
-----------------
Every invariant that spans concurrent requests is enforced by the database,
never by a read followed by a separate write:

1. **email_claims**: The email primary key is the single point where an
   address is claimed. ``INSERT ... ON CONFLICT DO NOTHING`` claims it
   atomically; a rowcount of 0 means someone else holds it.

2. **Composite foreign keys**: pending_registrations may only reference a
   PENDING claim and credentials only an ACTIVE claim, so the two tables
   can never hold the same email.

3. **Promotion**: ``DELETE ... RETURNING`` on the verification token, the
   claim flip and the credential insert run in one transaction. The DELETE
   takes the row lock, so a concurrent promotion with the same token finds
   nothing.

4. **Reset consumption**: a single ``UPDATE ... WHERE reset_token = %s AND
   reset_token_expiry > %s RETURNING`` sets the new hash and clears the
   token, so a reset token is spent at most once.

Every psycopg error is re-raised as the domain's StorageError.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.exceptions import StorageError
from src.domain.models import Credential, PendingRegistration

logger = logging.getLogger(__name__)

# src/adapters/repository/postgres.py -> <root>/migrations
MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"

_PENDING_COLUMNS = "first_name, last_name, email, password_hash, verification_token, created_at"
_CREDENTIAL_COLUMNS = "first_name, last_name, email, password_hash, reset_token, reset_token_expiry"


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver and pool failures into StorageError."""
    try:
        yield
    except psycopg.Error as e:
        logger.error("Storage operation failed: %s (%s)", operation, type(e).__name__)
        raise StorageError(f"{operation} failed") from e


def _pending_from_row(row: tuple) -> PendingRegistration:
    return PendingRegistration(
        first_name=row[0],
        last_name=row[1],
        email=row[2],
        password_hash=row[3],
        verification_token=row[4],
        created_at=row[5],
    )


def _credential_from_row(row: tuple) -> Credential:
    return Credential(
        first_name=row[0],
        last_name=row[1],
        email=row[2],
        password_hash=row[3],
        reset_token=row[4],
        reset_token_expiry=row[5],
    )


class PostgresPendingRegistrationStore:
    """
    Implements PendingRegistrationStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> PendingRegistration | None:
        sql = f"SELECT {_PENDING_COLUMNS} FROM pending_registrations WHERE email = %s"

        with _storage_errors("find pending by email"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        return _pending_from_row(row) if row is not None else None

    def find_by_token(self, token: str) -> PendingRegistration | None:
        sql = f"SELECT {_PENDING_COLUMNS} FROM pending_registrations WHERE verification_token = %s"

        with _storage_errors("find pending by token"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (token,))
                row = cursor.fetchone()
        return _pending_from_row(row) if row is not None else None

    def insert_if_email_unique(
        self, pending: PendingRegistration, reclaim_before: datetime | None = None
    ) -> bool:
        """
        Atomically claim an email address and store the pending registration.

        When ``reclaim_before`` is set, an abandoned pending row (created
        before the cutoff) is deleted first and its PENDING claim reused.
        Concurrent submits for the same email serialize on the claim row
        (or on the abandoned pending row), so exactly one succeeds.

        Returns:
            True if stored, False if the email is pending or registered
        """
        reclaim_sql = """
            DELETE FROM pending_registrations
            WHERE email = %s AND created_at < %s
        """

        claim_sql = """
            INSERT INTO email_claims (email, state, claimed_at)
            VALUES (%s, 'PENDING', %s)
            ON CONFLICT (email) DO NOTHING
        """

        insert_sql = """
            INSERT INTO pending_registrations
                (first_name, last_name, email, password_hash, verification_token, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
        """

        with _storage_errors("insert pending registration"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                reclaimed = False
                if reclaim_before is not None:
                    cursor.execute(reclaim_sql, (pending.email, reclaim_before))
                    reclaimed = cursor.rowcount == 1

                if not reclaimed:
                    cursor.execute(claim_sql, (pending.email, pending.created_at))
                    if cursor.rowcount != 1:
                        conn.rollback()
                        return False

                cursor.execute(
                    insert_sql,
                    (
                        pending.first_name,
                        pending.last_name,
                        pending.email,
                        pending.password_hash,
                        pending.verification_token,
                        pending.created_at,
                    ),
                )
                conn.commit()

        if reclaimed:
            logger.info("Reclaimed abandoned pending registration: %s", pending.email)
        return True

    def delete_by_email(self, email: str) -> bool:
        delete_pending_sql = "DELETE FROM pending_registrations WHERE email = %s"
        release_claim_sql = "DELETE FROM email_claims WHERE email = %s AND state = 'PENDING'"

        with _storage_errors("delete pending registration"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(delete_pending_sql, (email,))
                deleted = cursor.rowcount == 1
                if deleted:
                    cursor.execute(release_claim_sql, (email,))
                conn.commit()
        return deleted

    def promote(self, token: str, created_after: datetime | None = None) -> Credential | None:
        """
        Move a pending registration into credentials in one transaction.

        The DELETE locks and removes the pending row; a concurrent promotion
        of the same token blocks on that lock and then deletes nothing.
        If any statement fails the whole transaction rolls back, leaving the
        pending row in place.
        """
        take_pending_sql = """
            DELETE FROM pending_registrations
            WHERE verification_token = %s
              AND (%s::timestamptz IS NULL OR created_at > %s::timestamptz)
            RETURNING first_name, last_name, email, password_hash
        """

        activate_claim_sql = """
            UPDATE email_claims
            SET state = 'ACTIVE'
            WHERE email = %s AND state = 'PENDING'
        """

        insert_credential_sql = """
            INSERT INTO credentials (first_name, last_name, email, password_hash)
            VALUES (%s, %s, %s, %s)
        """

        with _storage_errors("promote pending registration"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(take_pending_sql, (token, created_after, created_after))
                row = cursor.fetchone()
                if row is None:
                    conn.commit()
                    return None

                first_name, last_name, email, password_hash = row
                cursor.execute(activate_claim_sql, (email,))
                cursor.execute(insert_credential_sql, (first_name, last_name, email, password_hash))
                conn.commit()

        return Credential(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
        )


class PostgresCredentialStore:
    """
    Implements CredentialStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find_by_email(self, email: str) -> Credential | None:
        sql = f"SELECT {_CREDENTIAL_COLUMNS} FROM credentials WHERE email = %s"

        with _storage_errors("find credential by email"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        return _credential_from_row(row) if row is not None else None

    def find_by_reset_token(self, token: str, now: datetime) -> Credential | None:
        sql = f"""
            SELECT {_CREDENTIAL_COLUMNS} FROM credentials
            WHERE reset_token = %s AND reset_token_expiry > %s
        """

        with _storage_errors("find credential by reset token"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (token, now))
                row = cursor.fetchone()
        return _credential_from_row(row) if row is not None else None

    def insert_if_email_unique(self, credential: Credential) -> bool:
        claim_sql = """
            INSERT INTO email_claims (email, state)
            VALUES (%s, 'ACTIVE')
            ON CONFLICT (email) DO NOTHING
        """

        insert_sql = """
            INSERT INTO credentials
                (first_name, last_name, email, password_hash, reset_token, reset_token_expiry)
            VALUES (%s, %s, %s, %s, %s, %s)
        """

        with _storage_errors("insert credential"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(claim_sql, (credential.email,))
                if cursor.rowcount != 1:
                    conn.rollback()
                    return False
                cursor.execute(
                    insert_sql,
                    (
                        credential.first_name,
                        credential.last_name,
                        credential.email,
                        credential.password_hash,
                        credential.reset_token,
                        credential.reset_token_expiry,
                    ),
                )
                conn.commit()
        return True

    def update(self, credential: Credential) -> None:
        sql = """
            UPDATE credentials
            SET first_name = %s,
                last_name = %s,
                password_hash = %s,
                reset_token = %s,
                reset_token_expiry = %s
            WHERE email = %s
        """

        with _storage_errors("update credential"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(
                    sql,
                    (
                        credential.first_name,
                        credential.last_name,
                        credential.password_hash,
                        credential.reset_token,
                        credential.reset_token_expiry,
                        credential.email,
                    ),
                )
                updated = cursor.rowcount == 1
                conn.commit()

        if not updated:
            raise StorageError("update credential failed: no such credential")

    def set_reset_token(
        self, email: str, token: str, expiry: datetime
    ) -> Credential | None:
        sql = f"""
            UPDATE credentials
            SET reset_token = %s, reset_token_expiry = %s
            WHERE email = %s
            RETURNING {_CREDENTIAL_COLUMNS}
        """

        with _storage_errors("set reset token"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (token, expiry, email))
                row = cursor.fetchone()
                conn.commit()
        return _credential_from_row(row) if row is not None else None

    def consume_reset_token(
        self, token: str, password_hash: str, now: datetime
    ) -> Credential | None:
        sql = f"""
            UPDATE credentials
            SET password_hash = %s, reset_token = NULL, reset_token_expiry = NULL
            WHERE reset_token = %s AND reset_token_expiry > %s
            RETURNING {_CREDENTIAL_COLUMNS}
        """

        with _storage_errors("consume reset token"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (password_hash, token, now))
                row = cursor.fetchone()
                conn.commit()
        return _credential_from_row(row) if row is not None else None


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """
    Apply every ``*.sql`` file in ``migrations_dir``, in filename order.

    Each file runs and commits in its own transaction and must be safe to
    re-run (IF NOT EXISTS and friends); startup applies all of them every
    time.

    Raises:
        StorageError: If a migration fails; later files are not attempted
    """
    if not migrations_dir.is_dir():
        logger.warning("No migrations directory at %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))
    logger.info("Applying %d migration(s) from %s", len(sql_files), migrations_dir)

    for sql_file in sql_files:
        with _storage_errors(f"migration {sql_file.name}"):
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
                conn.commit()
        logger.info("Applied migration %s", sql_file.name)
