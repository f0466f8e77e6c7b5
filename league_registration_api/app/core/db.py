"""
SQLite database integration and simple migration system.

A ``Database`` object owns the path of the SQLite file.  It is built
once in ``create_app`` and handed to every service, so tests can point
the whole application at a temporary file.  Each operation opens its
own connection (``connect``) or uses the ``cursor`` context manager,
which commits on success and always closes the connection.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.  To change
the schema append a new ``(version, sql)`` pair to ``MIGRATIONS``.

Records use opaque string identifiers (``new_id``) and ISO‑8601 UTC
timestamps (``utcnow_iso``).  Payments keep a plain
``registration_id`` column without a foreign key: deleting a
registration must not delete or block its payment history.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            password TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS registrations (
            id TEXT PRIMARY KEY,
            league_type TEXT NOT NULL DEFAULT 'trial',
            name TEXT NOT NULL,
            age INTEGER NOT NULL,
            mobile TEXT NOT NULL,
            email TEXT NOT NULL,
            district TEXT NOT NULL,
            state TEXT NOT NULL,
            role TEXT NOT NULL,
            profile_image TEXT,
            documents TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'pending',
            registered_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS ux_registrations_email_league
            ON registrations (email, league_type);
        CREATE INDEX IF NOT EXISTS ix_registrations_league_type ON registrations (league_type);
        CREATE INDEX IF NOT EXISTS ix_registrations_registered_at ON registrations (registered_at);

        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY,
            registration_id TEXT NOT NULL,
            amount INTEGER NOT NULL CHECK (amount > 0),
            currency TEXT NOT NULL DEFAULT 'INR',
            razorpay_order_id TEXT NOT NULL UNIQUE,
            razorpay_payment_id TEXT,
            razorpay_signature TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS ix_payments_registration_id ON payments (registration_id);
        CREATE INDEX IF NOT EXISTS ix_payments_status ON payments (status);
        """,
    ),
    (
        2,
        """
        -- At most one active (pending or completed) payment per
        -- registration.  Failed attempts are kept as history.
        CREATE UNIQUE INDEX IF NOT EXISTS ux_payments_active_registration
            ON payments (registration_id)
            WHERE status IN ('pending', 'completed');
        """,
    ),
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS leads (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS ix_leads_created_at ON leads (created_at);
        """,
    ),
]


def new_id() -> str:
    """Return a new opaque record identifier."""
    return uuid.uuid4().hex


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are returned as is; relative paths are resolved
    against the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


class Database:
    """Handle to the SQLite database used by all services."""

    def __init__(self, path: str) -> None:
        self.path = resolve_database_path(path)

    def connect(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        Rows are returned as ``sqlite3.Row`` so columns can be accessed
        by name.
        """
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and close the connection on exit."""
        conn = self.connect()
        try:
            yield conn.cursor()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init(self) -> None:
        """Create the database if needed and apply pending migrations."""
        with self.cursor() as cursor:
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
            )
            cursor.execute("SELECT MAX(version) AS version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying database migration %s", version)
                    cursor.executescript(sql)
                    cursor.execute(
                        "INSERT INTO migrations (version) VALUES (?)", (version,)
                    )
                    current_version = version
