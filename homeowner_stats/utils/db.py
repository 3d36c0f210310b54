"""
Database utilities for SQLite operations.

Provides connection management, schema initialization and bulk inserts for
the homeowner, portal-user and allow-list tables.
"""

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from homeowner_stats.utils.config import settings
from homeowner_stats.utils.schemas import FilteredHomeownerEntry, Homeowner, PortalUser

logger = logging.getLogger(__name__)

# tenant_id stored for records loaded without a tenant
NO_TENANT = ""


def get_conn(path: str | None = None) -> sqlite3.Connection:
    """
    Get SQLite database connection with dict-friendly row factory.

    Args:
        path: Database file path, defaults to settings.SQLITE_PATH

    Returns:
        SQLite connection with row_factory set to sqlite3.Row

    Raises:
        sqlite3.Error: If connection fails
    """
    db_path = Path(path or settings.SQLITE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(path: str | None = None) -> None:
    """
    Initialize database schema by creating required tables if they don't exist.

    Creates:
    - homeowners: homeowner records, inactive is NULL when unknown
    - portal_users: portal accounts referencing homeowners
    - filtered_homeowners: named allow-lists of homeowner IDs

    Records without a tenant are stored under NO_TENANT, so the
    (tenant_id, id) primary keys also hold for them.

    Raises:
        sqlite3.Error: If schema creation fails
    """
    conn = get_conn(path)
    try:
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS homeowners (
                    id INTEGER NOT NULL,
                    tenant_id TEXT NOT NULL DEFAULT '',
                    first_name TEXT NOT NULL DEFAULT '',
                    last_name TEXT NOT NULL DEFAULT '',
                    inactive INTEGER,
                    PRIMARY KEY (tenant_id, id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS portal_users (
                    id INTEGER NOT NULL,
                    homeowner_id INTEGER NOT NULL,
                    tenant_id TEXT NOT NULL DEFAULT '',
                    is_active INTEGER NOT NULL DEFAULT 0,
                    email TEXT,
                    PRIMARY KEY (tenant_id, id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS filtered_homeowners (
                    list_name TEXT NOT NULL,
                    homeowner_id INTEGER NOT NULL,
                    PRIMARY KEY (list_name, homeowner_id)
                )
            """)
    finally:
        conn.close()

    logger.info("DB schema ready")


def tenant_key(tenant_id: str | None) -> str:
    """Stored tenant value; untenanted records use NO_TENANT."""
    return NO_TENANT if tenant_id is None else tenant_id


def insert_homeowners(
    conn: sqlite3.Connection, homeowners: Iterable[Homeowner], tenant_id: str | None = None
) -> int:
    """Upsert homeowner records keyed by (tenant_id, id). Returns the number of rows written."""
    tenant = tenant_key(tenant_id)
    rows = [
        (h.id, tenant, h.first_name, h.last_name, None if h.inactive is None else int(h.inactive))
        for h in homeowners
    ]
    conn.executemany(
        "INSERT OR REPLACE INTO homeowners (id, tenant_id, first_name, last_name, inactive) VALUES (?, ?, ?, ?, ?)",
        rows,
    )
    return len(rows)


def insert_portal_users(
    conn: sqlite3.Connection, portal_users: Iterable[PortalUser], tenant_id: str | None = None
) -> int:
    """Upsert portal-user records keyed by (tenant_id, id). Returns the number of rows written."""
    tenant = tenant_key(tenant_id)
    rows = [(u.id, u.homeowner_id, tenant, int(u.is_active), u.email) for u in portal_users]
    conn.executemany(
        "INSERT OR REPLACE INTO portal_users (id, homeowner_id, tenant_id, is_active, email) VALUES (?, ?, ?, ?, ?)",
        rows,
    )
    return len(rows)


def insert_filter_entries(conn: sqlite3.Connection, entries: Iterable[FilteredHomeownerEntry]) -> int:
    """Insert allow-list entries, ignoring ones already present. Returns the number of rows given."""
    rows = [(e.list_name, e.homeowner_id) for e in entries]
    conn.executemany(
        "INSERT OR IGNORE INTO filtered_homeowners (list_name, homeowner_id) VALUES (?, ?)",
        rows,
    )
    return len(rows)
