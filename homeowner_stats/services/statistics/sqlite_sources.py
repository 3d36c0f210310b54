"""
SQLite-backed data sources.

Reads run in a worker thread so the event loop never blocks on sqlite3.
Transient "database is locked" errors are retried with exponential backoff;
every other sqlite3 error, and exhausted retries, surface as DataSourceError.
"""

import asyncio
import logging
import sqlite3
from typing import Any, Optional

from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from homeowner_stats.utils.config import settings
from homeowner_stats.utils.db import get_conn, tenant_key
from homeowner_stats.utils.errors import DataSourceError
from homeowner_stats.utils.schemas import FilteredHomeownerEntry, Homeowner, PortalUser

logger = logging.getLogger(__name__)


def _is_locked(exc: BaseException) -> bool:
    return isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower()


class _SqliteReader:
    """Shared paging and retry logic for the SQLite sources."""

    source_name = "sqlite"

    def __init__(
        self,
        path: Optional[str] = None,
        page_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff: Optional[float] = None,
    ) -> None:
        self.path = path or settings.SQLITE_PATH
        self.page_size = page_size or settings.SOURCE_PAGE_SIZE
        self.max_attempts = max_attempts or settings.SOURCE_MAX_RETRIES
        self.backoff = settings.SOURCE_RETRY_BACKOFF if backoff is None else backoff

    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception(_is_locked),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=5),
            before_sleep=lambda state: logger.warning(
                "SQLite busy (attempt %d/%d), retrying: source=%s",
                state.attempt_number, self.max_attempts, self.source_name,
            ),
            reraise=True,
        )

    def _read_page(self, query: str, params: tuple[Any, ...], offset: int) -> list[sqlite3.Row]:
        conn = get_conn(self.path)
        try:
            return conn.execute(f"{query} LIMIT ? OFFSET ?", (*params, self.page_size, offset)).fetchall()
        finally:
            conn.close()

    def _read_all(self, query: str, params: tuple[Any, ...]) -> list[sqlite3.Row]:
        rows: list[sqlite3.Row] = []
        offset = 0
        while True:
            page = self._retrying()(self._read_page, query, params, offset)
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size

    async def _fetch_rows(self, query: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        try:
            return await asyncio.to_thread(self._read_all, query, params)
        except sqlite3.Error as e:
            logger.error("SQLite read failed: source=%s, path=%s, error=%s", self.source_name, self.path, str(e))
            raise DataSourceError(f"Failed to read {self.source_name} from {self.path}: {e}", source=self.source_name) from e


def _tenant_clause(tenant_id: Optional[str]) -> tuple[str, tuple[Any, ...]]:
    # Without a tenant only untenanted records are read; tenants never mix.
    return " WHERE tenant_id = ?", (tenant_key(tenant_id),)


class SqliteHomeownerSource(_SqliteReader):
    """Homeowner source reading the `homeowners` table."""

    source_name = "homeowners"

    async def fetch_homeowners(self, tenant_id: Optional[str] = None) -> list[Homeowner]:
        where, params = _tenant_clause(tenant_id)
        rows = await self._fetch_rows(
            f"SELECT id, first_name, last_name, inactive FROM homeowners{where} ORDER BY rowid", params
        )
        return [
            Homeowner(
                id=row["id"],
                first_name=row["first_name"],
                last_name=row["last_name"],
                inactive=None if row["inactive"] is None else bool(row["inactive"]),
            )
            for row in rows
        ]


class SqlitePortalUserSource(_SqliteReader):
    """Portal-user source reading the `portal_users` table."""

    source_name = "portal_users"

    async def fetch_portal_users(self, tenant_id: Optional[str] = None) -> list[PortalUser]:
        where, params = _tenant_clause(tenant_id)
        rows = await self._fetch_rows(
            f"SELECT id, homeowner_id, is_active, email FROM portal_users{where} ORDER BY rowid", params
        )
        return [
            PortalUser(
                id=row["id"],
                homeowner_id=row["homeowner_id"],
                is_active=bool(row["is_active"]),
                email=row["email"],
            )
            for row in rows
        ]


class SqliteFilterListSource(_SqliteReader):
    """Named allow-lists stored in the `filtered_homeowners` table."""

    source_name = "filtered_homeowners"

    async def fetch_filter_entries(self, list_name: str = "default") -> list[FilteredHomeownerEntry]:
        rows = await self._fetch_rows(
            "SELECT list_name, homeowner_id FROM filtered_homeowners WHERE list_name = ? ORDER BY rowid",
            (list_name,),
        )
        return [FilteredHomeownerEntry(list_name=row["list_name"], homeowner_id=row["homeowner_id"]) for row in rows]
