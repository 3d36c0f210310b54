"""
SQLite source tests: paging, tenant partitioning, retry and error mapping.
"""

import asyncio
import sqlite3
from unittest.mock import patch

import pytest

from homeowner_stats.services.statistics.service import PortalUserStatisticsService
from homeowner_stats.services.statistics.sqlite_sources import (
    SqliteFilterListSource,
    SqliteHomeownerSource,
    SqlitePortalUserSource,
)
from homeowner_stats.utils.db import get_conn, init_schema, insert_filter_entries, insert_homeowners
from homeowner_stats.utils.errors import DataSourceError
from homeowner_stats.utils.schemas import FilteredHomeownerEntry, Homeowner


class TestSqliteHomeownerSource:

    def test_reads_all_rows_across_pages(self, sqlite_db, homeowners):
        source = SqliteHomeownerSource(path=sqlite_db, page_size=2)

        fetched = asyncio.run(source.fetch_homeowners())

        assert fetched == homeowners

    def test_preserves_tri_state_inactive_flag(self, sqlite_db):
        fetched = asyncio.run(SqliteHomeownerSource(path=sqlite_db).fetch_homeowners())
        assert [h.inactive for h in fetched] == [None, True, False, False, None]

    def test_tenant_filter(self, tmp_path):
        db_path = str(tmp_path / "tenants.db")
        init_schema(db_path)
        conn = get_conn(db_path)
        with conn:
            insert_homeowners(conn, [Homeowner(id=1, first_name="North")], tenant_id="north")
            insert_homeowners(conn, [Homeowner(id=2, first_name="South")], tenant_id="south")
        conn.close()

        fetched = asyncio.run(SqliteHomeownerSource(path=db_path).fetch_homeowners("south"))

        assert [h.first_name for h in fetched] == ["South"]

    def test_tenantless_read_returns_only_untenanted_rows(self, tmp_path):
        db_path = str(tmp_path / "tenants.db")
        init_schema(db_path)
        conn = get_conn(db_path)
        with conn:
            insert_homeowners(conn, [Homeowner(id=1, first_name="North")], tenant_id="north")
            insert_homeowners(conn, [Homeowner(id=1, first_name="South")], tenant_id="south")
            insert_homeowners(conn, [Homeowner(id=1, first_name="Shared")])
        conn.close()

        fetched = asyncio.run(SqliteHomeownerSource(path=db_path).fetch_homeowners())

        assert [h.first_name for h in fetched] == ["Shared"]

    def test_reinserting_an_id_replaces_the_row(self, sqlite_db):
        conn = get_conn(sqlite_db)
        with conn:
            insert_homeowners(conn, [Homeowner(id=2, first_name="Renamed", inactive=False)])
        conn.close()

        fetched = asyncio.run(SqliteHomeownerSource(path=sqlite_db).fetch_homeowners())

        assert sorted(h.id for h in fetched) == [1, 2, 3, 4, 5]
        assert [h.first_name for h in fetched if h.id == 2] == ["Renamed"]

    def test_missing_table_raises_data_source_error(self, tmp_path):
        source = SqliteHomeownerSource(path=str(tmp_path / "empty.db"))

        with pytest.raises(DataSourceError) as exc_info:
            asyncio.run(source.fetch_homeowners())

        assert exc_info.value.source == "homeowners"
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

    def test_locked_database_is_retried(self, sqlite_db):
        source = SqliteHomeownerSource(path=sqlite_db, max_attempts=3, backoff=0)
        real_read_page = source._read_page
        attempts = []

        def flaky_read_page(query, params, offset):
            attempts.append(offset)
            if len(attempts) == 1:
                raise sqlite3.OperationalError("database is locked")
            return real_read_page(query, params, offset)

        with patch.object(source, "_read_page", side_effect=flaky_read_page):
            fetched = asyncio.run(source.fetch_homeowners())

        assert len(fetched) == 5
        assert len(attempts) == 2

    def test_exhausted_retries_raise_data_source_error(self, sqlite_db):
        source = SqliteHomeownerSource(path=sqlite_db, max_attempts=2, backoff=0)

        with patch.object(source, "_read_page", side_effect=sqlite3.OperationalError("database is locked")) as read:
            with pytest.raises(DataSourceError):
                asyncio.run(source.fetch_homeowners())

        assert read.call_count == 2


class TestSqlitePortalUserSource:

    def test_reads_portal_users(self, sqlite_db, portal_users):
        fetched = asyncio.run(SqlitePortalUserSource(path=sqlite_db).fetch_portal_users())
        assert fetched == portal_users


class TestSqliteFilterListSource:

    def test_reads_named_list(self, sqlite_db):
        conn = get_conn(sqlite_db)
        with conn:
            insert_filter_entries(
                conn,
                [
                    FilteredHomeownerEntry(list_name="board", homeowner_id=1),
                    FilteredHomeownerEntry(list_name="board", homeowner_id=4),
                    FilteredHomeownerEntry(list_name="other", homeowner_id=5),
                ],
            )
        conn.close()

        entries = asyncio.run(SqliteFilterListSource(path=sqlite_db).fetch_filter_entries("board"))

        assert [entry.homeowner_id for entry in entries] == [1, 4]


def test_service_over_sqlite(sqlite_db):
    service = PortalUserStatisticsService(
        SqliteHomeownerSource(path=sqlite_db),
        SqlitePortalUserSource(path=sqlite_db),
    )

    result = asyncio.run(service.get_portal_user_overview_statistics([1, 2, 3, 4, 5]))

    assert (result.total, result.with_portal, result.inactive_portal, result.without_portal) == (4, 2, 1, 1)
