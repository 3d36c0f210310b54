"""
Shared pytest fixtures: homeowner and portal-user snapshots plus SQLite helpers.
"""

import pytest

from homeowner_stats.services.statistics.sources import InMemoryHomeownerSource, InMemoryPortalUserSource
from homeowner_stats.utils.db import get_conn, init_schema, insert_homeowners, insert_portal_users
from homeowner_stats.utils.schemas import Homeowner, PortalUser


@pytest.fixture
def homeowners():
    """Five homeowners covering every active-status value."""
    return [
        Homeowner(id=1, first_name="Ada", last_name="Moss", inactive=None),
        Homeowner(id=2, first_name="Ben", last_name="Cole", inactive=True),
        Homeowner(id=3, first_name="Cara", last_name="Bell", inactive=False),
        Homeowner(id=4, first_name="Dev", last_name="Ames", inactive=False),
        Homeowner(id=5, first_name="Eli", last_name="Ford", inactive=None),
    ]


@pytest.fixture
def portal_users():
    """Portal accounts: 1 active, 3 inactive, 4 active + inactive, 2 (inactive homeowner) active."""
    return [
        PortalUser(id=100, homeowner_id=1, is_active=True, email="ada@acme-homes.com"),
        PortalUser(id=101, homeowner_id=3, is_active=False),
        PortalUser(id=102, homeowner_id=4, is_active=False),
        PortalUser(id=103, homeowner_id=4, is_active=True),
        PortalUser(id=104, homeowner_id=2, is_active=True),
    ]


@pytest.fixture
def homeowner_source(homeowners):
    return InMemoryHomeownerSource(homeowners)


@pytest.fixture
def portal_user_source(portal_users):
    return InMemoryPortalUserSource(portal_users)


@pytest.fixture
def sqlite_db(tmp_path, homeowners, portal_users):
    """SQLite database seeded with the homeowner and portal-user fixtures."""
    db_path = str(tmp_path / "db" / "homeowners.db")
    init_schema(db_path)
    conn = get_conn(db_path)
    try:
        with conn:
            insert_homeowners(conn, homeowners)
            insert_portal_users(conn, portal_users)
    finally:
        conn.close()
    return db_path
