"""
Data source capabilities consumed by the statistics core.

Sources are passed explicitly to the query engine and the service, so tests
and embedders can substitute in-memory fixtures for the SQLite adapter.
"""

import logging
from collections.abc import Awaitable, Iterable, Sequence
from typing import Optional, Protocol, TypeVar, runtime_checkable

from homeowner_stats.utils.errors import DataSourceError
from homeowner_stats.utils.schemas import Homeowner, PortalUser

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class HomeownerSource(Protocol):
    """Provides the homeowner collection for a tenant context."""

    async def fetch_homeowners(self, tenant_id: Optional[str] = None) -> Sequence[Homeowner]:
        ...


@runtime_checkable
class PortalUserSource(Protocol):
    """Provides the portal-user collection for a tenant context."""

    async def fetch_portal_users(self, tenant_id: Optional[str] = None) -> Sequence[PortalUser]:
        ...


class InMemoryHomeownerSource:
    """Homeowner source backed by an in-memory snapshot.

    Args:
        homeowners: Records returned when no tenant partition matches
        by_tenant: Optional per-tenant snapshots
    """

    def __init__(
        self,
        homeowners: Iterable[Homeowner] = (),
        by_tenant: Optional[dict[str, Iterable[Homeowner]]] = None,
    ) -> None:
        self._homeowners = tuple(homeowners)
        self._by_tenant = {tenant: tuple(records) for tenant, records in (by_tenant or {}).items()}

    async def fetch_homeowners(self, tenant_id: Optional[str] = None) -> Sequence[Homeowner]:
        if tenant_id is not None and tenant_id in self._by_tenant:
            return self._by_tenant[tenant_id]
        return self._homeowners


class InMemoryPortalUserSource:
    """Portal-user source backed by an in-memory snapshot."""

    def __init__(
        self,
        portal_users: Iterable[PortalUser] = (),
        by_tenant: Optional[dict[str, Iterable[PortalUser]]] = None,
    ) -> None:
        self._portal_users = tuple(portal_users)
        self._by_tenant = {tenant: tuple(records) for tenant, records in (by_tenant or {}).items()}

    async def fetch_portal_users(self, tenant_id: Optional[str] = None) -> Sequence[PortalUser]:
        if tenant_id is not None and tenant_id in self._by_tenant:
            return self._by_tenant[tenant_id]
        return self._portal_users


async def fetch_collection(fetch: Awaitable[Sequence[T]], source: str) -> Sequence[T]:
    """Await a single collection fetch.

    DataSourceError passes through unchanged; I/O failures (OSError, which
    covers ConnectionError and TimeoutError) are raised as DataSourceError.
    No retries happen here.

    Args:
        fetch: The pending fetch coroutine
        source: Collection name used in errors and logs

    Returns:
        The fetched snapshot

    Raises:
        DataSourceError: If the collection could not be fetched
    """
    try:
        records = await fetch
    except DataSourceError:
        raise
    except OSError as e:
        logger.error("Collection fetch failed: source=%s, error=%s", source, str(e))
        raise DataSourceError(f"Failed to fetch {source}: {e}", source=source) from e

    logger.debug("Fetched collection: source=%s, count=%d", source, len(records))
    return records
