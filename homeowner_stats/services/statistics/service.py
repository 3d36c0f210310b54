"""
Portal User Overview Statistics - exposed operation.

Validates criteria, fetches the homeowner and portal-user snapshots
concurrently (one fetch each), selects the eligible set and aggregates it.
All failures propagate to the caller; nothing here retries.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Any, Optional

from homeowner_stats.services.statistics.aggregator import StatisticsAggregator
from homeowner_stats.services.statistics.query_engine import HomeownerQueryEngine
from homeowner_stats.services.statistics.sources import HomeownerSource, PortalUserSource, fetch_collection
from homeowner_stats.utils.schemas import FilterCriteria, Homeowner, PortalUser, StatisticsResult

logger = logging.getLogger(__name__)


class PortalUserStatisticsService:
    """
    Computes portal-user overview statistics for a set of homeowners.

    Handles:
    - Criteria validation before any fetch
    - Concurrent snapshot retrieval with sibling cancellation on failure
    - Eligible-set selection and aggregation

    The service holds only its collaborators; each call works on its own
    snapshot, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        homeowner_source: HomeownerSource,
        portal_user_source: PortalUserSource,
        query_engine: Optional[HomeownerQueryEngine] = None,
        aggregator: Optional[StatisticsAggregator] = None,
    ) -> None:
        self.portal_user_source = portal_user_source
        self.query_engine = query_engine or HomeownerQueryEngine(homeowner_source)
        self.aggregator = aggregator or StatisticsAggregator()

    async def get_portal_user_overview_statistics(self, criteria: Any) -> StatisticsResult:
        """
        Compute overview statistics for the homeowners allowed by `criteria`.

        Args:
            criteria: FilterCriteria, a mapping accepted by FilterCriteria,
                or an iterable of homeowner IDs

        Returns:
            StatisticsResult for the eligible set

        Raises:
            InvalidFilterError: If criteria are malformed (no fetch attempted)
            DataSourceError: If either collection could not be fetched
            DataIntegrityError: If the homeowner snapshot repeats an ID
        """
        criteria = FilterCriteria.coerce(criteria)

        if not criteria.homeowner_ids:
            logger.info("Empty filter list, returning zero statistics: tenant_id=%s", criteria.tenant_id)
            return StatisticsResult.empty(criteria.ratios or self.aggregator.default_ratios)

        start_time = time.time()

        homeowners, portal_users = await self._fetch_snapshot(criteria.tenant_id)

        eligible = self.query_engine.select_eligible(homeowners, criteria)
        result = self.aggregator.aggregate(eligible, portal_users, ratios=criteria.ratios or None)

        elapsed_time = time.time() - start_time
        logger.info(
            "Portal user statistics computed: tenant_id=%s, filter=%d, total=%d, with_portal=%d, "
            "without_portal=%d, inactive_portal=%d, elapsed=%.3fs",
            criteria.tenant_id, len(criteria.id_set), result.total, result.with_portal,
            result.without_portal, result.inactive_portal, elapsed_time,
        )
        return result

    async def _fetch_snapshot(
        self, tenant_id: Optional[str]
    ) -> tuple[Sequence[Homeowner], Sequence[PortalUser]]:
        """Fetch both collections concurrently.

        The first failure cancels the sibling fetch and is re-raised as is.
        Cancellation of the caller cancels both fetches.
        """
        homeowners_task = asyncio.create_task(self.query_engine.fetch_homeowners(tenant_id))
        portal_users_task = asyncio.create_task(
            fetch_collection(self.portal_user_source.fetch_portal_users(tenant_id), source="portal_users")
        )
        tasks = [homeowners_task, portal_users_task]

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        # asyncio.wait never raises the children's cancellations, so a
        # cancellation of this task still propagates while siblings clean up.
        if pending:
            await asyncio.wait(pending)
            for task in pending:
                if not task.cancelled():
                    task.exception()

        errors = [task.exception() for task in tasks if task in done and task.exception() is not None]
        if errors:
            raise errors[0]

        return homeowners_task.result(), portal_users_task.result()


async def get_portal_user_overview_statistics(
    criteria: Any,
    *,
    homeowner_source: HomeownerSource,
    portal_user_source: PortalUserSource,
) -> StatisticsResult:
    """One-shot convenience wrapper around PortalUserStatisticsService."""
    service = PortalUserStatisticsService(homeowner_source, portal_user_source)
    return await service.get_portal_user_overview_statistics(criteria)
