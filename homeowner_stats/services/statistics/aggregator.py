"""
Statistics Aggregator

Left-joins eligible homeowners against portal users and reduces the joined
rows into a StatisticsResult. Works purely on already-fetched snapshots.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Iterator

from homeowner_stats.utils.errors import DataIntegrityError
from homeowner_stats.utils.schemas import (
    EligibleHomeowner,
    HomeownerPortalEntry,
    PortalStatus,
    PortalUser,
    RatioMetric,
    StatisticsResult,
)

logger = logging.getLogger(__name__)

RATIO_PRECISION = 4


def index_portal_status(portal_users: Iterable[PortalUser]) -> dict[int, PortalStatus]:
    """Map homeowner ID to portal status.

    A homeowner with several portal records is ACTIVE if any of them is
    active, otherwise INACTIVE.
    """
    statuses: dict[int, PortalStatus] = {}
    for user in portal_users:
        if user.is_active:
            statuses[user.homeowner_id] = PortalStatus.ACTIVE
        else:
            statuses.setdefault(user.homeowner_id, PortalStatus.INACTIVE)
    return statuses


class StatisticsAggregator:
    """Reduces the eligible set into overview statistics."""

    def __init__(self, ratios: Iterable[RatioMetric] = ()) -> None:
        self.default_ratios = tuple(RatioMetric(r) for r in ratios)

    def join(
        self, eligible: Iterable[EligibleHomeowner], portal_users: Iterable[PortalUser]
    ) -> Iterator[HomeownerPortalEntry]:
        """Left join: every eligible homeowner appears exactly once.

        Raises:
            DataIntegrityError: If the eligible input repeats a homeowner ID
        """
        statuses = index_portal_status(portal_users)
        seen: set[int] = set()
        for homeowner in eligible:
            if homeowner.id in seen:
                raise DataIntegrityError(
                    f"Homeowner {homeowner.id} appears more than once in the eligible set",
                    duplicate_id=homeowner.id,
                )
            seen.add(homeowner.id)
            yield HomeownerPortalEntry(
                homeowner=homeowner,
                portal_status=statuses.get(homeowner.id, PortalStatus.NOT_REGISTERED),
            )

    def aggregate(
        self,
        eligible: Iterable[EligibleHomeowner],
        portal_users: Iterable[PortalUser],
        ratios: Iterable[RatioMetric] | None = None,
    ) -> StatisticsResult:
        """Compute the overview statistics for one snapshot.

        Args:
            eligible: Eligible homeowners from the query engine
            portal_users: Portal-user snapshot
            ratios: Ratio metrics to derive, defaults to the aggregator's own

        Returns:
            StatisticsResult; all zero for an empty eligible set
        """
        counts = Counter(entry.portal_status for entry in self.join(eligible, portal_users))
        total = sum(counts.values())
        requested = self.default_ratios if ratios is None else tuple(RatioMetric(r) for r in ratios)

        result = StatisticsResult(
            total=total,
            with_portal=counts[PortalStatus.ACTIVE],
            without_portal=counts[PortalStatus.NOT_REGISTERED],
            inactive_portal=counts[PortalStatus.INACTIVE],
            ratios={metric: _ratio(metric, counts, total) for metric in requested},
        )
        logger.debug(
            "Aggregated statistics: total=%d, with_portal=%d, without_portal=%d, inactive_portal=%d",
            result.total, result.with_portal, result.without_portal, result.inactive_portal,
        )
        return result


_RATIO_NUMERATORS = {
    RatioMetric.PORTAL_ADOPTION: PortalStatus.ACTIVE,
    RatioMetric.UNREGISTERED: PortalStatus.NOT_REGISTERED,
    RatioMetric.INACTIVE_PORTAL: PortalStatus.INACTIVE,
}


def _ratio(metric: RatioMetric, counts: Counter, total: int) -> float:
    if total == 0:
        return 0.0
    return round(counts[_RATIO_NUMERATORS[metric]] / total, RATIO_PRECISION)
