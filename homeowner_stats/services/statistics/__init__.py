"""
Portal User Statistics Service

Responsibilities:
- Validate caller-supplied filter criteria before touching any data source
- Fetch the homeowner and portal-user snapshots (one async fetch each)
- Select the eligible homeowners through an explicit query pipeline
- Left-join portal accounts and reduce the joined set into overview counts

Entry point:
    from homeowner_stats.services.statistics import PortalUserStatisticsService

    service = PortalUserStatisticsService(homeowner_source, portal_user_source)
    result = await service.get_portal_user_overview_statistics({"homeowner_ids": [1, 2]})
"""

from homeowner_stats.services.statistics.aggregator import StatisticsAggregator
from homeowner_stats.services.statistics.query_engine import HomeownerQueryEngine, QueryPipeline
from homeowner_stats.services.statistics.service import (
    PortalUserStatisticsService,
    get_portal_user_overview_statistics,
)
from homeowner_stats.services.statistics.sources import (
    HomeownerSource,
    InMemoryHomeownerSource,
    InMemoryPortalUserSource,
    PortalUserSource,
)

__all__ = [
    "HomeownerQueryEngine",
    "HomeownerSource",
    "InMemoryHomeownerSource",
    "InMemoryPortalUserSource",
    "PortalUserSource",
    "PortalUserStatisticsService",
    "QueryPipeline",
    "StatisticsAggregator",
    "get_portal_user_overview_statistics",
]
