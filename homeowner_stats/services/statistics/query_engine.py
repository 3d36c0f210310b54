"""
Homeowner Query Engine

Selects the eligible homeowners for a request through an explicit pipeline
of transform stages over an in-memory snapshot:

    reject_duplicate_ids -> exclude_inactive -> restrict_to(ids) -> project [-> sort_by]

Every stage is a callable taking an iterable and returning an iterable.
`QueryPipeline.stream()` stays lazy; `QueryPipeline.materialize()` is the one
place a list is built.
"""

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Optional

from homeowner_stats.services.statistics.sources import HomeownerSource, fetch_collection
from homeowner_stats.utils.errors import DataIntegrityError
from homeowner_stats.utils.schemas import EligibleHomeowner, FilterCriteria, Homeowner

logger = logging.getLogger(__name__)

Stage = Callable[[Iterable[Any]], Iterable[Any]]


class QueryPipeline:
    """Immutable, ordered chain of transform stages."""

    def __init__(self, stages: Iterable[Stage] = ()) -> None:
        self._stages: tuple[Stage, ...] = tuple(stages)

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def then(self, stage: Stage) -> "QueryPipeline":
        """Return a new pipeline with `stage` appended."""
        return QueryPipeline((*self._stages, stage))

    def stream(self, records: Iterable[Any]) -> Iterator[Any]:
        """Run the stages lazily. The result is single-pass."""
        current: Iterable[Any] = records
        for stage in self._stages:
            current = stage(current)
        return iter(current)

    def materialize(self, records: Iterable[Any]) -> list[Any]:
        return list(self.stream(records))


def reject_duplicate_ids(homeowners: Iterable[Homeowner]) -> Iterator[Homeowner]:
    """Raise DataIntegrityError on the first repeated homeowner ID."""
    seen: set[int] = set()
    for homeowner in homeowners:
        if homeowner.id in seen:
            raise DataIntegrityError(
                f"Duplicate homeowner id in snapshot: {homeowner.id}", duplicate_id=homeowner.id
            )
        seen.add(homeowner.id)
        yield homeowner


def exclude_inactive(homeowners: Iterable[Homeowner]) -> Iterator[Homeowner]:
    """Drop homeowners flagged inactive. Unknown (None) status is kept."""
    for homeowner in homeowners:
        if homeowner.inactive is not True:
            yield homeowner


def restrict_to(homeowner_ids: Iterable[int]) -> Stage:
    """Build a stage keeping only homeowners whose ID is in the allow-list.

    The allow-list is reduced to a set, so repeated IDs never repeat rows.
    """
    allowed = frozenset(homeowner_ids)

    def _restrict(homeowners: Iterable[Homeowner]) -> Iterator[Homeowner]:
        for homeowner in homeowners:
            if homeowner.id in allowed:
                yield homeowner

    return _restrict


def project(homeowners: Iterable[Homeowner]) -> Iterator[EligibleHomeowner]:
    for homeowner in homeowners:
        yield EligibleHomeowner.from_homeowner(homeowner)


def sort_by(field: str) -> Stage:
    """Build a sorting stage. Sorting materializes its input; ties break on ID."""

    def _sort(records: Iterable[EligibleHomeowner]) -> list[EligibleHomeowner]:
        return sorted(records, key=lambda record: (getattr(record, field), record.id))

    return _sort


class HomeownerQueryEngine:
    """Builds and runs the eligible-homeowner pipeline.

    The engine keeps no state between calls; concurrent requests may share
    one instance.
    """

    def __init__(self, source: Optional[HomeownerSource] = None) -> None:
        self.source = source

    def build_pipeline(self, criteria: FilterCriteria) -> QueryPipeline:
        pipeline = QueryPipeline(
            [reject_duplicate_ids, exclude_inactive, restrict_to(criteria.homeowner_ids), project]
        )
        if criteria.sort_by:
            pipeline = pipeline.then(sort_by(criteria.sort_by))
        return pipeline

    def select_eligible(
        self, homeowners: Iterable[Homeowner], criteria: FilterCriteria
    ) -> Iterator[EligibleHomeowner]:
        """Lazily select the eligible homeowners from a snapshot.

        Args:
            homeowners: Homeowner snapshot
            criteria: Validated filter criteria

        Returns:
            Single-pass iterator of projected records

        Raises:
            DataIntegrityError: While iterating, if the snapshot repeats an ID
        """
        if not criteria.homeowner_ids:
            return iter(())
        return self.build_pipeline(criteria).stream(homeowners)

    async def fetch_homeowners(self, tenant_id: Optional[str] = None) -> Sequence[Homeowner]:
        """Fetch the homeowner snapshot once. No retries.

        Raises:
            DataSourceError: If the source is unavailable
        """
        if self.source is None:
            raise RuntimeError("HomeownerQueryEngine has no source configured")
        return await fetch_collection(self.source.fetch_homeowners(tenant_id), source="homeowners")

    async def fetch_eligible(self, criteria: FilterCriteria) -> list[EligibleHomeowner]:
        """Fetch the snapshot and materialize the eligible set."""
        homeowners = await self.fetch_homeowners(criteria.tenant_id)
        eligible = list(self.select_eligible(homeowners, criteria))
        logger.debug(
            "Eligible homeowners selected: snapshot=%d, filter=%d, eligible=%d",
            len(homeowners), len(criteria.id_set), len(eligible),
        )
        return eligible
