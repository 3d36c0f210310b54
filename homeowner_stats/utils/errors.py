"""
Error taxonomy for the statistics core.

"No eligible homeowners" and "no portal account" are valid zero-value
outcomes and never raise.
"""


class PortalStatsError(Exception):
    """Base class for all errors raised by homeowner_stats."""


class DataSourceError(PortalStatsError):
    """A homeowner or portal-user collection could not be fetched.

    Surfaced to the caller unchanged; the core performs no retries.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class InvalidFilterError(PortalStatsError):
    """Filter criteria are malformed. Raised before any fetch is attempted."""


class DataIntegrityError(PortalStatsError):
    """A snapshot violates an identity constraint (duplicate homeowner ids)."""

    def __init__(self, message: str, duplicate_id: int | None = None) -> None:
        super().__init__(message)
        self.duplicate_id = duplicate_id
