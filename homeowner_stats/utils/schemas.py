"""
Pydantic Schemas - Data Validation Models

Defines the schemas shared across the statistics pipeline:
- Source records (Homeowner, PortalUser, FilteredHomeownerEntry)
- Request criteria (FilterCriteria)
- Intermediate rows (EligibleHomeowner, HomeownerPortalEntry)
- Response and notification payloads (StatisticsResult, StatisticsEvent)

Usage:
    from homeowner_stats.utils.schemas import FilterCriteria

    criteria = FilterCriteria.coerce({"homeowner_ids": [1, 2, 3]})
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator, model_validator

from homeowner_stats.utils.errors import InvalidFilterError


class HomeownerStatus(str, Enum):
    """Tri-state active flag of a homeowner record."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class PortalStatus(str, Enum):
    """Portal-account status of a homeowner after the left join."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    NOT_REGISTERED = "not_registered"


class RatioMetric(str, Enum):
    """Derived ratio metrics a caller may request, each over the eligible total."""

    PORTAL_ADOPTION = "portal_adoption"
    UNREGISTERED = "unregistered"
    INACTIVE_PORTAL = "inactive_portal"


class Homeowner(BaseModel):
    """Homeowner record as owned by the data store.

    `inactive` is tri-state: True (inactive), False (active), None (unknown).
    Only True excludes the homeowner from statistics.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Homeowner ID")
    first_name: str = Field(default="", description="First name")
    last_name: str = Field(default="", description="Last name")
    inactive: Optional[bool] = Field(default=None, description="Inactive flag (None = unknown)")

    @property
    def status(self) -> HomeownerStatus:
        if self.inactive is None:
            return HomeownerStatus.UNKNOWN
        return HomeownerStatus.INACTIVE if self.inactive else HomeownerStatus.ACTIVE


class PortalUser(BaseModel):
    """Self-service portal account referencing a homeowner."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Portal user ID")
    homeowner_id: int = Field(..., description="Referenced homeowner ID")
    is_active: bool = Field(default=False, description="Account is active/registered")
    email: Optional[EmailStr] = Field(default=None, description="Login email")


class FilteredHomeownerEntry(BaseModel):
    """One homeowner ID in a stored allow-list."""

    model_config = ConfigDict(frozen=True)

    homeowner_id: int = Field(..., description="Allowed homeowner ID")
    list_name: str = Field(default="default", min_length=1, description="Allow-list name")


class FilterCriteria(BaseModel):
    """Caller-supplied restriction on which homeowners are eligible.

    An empty `homeowner_ids` list means "nobody", never "everybody".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    homeowner_ids: list[int] = Field(..., description="Allow-list of homeowner IDs")
    tenant_id: Optional[str] = Field(default=None, description="Tenant context passed to sources")
    sort_by: Optional[Literal["id", "first_name", "last_name"]] = Field(
        default=None, description="Sort eligible homeowners by this field"
    )
    ratios: list[RatioMetric] = Field(default_factory=list, description="Ratio metrics to derive")

    @field_validator("homeowner_ids", mode="before")
    @classmethod
    def validate_homeowner_ids(cls, v: Any) -> Any:
        """Reject a null list and bare strings such as "1,2,3"."""
        if v is None:
            raise ValueError("homeowner_ids must be a list, not null")
        if isinstance(v, (str, bytes)):
            raise ValueError("homeowner_ids must be a list of integers")
        return v

    @property
    def id_set(self) -> frozenset[int]:
        return frozenset(self.homeowner_ids)

    @classmethod
    def coerce(cls, raw: Any) -> "FilterCriteria":
        """Build criteria from an instance, a mapping or a plain iterable of IDs.

        Raises:
            InvalidFilterError: If raw is None or fails validation
        """
        if isinstance(raw, cls):
            return raw
        if raw is None:
            raise InvalidFilterError("Filter criteria are required")

        try:
            if isinstance(raw, Mapping):
                return cls.model_validate(dict(raw))
            if isinstance(raw, Iterable) and not isinstance(raw, (str, bytes)):
                return cls(homeowner_ids=list(raw))
        except ValidationError as e:
            raise InvalidFilterError(str(e).split("\n")[0] + ": " + _first_error(e)) from e

        raise InvalidFilterError(f"Unsupported filter criteria type: {type(raw).__name__}")


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


class EligibleHomeowner(BaseModel):
    """Projection of a homeowner that passed the active and allow-list checks."""

    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @classmethod
    def from_homeowner(cls, homeowner: Homeowner) -> "EligibleHomeowner":
        return cls(id=homeowner.id, first_name=homeowner.first_name, last_name=homeowner.last_name)


class HomeownerPortalEntry(BaseModel):
    """Left-join row: one eligible homeowner and its portal status."""

    model_config = ConfigDict(frozen=True)

    homeowner: EligibleHomeowner
    portal_status: PortalStatus


class StatisticsResult(BaseModel):
    """Overview statistics for the eligible set.

    The three status counts are disjoint and always sum to `total`.
    """

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0, description="Eligible homeowners")
    with_portal: int = Field(default=0, ge=0, description="Eligible homeowners with an active portal account")
    without_portal: int = Field(default=0, ge=0, description="Eligible homeowners with no portal account")
    inactive_portal: int = Field(default=0, ge=0, description="Eligible homeowners whose portal account is inactive")
    ratios: dict[RatioMetric, float] = Field(default_factory=dict, description="Requested ratio metrics")

    @model_validator(mode="after")
    def validate_counts(self) -> "StatisticsResult":
        if self.with_portal + self.without_portal + self.inactive_portal != self.total:
            raise ValueError("portal status counts must sum to total")
        return self

    @classmethod
    def empty(cls, ratios: Iterable[RatioMetric] = ()) -> "StatisticsResult":
        return cls(ratios={metric: 0.0 for metric in ratios})


class StatisticsEvent(BaseModel):
    """Pub/Sub payload announcing a computed statistics result.

    {
        "type": "statistics_computed",
        "tenant_id": "acme",
        "result": {"total": 2, "with_portal": 1, ...},
        "ts": "2025-01-15T03:15:02Z"
    }
    """

    type: Literal["statistics_computed"] = Field(default="statistics_computed", description="Event type")
    tenant_id: Optional[str] = Field(default=None, description="Tenant context")
    result: StatisticsResult = Field(..., description="Computed statistics")
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Timestamp")
