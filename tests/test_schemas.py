"""
Schema tests: filter criteria coercion and statistics result invariants.
"""

import pytest
from pydantic import ValidationError

from homeowner_stats.utils.errors import InvalidFilterError
from homeowner_stats.utils.schemas import (
    EligibleHomeowner,
    FilterCriteria,
    Homeowner,
    HomeownerStatus,
    PortalUser,
    RatioMetric,
    StatisticsEvent,
    StatisticsResult,
)


class TestFilterCriteria:

    def test_coerce_from_mapping(self):
        criteria = FilterCriteria.coerce({"homeowner_ids": [3, 1, 3], "tenant_id": "acme"})

        assert criteria.homeowner_ids == [3, 1, 3]
        assert criteria.id_set == frozenset({1, 3})
        assert criteria.tenant_id == "acme"

    def test_coerce_from_iterable_of_ids(self):
        criteria = FilterCriteria.coerce((1, 2))
        assert criteria.homeowner_ids == [1, 2]

    def test_coerce_returns_instance_unchanged(self):
        criteria = FilterCriteria(homeowner_ids=[1])
        assert FilterCriteria.coerce(criteria) is criteria

    def test_numeric_strings_are_accepted(self):
        assert FilterCriteria.coerce({"homeowner_ids": ["7", "8"]}).homeowner_ids == [7, 8]

    def test_empty_list_is_valid(self):
        assert FilterCriteria.coerce({"homeowner_ids": []}).homeowner_ids == []

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            {"homeowner_ids": None},
            {},
            {"homeowner_ids": "1,2"},
            {"homeowner_ids": ["abc"]},
            {"homeowner_ids": [1], "unknown": True},
            {"homeowner_ids": [1], "sort_by": "email"},
            {"homeowner_ids": [1], "ratios": ["nonsense"]},
            "1,2,3",
            42,
        ],
    )
    def test_malformed_criteria_raise_invalid_filter(self, raw):
        with pytest.raises(InvalidFilterError):
            FilterCriteria.coerce(raw)

    def test_ratios_parse_to_enum(self):
        criteria = FilterCriteria.coerce({"homeowner_ids": [1], "ratios": ["portal_adoption"]})
        assert criteria.ratios == [RatioMetric.PORTAL_ADOPTION]


class TestRecords:

    def test_homeowner_status_is_tri_state(self):
        assert Homeowner(id=1, inactive=None).status is HomeownerStatus.UNKNOWN
        assert Homeowner(id=1, inactive=True).status is HomeownerStatus.INACTIVE
        assert Homeowner(id=1, inactive=False).status is HomeownerStatus.ACTIVE

    def test_homeowner_is_immutable(self):
        homeowner = Homeowner(id=1, first_name="Ada")
        with pytest.raises(ValidationError):
            homeowner.first_name = "Changed"

    def test_portal_user_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            PortalUser(id=1, homeowner_id=1, email="not-an-email")

    def test_eligible_full_name(self):
        assert EligibleHomeowner(id=1, first_name="Ada", last_name="Moss").full_name == "Ada Moss"
        assert EligibleHomeowner(id=2, first_name="", last_name="Moss").full_name == "Moss"


class TestStatisticsResult:

    def test_empty_result_is_all_zero(self):
        result = StatisticsResult.empty([RatioMetric.UNREGISTERED])

        assert (result.total, result.with_portal, result.without_portal, result.inactive_portal) == (0, 0, 0, 0)
        assert result.ratios == {RatioMetric.UNREGISTERED: 0.0}

    def test_counts_must_sum_to_total(self):
        with pytest.raises(ValidationError):
            StatisticsResult(total=3, with_portal=1, without_portal=1, inactive_portal=0)

    def test_json_dump_uses_metric_names(self):
        result = StatisticsResult(total=2, with_portal=1, without_portal=1, ratios={RatioMetric.PORTAL_ADOPTION: 0.5})
        dumped = result.model_dump(mode="json")

        assert dumped["ratios"] == {"portal_adoption": 0.5}
        assert dumped["total"] == 2

    def test_event_defaults(self):
        event = StatisticsEvent(result=StatisticsResult.empty(), tenant_id="acme")

        assert event.type == "statistics_computed"
        assert event.ts.tzinfo is not None
