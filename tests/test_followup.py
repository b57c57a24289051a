"""
Tests for the follow-up scheduling policy.

Run with: pytest tests/
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from networking_tracker.followup import (
    DEFAULT_FOLLOW_UP_DAYS,
    FOLLOW_UP_INTERVALS,
    RelationshipTier,
    describe_interval,
    format_interval,
    interval_for_tier,
    next_follow_up_date,
)


EXPECTED = [
    (RelationshipTier.MENTOR, 21, "3 weeks"),
    (RelationshipTier.MENTEE, 14, "2 weeks"),
    (RelationshipTier.CLOSE, 30, "1 month"),
    (RelationshipTier.FRIENDLY, 45, "6 weeks"),
    (RelationshipTier.PROFESSIONAL, 60, "2 months"),
    (RelationshipTier.ACQUAINTANCE, 90, "3 months"),
    (RelationshipTier.STRANGER, 180, "6 months"),
]

REFERENCE_DATES = [
    date(2024, 1, 1),
    date(2024, 2, 29),
    datetime(2023, 12, 31, 23, 59),
    datetime(2024, 11, 3, 1, 30, tzinfo=ZoneInfo("America/New_York")),
    datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc),
]


class TestIntervalForTier:
    """Tests for the tier to interval lookup."""

    @pytest.mark.parametrize("tier,days,_label", EXPECTED)
    def test_table_values(self, tier, days, _label):
        assert interval_for_tier(tier) == days

    @pytest.mark.parametrize("tier,days,_label", EXPECTED)
    def test_string_values(self, tier, days, _label):
        """Plain string values resolve the same as enum members."""
        assert interval_for_tier(tier.value) == days

    @pytest.mark.parametrize("value", [
        "unknown_value",
        "",
        None,
        "MENTOR",
        42,
        ["mentor"],
        {"tier": "close"},
        object(),
    ])
    def test_unrecognized_returns_default(self, value):
        assert interval_for_tier(value) == 60
        assert DEFAULT_FOLLOW_UP_DAYS == 60

    def test_every_tier_has_an_interval(self):
        assert set(FOLLOW_UP_INTERVALS) == set(RelationshipTier)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            FOLLOW_UP_INTERVALS[RelationshipTier.CLOSE] = 7


class TestNextFollowUpDate:
    """Tests for follow-up date computation."""

    def test_mentor_from_new_year(self):
        assert next_follow_up_date("mentor", date(2024, 1, 1)) == date(2024, 1, 22)

    def test_stranger_from_new_year(self):
        assert next_follow_up_date("stranger", date(2024, 1, 1)) == date(2024, 6, 29)

    def test_close_across_leap_day(self):
        assert next_follow_up_date(RelationshipTier.CLOSE, date(2024, 2, 15)) == date(2024, 3, 16)

    def test_unknown_tier_uses_default(self):
        assert next_follow_up_date("unknown_value", date(2024, 1, 1)) == date(2024, 3, 1)

    @pytest.mark.parametrize("reference", REFERENCE_DATES)
    @pytest.mark.parametrize("tier", list(RelationshipTier))
    def test_result_is_later_by_interval(self, tier, reference):
        result = next_follow_up_date(tier, reference)
        assert result > reference
        assert (result.date() if isinstance(result, datetime) else result) - (
            reference.date() if isinstance(reference, datetime) else reference
        ) == timedelta(days=interval_for_tier(tier))

    def test_keeps_input_type(self):
        assert type(next_follow_up_date("close", date(2024, 1, 1))) is date
        assert type(next_follow_up_date("close", datetime(2024, 1, 1))) is datetime

    def test_deterministic(self):
        reference = datetime(2024, 5, 5, 8, 30)
        assert next_follow_up_date("friendly", reference) == next_follow_up_date("friendly", reference)

    def test_crosses_dst_by_calendar_days(self):
        """Spring-forward keeps the wall-clock time, not a fixed number of hours."""
        eastern = ZoneInfo("America/New_York")
        before = datetime(2024, 3, 1, 9, 0, tzinfo=eastern)

        result = next_follow_up_date(RelationshipTier.MENTEE, before)

        assert result == datetime(2024, 3, 15, 9, 0, tzinfo=eastern)
        assert (result.year, result.month, result.day, result.hour) == (2024, 3, 15, 9)
        assert before.utcoffset() != result.utcoffset()
        assert result.astimezone(timezone.utc) - before.astimezone(timezone.utc) == timedelta(days=14, hours=-1)

    def test_crosses_dst_fall_back(self):
        eastern = ZoneInfo("America/New_York")
        before = datetime(2024, 10, 20, 18, 0, tzinfo=eastern)

        result = next_follow_up_date(RelationshipTier.MENTOR, before)

        assert (result.month, result.day, result.hour) == (11, 10, 18)
        assert result.astimezone(timezone.utc) - before.astimezone(timezone.utc) == timedelta(days=21, hours=1)

    def test_defaults_to_now(self):
        before = datetime.now(timezone.utc)
        result = next_follow_up_date(RelationshipTier.CLOSE)
        after = datetime.now(timezone.utc)

        assert before + timedelta(days=30) <= result <= after + timedelta(days=30)


class TestDescribeInterval:
    """Tests for human-readable interval labels."""

    @pytest.mark.parametrize("tier,days,label", EXPECTED)
    def test_labels(self, tier, days, label):
        assert describe_interval(tier) == label
        assert format_interval(interval_for_tier(tier)) == label

    def test_unknown_tier_label(self):
        assert describe_interval("unknown_value") == "2 months"

    def test_unnamed_interval(self):
        assert format_interval(10) == "10 days"
