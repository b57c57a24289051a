"""
Follow-up scheduling policy.

Maps how well you know a contact to how long to wait before reaching
out again, and computes the resulting follow-up date.
"""

import enum
from datetime import date, datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Optional, Union


class RelationshipTier(str, enum.Enum):
    """How well the user knows a contact, from least to most familiar."""
    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    CLOSE = "close"
    MENTOR = "mentor"
    MENTEE = "mentee"


DEFAULT_FOLLOW_UP_DAYS = 60

# Days to wait before the next follow-up, per relationship tier.
# Not monotonic in closeness: mentorships run on a faster cadence.
FOLLOW_UP_INTERVALS = MappingProxyType({
    RelationshipTier.MENTOR: 21,
    RelationshipTier.MENTEE: 14,
    RelationshipTier.CLOSE: 30,
    RelationshipTier.FRIENDLY: 45,
    RelationshipTier.PROFESSIONAL: 60,
    RelationshipTier.ACQUAINTANCE: 90,
    RelationshipTier.STRANGER: 180,
})

INTERVAL_LABELS = MappingProxyType({
    14: "2 weeks",
    21: "3 weeks",
    30: "1 month",
    45: "6 weeks",
    60: "2 months",
    90: "3 months",
    180: "6 months",
})

DateLike = Union[date, datetime]


def coerce_tier(tier: Any) -> Optional[RelationshipTier]:
    """Return the RelationshipTier for a member or its value, else None."""
    if isinstance(tier, RelationshipTier):
        return tier
    try:
        return RelationshipTier(tier)
    except (ValueError, TypeError):
        return None


def interval_for_tier(tier: Any) -> int:
    """
    Get the follow-up interval in days for a relationship tier.

    Unrecognized values fall back to DEFAULT_FOLLOW_UP_DAYS so that
    callers never have to handle a failure here.
    """
    known = coerce_tier(tier)
    if known is None:
        return DEFAULT_FOLLOW_UP_DAYS
    return FOLLOW_UP_INTERVALS.get(known, DEFAULT_FOLLOW_UP_DAYS)


def next_follow_up_date(tier: Any, from_date: Optional[DateLike] = None) -> DateLike:
    """
    Compute the next follow-up date for a contact.

    Adds whole calendar days to ``from_date`` (now, in UTC, if omitted).
    Aware datetimes keep their wall-clock time across DST changes.

    Args:
        tier: The contact's relationship tier
        from_date: Reference date (send or response timestamp)

    Returns:
        A value of the same type as ``from_date``
    """
    if from_date is None:
        from_date = datetime.now(timezone.utc)
    return from_date + timedelta(days=interval_for_tier(tier))


def format_interval(days: int) -> str:
    """Human-readable label for a number of days."""
    return INTERVAL_LABELS.get(days, f"{days} days")


def describe_interval(tier: Any) -> str:
    """Human-readable follow-up cadence for a tier, e.g. "3 weeks"."""
    return format_interval(interval_for_tier(tier))
