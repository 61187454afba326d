"""Consecutive-day streaks derived from the assessment log."""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from lingua_coach.storage.progress import ProgressStore


def to_utc_date(value: date | datetime) -> date:
    """Calendar date of ``value`` in UTC (naive datetimes are taken as UTC)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def streak_from_dates(dates: Iterable[date | datetime], as_of: date | datetime) -> int:
    """Count consecutive calendar days ending on ``as_of``.

    ``as_of`` always counts as active, so the result is at least 1. Dates
    after ``as_of`` are ignored.
    """
    reference = to_utc_date(as_of)
    unique = {to_utc_date(d) for d in dates}
    unique.add(reference)
    ordered = sorted((d for d in unique if d <= reference), reverse=True)

    streak = 1
    for current, previous in zip(ordered, ordered[1:]):
        if current - previous != timedelta(days=1):
            break
        streak += 1
    return streak


async def compute_streak(store: ProgressStore, user_id: str, as_of: date | datetime) -> int:
    """Recompute the streak for ``user_id`` from the full assessment log."""
    records = await store.list_assessments(user_id)
    return streak_from_dates((r.timestamp for r in records), as_of)
