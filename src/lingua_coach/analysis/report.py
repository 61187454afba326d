"""Weak-area aggregation and the weekly progress report."""

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from statistics import fmean

import structlog
from pydantic import BaseModel, Field

from lingua_coach.models.assessment import AssessmentRecord
from lingua_coach.models.user_profile import UserProfile
from lingua_coach.storage.progress import ProgressStore

logger = structlog.get_logger()

REPORT_WINDOW = timedelta(days=7)

AREA_RECOMMENDATIONS: dict[str, str] = {
    "pronunciation": "Consider adding pronunciation-focused exercises",
    "grammar": "Add more grammar drills and explanations",
    "vocabulary": "Expand vocabulary exercises with more context",
    "fluency": "Include more conversational practice sessions",
    "comprehension": "Add listening comprehension exercises",
}
DEFAULT_RECOMMENDATION = "Continue with current curriculum"


class PerformerSummary(BaseModel):
    user_id: str
    name: str
    avg_score: float
    streak: int = 0


class WeeklyReport(BaseModel):
    """Aggregate activity over the report window."""

    start: datetime
    end: datetime
    active_users: int = 0
    total_lessons: int = 0
    avg_score: float = 0.0
    top_performers: list[PerformerSummary] = Field(default_factory=list)
    weak_areas: dict[str, int] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)
    has_users: bool = True

    @property
    def next_report(self) -> datetime:
        return self.end + REPORT_WINDOW


def aggregate_weak_areas(records: Iterable[AssessmentRecord], top: int = 5) -> dict[str, int]:
    """Count weak-area tags across records; the ``top`` most frequent, descending."""
    counts: Counter[str] = Counter()
    for record in records:
        counts.update(record.weak_areas)
    return dict(counts.most_common(top))


def generate_recommendations(weak_areas: Iterable[str]) -> list[str]:
    """Map weak-area tags to curriculum recommendations by keyword."""
    recommendations = []
    for area in weak_areas:
        lower = area.lower()
        for keyword, recommendation in AREA_RECOMMENDATIONS.items():
            if keyword in lower:
                recommendations.append(recommendation)
                break
    return recommendations or [DEFAULT_RECOMMENDATION]


def collect_focus_areas(records: Iterable[AssessmentRecord], limit: int = 5) -> list[str]:
    """Distinct weak areas in record order, up to ``limit``."""
    seen: dict[str, None] = {}
    for record in records:
        for area in record.weak_areas:
            seen.setdefault(area, None)
    return list(seen)[:limit]


def calculate_consistency(
    records: Iterable[AssessmentRecord],
    days: int = 7,
    now: datetime | None = None,
) -> int:
    """Number of distinct days with an assessment within the last ``days`` days."""
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=days)
    return len({r.timestamp.date() for r in records if r.timestamp >= cutoff})


def build_weekly_report(
    users: Sequence[UserProfile],
    records: Sequence[AssessmentRecord],
    now: datetime,
) -> WeeklyReport:
    """Summarise ``records`` (already limited to the window) for ``users``."""
    start = now - REPORT_WINDOW
    if not users:
        return WeeklyReport(start=start, end=now, has_users=False)

    scores_by_user: dict[str, list[int]] = defaultdict(list)
    for record in records:
        scores_by_user[record.user_id].append(record.score)

    profiles = {u.user_id: u for u in users}
    performers = [
        PerformerSummary(
            user_id=user_id,
            name=profiles[user_id].name if user_id in profiles else "Unknown",
            avg_score=fmean(scores),
            streak=profiles[user_id].streak if user_id in profiles else 0,
        )
        for user_id, scores in scores_by_user.items()
    ]
    performers.sort(key=lambda p: p.avg_score, reverse=True)

    weak_areas = aggregate_weak_areas(records)
    return WeeklyReport(
        start=start,
        end=now,
        active_users=len(scores_by_user),
        total_lessons=len(records),
        avg_score=fmean(r.score for r in records) if records else 0.0,
        top_performers=performers[:3],
        weak_areas=weak_areas,
        recommendations=generate_recommendations(weak_areas),
    )


async def generate_weekly_report(store: ProgressStore, now: datetime | None = None) -> WeeklyReport:
    """Load users and the last week's assessments and build the report."""
    now = now or datetime.now(UTC)
    users = await store.list_users()
    records = await store.list_assessments_since(now - REPORT_WINDOW) if users else []
    report = build_weekly_report(users, records, now)
    logger.info(
        "weekly_report_generated",
        active_users=report.active_users,
        total_lessons=report.total_lessons,
        avg_score=round(report.avg_score),
    )
    return report
