"""Tests for weak-area aggregation and the weekly report."""

from datetime import timedelta

from lingua_coach.analysis.report import (
    DEFAULT_RECOMMENDATION,
    aggregate_weak_areas,
    build_weekly_report,
    calculate_consistency,
    collect_focus_areas,
    generate_recommendations,
    generate_weekly_report,
)
from lingua_coach.bot.messages import format_weekly_report
from lingua_coach.models.assessment import AssessmentRecord
from lingua_coach.models.user_profile import UserProfile
from tests.fakes import NOW


def record(user_id, score, weak_areas=(), days_ago=0):
    return AssessmentRecord(
        user_id=user_id,
        lesson_day=1,
        target_language="en",
        score=score,
        transcript="hello",
        expected_answer="Say hello",
        feedback="ok",
        weak_areas=list(weak_areas),
        timestamp=NOW - timedelta(days=days_ago),
    )


def user(user_id, name, streak=0):
    return UserProfile(user_id=user_id, name=name, target_language="en", streak=streak)


class TestWeakAreas:
    def test_counts_most_common_first(self):
        records = [
            record("1", 50, ["grammar", "fluency"]),
            record("2", 60, ["grammar"]),
            record("3", 70, ["pronunciation", "grammar", "fluency"]),
        ]
        assert aggregate_weak_areas(records) == {"grammar": 3, "fluency": 2, "pronunciation": 1}

    def test_keeps_top_five(self):
        records = [record("1", 50, [f"area {i}" for i in range(8)])]
        assert len(aggregate_weak_areas(records)) == 5

    def test_recommendations_by_keyword(self):
        recommendations = generate_recommendations(["Verb grammar", "Pronunciation of r", "timing"])
        assert recommendations == [
            "Add more grammar drills and explanations",
            "Consider adding pronunciation-focused exercises",
        ]

    def test_default_recommendation(self):
        assert generate_recommendations([]) == [DEFAULT_RECOMMENDATION]

    def test_focus_areas_are_distinct(self):
        records = [record("1", 50, ["grammar", "fluency"]), record("1", 60, ["grammar", "tone"])]
        assert collect_focus_areas(records) == ["grammar", "fluency", "tone"]
        assert collect_focus_areas(records, limit=1) == ["grammar"]


def test_consistency_counts_active_days():
    records = [record("1", 50, days_ago=0), record("1", 60, days_ago=0), record("1", 70, days_ago=3), record("1", 80, days_ago=9)]
    assert calculate_consistency(records, days=7, now=NOW) == 2


class TestWeeklyReport:
    def test_no_users(self):
        report = build_weekly_report([], [], NOW)
        assert report.has_users is False
        assert format_weekly_report(report) == "📊 Weekly Report\n\nNo active users yet."

    def test_summary(self):
        users = [user("1", "Dana", streak=8), user("2", "Noa", streak=2), user("3", "Avi"), user("4", "Lior")]
        records = [
            record("1", 90, ["grammar"]),
            record("1", 80),
            record("2", 70, ["grammar", "fluency"]),
            record("3", 60),
            record("4", 50),
            record("ghost", 95),
        ]

        report = build_weekly_report(users, records, NOW)

        assert report.active_users == 5
        assert report.total_lessons == 6
        assert report.avg_score == (90 + 80 + 70 + 60 + 50 + 95) / 6
        assert [p.name for p in report.top_performers] == ["Unknown", "Dana", "Noa"]
        assert report.top_performers[1].avg_score == 85
        assert report.weak_areas == {"grammar": 2, "fluency": 1}
        assert report.next_report == NOW + timedelta(days=7)

        text = format_weekly_report(report)
        assert "👥 Active Users: 5" in text
        assert "2. Dana - 85 avg, 8-day streak 🔥" in text
        assert "3. Noa - 70 avg, 2-day streak\n" in text
        assert "Include more conversational practice sessions" in text


async def test_generate_weekly_report_uses_last_week(store):
    await store.upsert_user(user("1", "Dana"))
    await store.append_assessment(record("1", 80, days_ago=1))
    await store.append_assessment(record("1", 20, days_ago=10))

    report = await generate_weekly_report(store, now=NOW)

    assert report.total_lessons == 1
    assert report.avg_score == 80
