"""Tests for the progress store and the JSON document store."""

from datetime import timedelta

import pytest

from lingua_coach.errors import StoreUnavailable
from lingua_coach.models.assessment import AssessmentRecord
from lingua_coach.models.user_profile import UserProfile
from lingua_coach.storage.documents import DocumentNotFound, JsonDocumentStore
from lingua_coach.storage.progress import USERS, ProgressStore
from tests.fakes import FlakyDocuments, NOW


def make_record(user_id="u1", score=70, when=NOW, weak_areas=()):
    return AssessmentRecord(
        user_id=user_id,
        lesson_day=1,
        target_language="en",
        score=score,
        transcript="hello my name is Dana",
        expected_answer="Introduce yourself",
        feedback="Good",
        weak_areas=list(weak_areas),
        timestamp=when,
    )


class TestJsonDocumentStore:
    def test_set_merges_nested_fields(self, documents):
        documents.set(USERS, "1", {"name": "Dana", "settings": {"lesson_time": "09:00"}})
        documents.set(USERS, "1", {"settings": {"notification_enabled": False}})
        assert documents.get(USERS, "1") == {
            "name": "Dana",
            "settings": {"lesson_time": "09:00", "notification_enabled": False},
        }

    def test_set_without_merge_replaces(self, documents):
        documents.set(USERS, "1", {"name": "Dana", "streak": 3})
        documents.set(USERS, "1", {"name": "Noa"}, merge=False)
        assert documents.get(USERS, "1") == {"name": "Noa"}

    def test_update_missing_document(self, documents):
        with pytest.raises(DocumentNotFound):
            documents.update(USERS, "nobody", {"streak": 1})

    def test_add_generates_unique_ids(self, documents):
        first = documents.add("assessments", {"score": 1})
        second = documents.add("assessments", {"score": 2})
        assert first != second

    def test_query_filters_orders_and_limits(self, documents):
        for i, score in enumerate([50, 90, 70]):
            documents.add(
                "assessments",
                {"user_id": "u1", "score": score, "timestamp": str(NOW + timedelta(minutes=i))},
            )
        documents.add("assessments", {"user_id": "u2", "score": 10, "timestamp": str(NOW)})

        rows = documents.query(
            "assessments",
            filters=[("user_id", "==", "u1")],
            order_by="timestamp",
            descending=True,
            limit=2,
        )
        assert [data["score"] for _, data in rows] == [70, 90]

    def test_query_compares_timestamps(self, documents):
        documents.add("assessments", {"timestamp": str(NOW - timedelta(days=10))})
        documents.add("assessments", {"timestamp": str(NOW)})
        rows = documents.query("assessments", filters=[("timestamp", ">=", NOW - timedelta(days=7))])
        assert len(rows) == 1

    def test_survives_reopen(self, tmp_path):
        JsonDocumentStore(tmp_path).set(USERS, "1", {"name": "Dana"})
        assert JsonDocumentStore(tmp_path).get(USERS, "1") == {"name": "Dana"}


class TestProgressStore:
    async def test_user_round_trip(self, store):
        await store.upsert_user(UserProfile(user_id="42", name="Dana", target_language="es"))
        profile = await store.get_user("42")
        assert profile.name == "Dana"
        assert profile.target_language == "es"
        assert profile.native_language == "he"
        assert profile.settings.lesson_time == "09:00"

    async def test_missing_user_is_none(self, store):
        assert await store.get_user("nobody") is None

    async def test_list_assessments_most_recent_first(self, store):
        for n, score in enumerate([60, 70, 80]):
            await store.append_assessment(make_record(score=score, when=NOW - timedelta(days=n)))
        await store.append_assessment(make_record(user_id="u2"))

        records = await store.list_assessments("u1")
        assert [r.score for r in records] == [60, 70, 80]
        assert all(r.assessment_id for r in records)
        assert [r.score for r in await store.list_assessments("u1", limit=1)] == [60]

    async def test_list_assessments_since(self, store):
        await store.append_assessment(make_record(when=NOW - timedelta(days=8)))
        await store.append_assessment(make_record(when=NOW - timedelta(days=1)))
        records = await store.list_assessments_since(NOW - timedelta(days=7))
        assert len(records) == 1

    async def test_update_fields_of_missing_user(self, store):
        assert await store.update_user_fields("nobody", {"streak": 1}) is False

    async def test_update_fields(self, store):
        await store.upsert_user(UserProfile(user_id="42", name="Dana", target_language="en"))
        assert await store.update_user_fields("42", {"avg_score": 77.5, "streak": 2}) is True
        profile = await store.get_user("42")
        assert profile.avg_score == 77.5
        assert profile.streak == 2

    async def test_list_users_skips_invalid_documents(self, store, documents):
        await store.upsert_user(UserProfile(user_id="42", name="Dana", target_language="en"))
        documents.set(USERS, "broken", {"name": "X", "target_language": "xx"})
        users = await store.list_users()
        assert [u.user_id for u in users] == ["42"]


class TestProgressStoreRetry:
    async def test_transient_failure_is_retried(self, documents, sleep):
        flaky = FlakyDocuments(documents, {"get": 2})
        store = ProgressStore(flaky, sleep=sleep)
        assert await store.get_user("42") is None
        assert flaky.calls["get"] == 3
        assert sleep.delays == [0.1, 0.2]

    async def test_persistent_failure_is_store_unavailable(self, documents, sleep):
        flaky = FlakyDocuments(documents, {"add": -1})
        store = ProgressStore(flaky, sleep=sleep)
        with pytest.raises(StoreUnavailable):
            await store.append_assessment(make_record())
        assert flaky.calls["add"] == 4
        assert sleep.delays == [0.1, 0.2, 0.4]

    async def test_missing_user_is_not_retried(self, documents, sleep):
        flaky = FlakyDocuments(documents)
        store = ProgressStore(flaky, sleep=sleep)
        assert await store.update_user_fields("nobody", {"streak": 1}) is False
        assert flaky.calls["update"] == 1
        assert sleep.delays == []

    async def test_invalid_stored_profile(self, store, documents):
        documents.set(USERS, "42", {"name": "Dana", "target_language": "xx"})
        with pytest.raises(StoreUnavailable):
            await store.get_user("42")
