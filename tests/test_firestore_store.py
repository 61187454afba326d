"""Tests for the Firestore collaborator against a mocked client."""

from unittest.mock import MagicMock, patch

import pytest
from google.api_core.exceptions import NotFound

from lingua_coach.storage.documents import DocumentNotFound
from lingua_coach.storage.firestore import FirestoreDocumentStore


@pytest.fixture
def db():
    client = MagicMock()
    with (
        patch("lingua_coach.storage.firestore.firebase_admin._apps", {"[DEFAULT]": object()}),
        patch("lingua_coach.storage.firestore.firestore.client", return_value=client),
    ):
        yield client


def test_get_missing_document(db):
    db.collection.return_value.document.return_value.get.return_value.exists = False
    assert FirestoreDocumentStore().get("users", "42") is None
    db.collection.assert_called_with("users")


def test_update_missing_document(db):
    db.collection.return_value.document.return_value.update.side_effect = NotFound("gone")
    with pytest.raises(DocumentNotFound):
        FirestoreDocumentStore().update("users", "42", {"streak": 1})


def test_add_returns_generated_id(db):
    db.collection.return_value.add.return_value = (None, MagicMock(id="abc123"))
    assert FirestoreDocumentStore().add("assessments", {"score": 80}) == "abc123"


def test_query_applies_filters_order_and_limit(db):
    query = db.collection.return_value
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.stream.return_value = [MagicMock(id="a1", to_dict=MagicMock(return_value={"score": 90}))]

    rows = FirestoreDocumentStore().query(
        "assessments",
        filters=[("user_id", "==", "42")],
        order_by="timestamp",
        descending=True,
        limit=10,
    )

    assert rows == [("a1", {"score": 90})]
    assert query.where.call_count == 1
    query.limit.assert_called_with(10)
