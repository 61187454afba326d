"""Firebase Firestore document-store collaborator."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import firebase_admin
import structlog
from firebase_admin import credentials, firestore
from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from lingua_coach.storage.documents import DocumentNotFound, Filter

logger = structlog.get_logger()


class FirestoreDocumentStore:
    """Document store backed by Cloud Firestore via firebase-admin.

    Args:
        credentials_path: Service-account JSON file; application default
            credentials are used when omitted.
        project_id: Firebase project id.
    """

    def __init__(self, credentials_path: Path | None = None, project_id: str | None = None):
        if not firebase_admin._apps:
            cred = (
                credentials.Certificate(str(credentials_path))
                if credentials_path
                else credentials.ApplicationDefault()
            )
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
            logger.info("firebase_initialized", project_id=project_id)
        self.db = firestore.client()

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self.db.collection(collection).document(doc_id).get()
        return doc.to_dict() if doc.exists else None

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = True
    ) -> None:
        self.db.collection(collection).document(doc_id).set(data, merge=merge)

    def add(self, collection: str, data: dict[str, Any]) -> str:
        _, doc_ref = self.db.collection(collection).add(data)
        return doc_ref.id

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            self.db.collection(collection).document(doc_id).update(fields)
        except NotFound as e:
            raise DocumentNotFound(f"{collection}/{doc_id}") from e

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        query = self.db.collection(collection)
        for field, op, value in filters:
            query = query.where(filter=FieldFilter(field, op, value))
        if order_by is not None:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return [(doc.id, doc.to_dict()) for doc in query.stream()]
