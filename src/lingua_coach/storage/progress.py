"""Progress store: user profiles and the append-only assessment log."""

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError

from lingua_coach.errors import InvalidInput, StoreUnavailable
from lingua_coach.models.assessment import AssessmentRecord
from lingua_coach.models.user_profile import UserProfile
from lingua_coach.retry import STORE_RETRY, RetryPolicy, Sleep, retry_async
from lingua_coach.storage.documents import DocumentNotFound, DocumentStore

logger = structlog.get_logger()

T = TypeVar("T")

USERS = "users"
ASSESSMENTS = "assessments"


class ProgressStore:
    """Sole owner of persisted user profiles and assessment records.

    Every call to the document collaborator is retried under ``retry_policy``
    and surfaces :class:`StoreUnavailable` once retries run out. Reads that
    find nothing return ``None`` or an empty list.

    Args:
        documents: Document-store collaborator.
        retry_policy: Delay schedule for retries.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        documents: DocumentStore,
        retry_policy: RetryPolicy = STORE_RETRY,
        sleep: Sleep = asyncio.sleep,
    ):
        self.documents = documents
        self.retry_policy = retry_policy
        self._sleep = sleep

    async def _run(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return await retry_async(
                lambda: asyncio.to_thread(fn),
                self.retry_policy,
                operation=operation,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error("store_operation_failed", operation=operation, error=str(e))
            raise StoreUnavailable() from e

    async def get_user(self, user_id: str) -> UserProfile | None:
        data = await self._run("get_user", lambda: self.documents.get(USERS, user_id))
        if data is None:
            return None
        try:
            return UserProfile.model_validate({**data, "user_id": user_id})
        except ValidationError as e:
            logger.error("user_document_invalid", user_id=user_id, error=str(e))
            raise StoreUnavailable("Stored user profile is invalid") from e

    async def upsert_user(self, profile: UserProfile) -> None:
        """Validate and write ``profile``, merging into any existing document."""
        try:
            validated = UserProfile.model_validate(profile.model_dump())
        except ValidationError as e:
            raise InvalidInput(str(e)) from e

        data = validated.model_dump()
        await self._run("upsert_user", lambda: self.documents.set(USERS, validated.user_id, data))
        logger.info("user_upserted", user_id=validated.user_id)

    async def append_assessment(self, record: AssessmentRecord) -> str:
        """Validate and append ``record``; returns the generated assessment id."""
        try:
            validated = AssessmentRecord.model_validate(record.model_dump())
        except ValidationError as e:
            raise InvalidInput(str(e)) from e

        data = validated.model_dump(exclude={"assessment_id"})
        assessment_id = await self._run(
            "append_assessment", lambda: self.documents.add(ASSESSMENTS, data)
        )
        logger.info(
            "assessment_stored",
            assessment_id=assessment_id,
            user_id=validated.user_id,
            score=validated.score,
        )
        return assessment_id

    async def list_assessments(
        self, user_id: str, limit: int | None = None
    ) -> list[AssessmentRecord]:
        """Assessments for ``user_id``, most recent first. ``limit=None`` returns all."""
        rows = await self._run(
            "list_assessments",
            lambda: self.documents.query(
                ASSESSMENTS,
                filters=[("user_id", "==", user_id)],
                order_by="timestamp",
                descending=True,
                limit=limit,
            ),
        )
        return self._to_records(rows)

    async def list_assessments_since(self, since: datetime) -> list[AssessmentRecord]:
        rows = await self._run(
            "list_assessments_since",
            lambda: self.documents.query(ASSESSMENTS, filters=[("timestamp", ">=", since)]),
        )
        return self._to_records(rows)

    async def list_users(self) -> list[UserProfile]:
        rows = await self._run("list_users", lambda: self.documents.query(USERS))
        users = []
        for doc_id, data in rows:
            try:
                users.append(UserProfile.model_validate({**data, "user_id": doc_id}))
            except ValidationError:
                logger.warning("user_document_skipped", user_id=doc_id)
        return users

    async def update_user_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """Targeted field update without schema validation.

        Returns:
            False when no profile exists for ``user_id``.
        """

        def _update() -> bool:
            try:
                self.documents.update(USERS, user_id, fields)
            except DocumentNotFound:
                return False
            return True

        updated = await self._run("update_user_fields", _update)
        if updated:
            logger.info("user_fields_updated", user_id=user_id, fields=sorted(fields))
        else:
            logger.warning("user_fields_update_skipped", user_id=user_id, reason="not_found")
        return updated

    @staticmethod
    def _to_records(rows: list[tuple[str, dict[str, Any]]]) -> list[AssessmentRecord]:
        records = []
        for doc_id, data in rows:
            try:
                records.append(AssessmentRecord.model_validate({**data, "assessment_id": doc_id}))
            except ValidationError:
                logger.warning("assessment_document_skipped", assessment_id=doc_id)
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
