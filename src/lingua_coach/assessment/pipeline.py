"""Voice assessment pipeline shared by the chat bot and the HTTP API."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from statistics import fmean
from typing import Any

import structlog
from pydantic import ValidationError

from lingua_coach.assessment.grader import GradingClient
from lingua_coach.assessment.parser import parse_grading_response
from lingua_coach.assessment.streak import streak_from_dates
from lingua_coach.assessment.transcription import TranscriptionClient
from lingua_coach.errors import EmptyAudio, InvalidInput, LinguaCoachError
from lingua_coach.models.assessment import (
    AssessmentFailure,
    AssessmentOutcome,
    AssessmentRecord,
    AssessmentRequest,
    AssessmentSuccess,
    PipelineStage,
)
from lingua_coach.models.lesson import DEFAULT_NATIVE_LANGUAGE, VocabularyItem
from lingua_coach.storage.progress import ProgressStore

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
        for err in error.errors()
    )


class AssessmentPipeline:
    """Transcribe -> grade -> parse -> persist -> recompute aggregates.

    Each stage short-circuits the rest on failure. The assessment record is
    durable once written; a failure while recomputing aggregates does not
    remove it, since aggregates are always rebuilt from the log.

    Args:
        transcriber: Speech-to-text client.
        grader: Grading client.
        store: Progress store.
        default_native_language: Used when a caller omits the native language.
        clock: Current UTC time, injectable for tests.
    """

    def __init__(
        self,
        transcriber: TranscriptionClient,
        grader: GradingClient,
        store: ProgressStore,
        default_native_language: str = DEFAULT_NATIVE_LANGUAGE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.transcriber = transcriber
        self.grader = grader
        self.store = store
        self.default_native_language = default_native_language
        self._clock = clock

    async def assess_voice(
        self,
        *,
        user_id: str,
        lesson_day: int,
        target_language: str,
        audio: bytes,
        lesson_words: Sequence[VocabularyItem | dict[str, Any]],
        expected_answer: str,
        native_language: str | None = None,
    ) -> AssessmentOutcome:
        """Assess one voice submission.

        Returns:
            AssessmentSuccess with the stored record's id and graded fields,
            or AssessmentFailure naming the error kind and the failed stage.
        """
        stage = PipelineStage.VALIDATION
        try:
            if not audio:
                raise EmptyAudio()
            try:
                request = AssessmentRequest(
                    user_id=user_id,
                    lesson_day=lesson_day,
                    target_language=target_language,
                    native_language=native_language or self.default_native_language,
                    lesson_words=list(lesson_words),
                    expected_answer=expected_answer,
                )
            except ValidationError as e:
                raise InvalidInput(_validation_message(e)) from e

            log = logger.bind(user_id=request.user_id, lesson_day=request.lesson_day)

            stage = PipelineStage.TRANSCRIPTION
            transcript = await self.transcriber.transcribe(audio, request.target_language)

            stage = PipelineStage.GRADING
            raw = await self.grader.grade(
                transcript=transcript,
                target_language=request.target_language,
                native_language=request.native_language,
                lesson_words=request.lesson_words,
                expected_answer=request.expected_answer,
            )
            graded = parse_grading_response(raw)

            stage = PipelineStage.PERSISTENCE
            now = self._clock()
            record = AssessmentRecord(
                user_id=request.user_id,
                lesson_day=request.lesson_day,
                target_language=request.target_language,
                score=graded.score,
                transcript=transcript,
                expected_answer=request.expected_answer,
                feedback=graded.feedback,
                strengths=graded.strengths,
                weak_areas=graded.weak_areas,
                timestamp=now,
            )
            assessment_id = await self.store.append_assessment(record)

            stage = PipelineStage.AGGREGATE
            await self._refresh_aggregates(request.user_id, now)

            log.info("assessment_completed", assessment_id=assessment_id, score=graded.score)
            return AssessmentSuccess(
                assessment_id=assessment_id,
                score=graded.score,
                transcript=transcript,
                feedback=graded.feedback,
                strengths=graded.strengths,
                weak_areas=graded.weak_areas,
            )

        except LinguaCoachError as e:
            logger.warning(
                "assessment_failed",
                user_id=user_id,
                stage=stage,
                error_kind=e.kind,
                error=e.message,
            )
            return AssessmentFailure(error_kind=e.kind, message=e.message, stage=stage)
        except Exception:
            logger.exception("assessment_pipeline_error", user_id=user_id, stage=stage)
            return AssessmentFailure(
                error_kind=LinguaCoachError.kind,
                message=LinguaCoachError.default_message,
                stage=PipelineStage.INTERNAL,
            )

    async def _refresh_aggregates(self, user_id: str, now: datetime) -> None:
        """Recompute average score and streak from the full assessment log."""
        records = await self.store.list_assessments(user_id)
        if not records:
            return
        avg_score = fmean(r.score for r in records)
        streak = streak_from_dates((r.timestamp for r in records), now)
        await self.store.update_user_fields(user_id, {"avg_score": avg_score, "streak": streak})
