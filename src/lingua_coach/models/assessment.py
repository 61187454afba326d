"""Assessment models: graded results, persisted records and pipeline outcomes."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lingua_coach.errors import ErrorKind
from lingua_coach.models.lesson import (
    DEFAULT_NATIVE_LANGUAGE,
    SUPPORTED_LANGUAGES,
    VocabularyItem,
)


class PipelineStage(StrEnum):
    """Pipeline step a failure is attributed to."""

    VALIDATION = "validation"
    TRANSCRIPTION = "transcription"
    GRADING = "grading"
    PERSISTENCE = "persistence"
    AGGREGATE = "aggregate"
    INTERNAL = "internal"


class GradedResult(BaseModel):
    """Structured output of parsing a grading response."""

    score: int = Field(default=0, ge=0, le=100)
    feedback: str = "No feedback available"
    strengths: list[str] = Field(default_factory=list)
    weak_areas: list[str] = Field(default_factory=list)


class AssessmentRecord(BaseModel):
    """One graded voice submission. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    assessment_id: str | None = None
    user_id: str = Field(min_length=1)
    lesson_day: int = Field(ge=1)
    target_language: str
    score: int = Field(ge=0, le=100)
    transcript: str
    expected_answer: str = Field(min_length=1)
    feedback: str
    strengths: list[str] = Field(default_factory=list)
    weak_areas: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("target_language")
    @classmethod
    def _check_language(cls, value: str) -> str:
        if value not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Language '{value}' is not supported")
        return value

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class AssessmentRequest(BaseModel):
    """Caller-supplied assessment parameters (audio is validated separately)."""

    user_id: str = Field(min_length=1)
    lesson_day: int = Field(ge=1)
    target_language: str
    native_language: str = DEFAULT_NATIVE_LANGUAGE
    lesson_words: list[VocabularyItem] = Field(min_length=1)
    expected_answer: str = Field(min_length=1)

    @field_validator("user_id", "expected_answer")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("target_language")
    @classmethod
    def _check_language(cls, value: str) -> str:
        if value not in SUPPORTED_LANGUAGES:
            raise ValueError(f"must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return value


class AssessmentSuccess(BaseModel):
    ok: Literal[True] = True
    assessment_id: str
    score: int
    transcript: str
    feedback: str
    strengths: list[str]
    weak_areas: list[str]


class AssessmentFailure(BaseModel):
    ok: Literal[False] = False
    error_kind: ErrorKind
    message: str
    stage: PipelineStage


AssessmentOutcome = AssessmentSuccess | AssessmentFailure
