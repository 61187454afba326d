"""REST API routes exposing the assessment pipeline to external callers."""

import base64
import binascii
import functools
from collections.abc import Awaitable, Callable

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from lingua_coach.analysis.report import calculate_consistency, collect_focus_areas
from lingua_coach.api.schemas import (
    ASSESS_VOICE_TOOL,
    AssessVoiceRequest,
    ProgressResponse,
    ToolCallRequest,
)
from lingua_coach.config import get_settings
from lingua_coach.errors import (
    AudioDownloadFailed,
    ErrorKind,
    InvalidInput,
    LinguaCoachError,
    StoreUnavailable,
)
from lingua_coach.models.assessment import (
    AssessmentFailure,
    AssessmentOutcome,
    PipelineStage,
)
from lingua_coach.models.lesson import Lesson
from lingua_coach.services import Services, build_services

logger = structlog.get_logger()
router = APIRouter(prefix="/api")
tools_router = APIRouter(prefix="/mcp")

AudioFetcher = Callable[[str], Awaitable[bytes]]

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.EMPTY_AUDIO: 400,
    ErrorKind.AUDIO_DOWNLOAD_FAILED: 400,
    ErrorKind.LESSON_NOT_FOUND: 404,
    ErrorKind.INVALID_CONTENT: 422,
    ErrorKind.TRANSCRIPTION_FAILED: 502,
    ErrorKind.GRADING_FAILED: 502,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


@functools.lru_cache
def get_services() -> Services:
    return build_services(get_settings())


def get_audio_fetcher() -> AudioFetcher:
    timeout = get_settings().audio_download_timeout_seconds

    async def fetch(url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.error("audio_download_failed", url=url, error=str(e))
            raise AudioDownloadFailed() from e

    return fetch


async def _load_audio(body: AssessVoiceRequest, fetch: AudioFetcher) -> bytes:
    if body.audio_base64 is not None:
        try:
            return base64.b64decode(body.audio_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInput("audio_base64 is not valid base64") from e
    if body.audio_url:
        return await fetch(body.audio_url)
    raise InvalidInput("One of audio_url or audio_base64 is required")


async def run_assessment(
    body: AssessVoiceRequest, services: Services, fetch: AudioFetcher
) -> AssessmentOutcome:
    """Resolve audio and lesson content for ``body`` and run the pipeline."""
    logger.info(
        "api_assessment_requested",
        user_id=body.user_id,
        lesson_day=body.lesson_day,
        target_language=body.target_language,
    )
    try:
        audio = await _load_audio(body, fetch)
        lesson_words = body.lesson_words
        expected_answer = body.expected_answer
        if not lesson_words or not expected_answer:
            lesson = services.catalog.get_lesson(body.target_language, body.lesson_day)
            lesson_words = lesson_words or lesson.words
            expected_answer = expected_answer or lesson.practice_prompt
    except LinguaCoachError as e:
        return AssessmentFailure(
            error_kind=e.kind, message=e.message, stage=PipelineStage.VALIDATION
        )

    return await services.pipeline.assess_voice(
        user_id=body.user_id,
        lesson_day=body.lesson_day,
        target_language=body.target_language,
        native_language=body.native_language,
        audio=audio,
        lesson_words=lesson_words,
        expected_answer=expected_answer,
    )


@router.post("/assessments")
async def create_assessment(
    body: AssessVoiceRequest,
    services: Services = Depends(get_services),
    fetch: AudioFetcher = Depends(get_audio_fetcher),
):
    """Assess a voice recording supplied by URL or inline base64."""
    outcome = await run_assessment(body, services, fetch)
    if isinstance(outcome, AssessmentFailure):
        return JSONResponse(
            status_code=ERROR_STATUS.get(outcome.error_kind, 500),
            content=outcome.model_dump(mode="json", exclude={"ok"}),
        )
    return outcome.model_dump(exclude={"ok"})


@router.get("/users/{user_id}/progress")
async def get_progress(
    user_id: str, services: Services = Depends(get_services)
) -> ProgressResponse:
    """Aggregate stats and focus areas for one learner."""
    try:
        profile = await services.store.get_user(user_id)
        if profile is None:
            raise HTTPException(status_code=404, detail="User not found")
        recent = await services.store.list_assessments(user_id, limit=10)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    return ProgressResponse(
        user_id=profile.user_id,
        name=profile.name,
        target_language=profile.target_language,
        lesson_day=profile.lesson_day,
        total_lessons=profile.total_lessons,
        avg_score=round(profile.avg_score, 1),
        streak=profile.streak,
        days_active=calculate_consistency(recent),
        focus_areas=collect_focus_areas(recent),
    )


@router.get("/lessons/{language}/{day}")
async def get_lesson(
    language: str, day: int, services: Services = Depends(get_services)
) -> Lesson:
    try:
        return services.catalog.get_lesson(language, day)
    except LinguaCoachError as e:
        raise HTTPException(status_code=ERROR_STATUS[e.kind], detail=e.message)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@tools_router.post("/list-tools")
async def list_tools() -> dict:
    return {"tools": [ASSESS_VOICE_TOOL]}


@tools_router.post("/call-tool")
async def call_tool(
    request: ToolCallRequest,
    services: Services = Depends(get_services),
    fetch: AudioFetcher = Depends(get_audio_fetcher),
):
    """Run a named tool; only ``assess_voice`` is available."""
    if request.name != ASSESS_VOICE_TOOL["name"]:
        return JSONResponse(status_code=404, content={"error": f"Tool '{request.name}' not found"})

    try:
        body = AssessVoiceRequest.model_validate(request.arguments)
    except ValidationError:
        return {
            "success": False,
            "error": "Missing required parameters",
            "code": ErrorKind.INVALID_INPUT.value,
        }

    outcome = await run_assessment(body, services, fetch)
    if isinstance(outcome, AssessmentFailure):
        return {"success": False, "error": outcome.message, "code": outcome.error_kind.value}
    return {
        "success": True,
        "score": outcome.score,
        "feedback": outcome.feedback,
        "transcript": outcome.transcript,
        "strengths": outcome.strengths,
        "weakAreas": outcome.weak_areas,
        "assessmentId": outcome.assessment_id,
    }
