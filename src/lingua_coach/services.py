"""Construction of the shared collaborators from settings."""

from dataclasses import dataclass

import structlog

from lingua_coach.assessment.grader import GradingClient, OpenAIChatModel
from lingua_coach.assessment.pipeline import AssessmentPipeline
from lingua_coach.assessment.transcription import TranscriptionClient, WhisperRecognizer
from lingua_coach.config import Settings
from lingua_coach.lessons.catalog import LessonCatalog
from lingua_coach.retry import RetryPolicy
from lingua_coach.storage.documents import DocumentStore, JsonDocumentStore
from lingua_coach.storage.firestore import FirestoreDocumentStore
from lingua_coach.storage.progress import ProgressStore

logger = structlog.get_logger()


@dataclass
class Services:
    """Collaborators shared by the bot handlers and the HTTP routes."""

    catalog: LessonCatalog
    store: ProgressStore
    pipeline: AssessmentPipeline


def build_document_store(settings: Settings) -> DocumentStore:
    if settings.storage_backend == "firestore":
        return FirestoreDocumentStore(
            credentials_path=settings.firebase_credentials_path,
            project_id=settings.firebase_project_id,
        )
    return JsonDocumentStore(settings.data_dir)


def build_services(settings: Settings) -> Services:
    """Wire catalog, store and pipeline from ``settings``."""
    external_retry = RetryPolicy(delays=(settings.external_retry_delay_seconds,))
    store_retry = RetryPolicy(delays=tuple(ms / 1000 for ms in settings.store_retry_delays_ms))

    store = ProgressStore(build_document_store(settings), retry_policy=store_retry)
    transcriber = TranscriptionClient(
        WhisperRecognizer(
            api_key=settings.openai_api_key,
            model=settings.transcription_model,
            base_url=settings.openai_base_url,
        ),
        retry_policy=external_retry,
    )
    grader = GradingClient(
        OpenAIChatModel(
            api_key=settings.openai_api_key,
            model=settings.grading_model,
            base_url=settings.openai_base_url,
        ),
        retry_policy=external_retry,
    )
    pipeline = AssessmentPipeline(
        transcriber=transcriber,
        grader=grader,
        store=store,
        default_native_language=settings.default_native_language,
    )
    logger.info("services_built", storage_backend=settings.storage_backend)
    return Services(
        catalog=LessonCatalog.from_yaml(settings.lessons_path),
        store=store,
        pipeline=pipeline,
    )
