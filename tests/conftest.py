"""Shared fakes and fixtures."""

import pytest

from lingua_coach.assessment.grader import GradingClient
from lingua_coach.assessment.pipeline import AssessmentPipeline
from lingua_coach.assessment.transcription import TranscriptionClient
from lingua_coach.lessons.catalog import LessonCatalog
from lingua_coach.models.lesson import VocabularyItem
from lingua_coach.services import Services
from lingua_coach.storage.documents import JsonDocumentStore
from lingua_coach.storage.progress import ProgressStore
from tests.fakes import NOW, WORDS, FakeCompletionModel, FakeRecognizer, RecordingSleep


@pytest.fixture
def lesson_words() -> list[VocabularyItem]:
    return [VocabularyItem(**w) for w in WORDS]


@pytest.fixture
def catalog() -> LessonCatalog:
    return LessonCatalog(
        {
            "en": {
                "name": "English",
                "flag": "🇬🇧",
                "lessons": {
                    1: {
                        "title": "Greetings & Basics",
                        "words": WORDS,
                        "practice_prompt": "Introduce yourself using at least 3 words from today's lesson.",
                    },
                    2: {
                        "title": "Numbers",
                        "words": [dict(w, word=f"{w['word']}-2") for w in WORDS],
                        "practice_prompt": "Count to five.",
                    },
                },
            },
            "es": {"name": "Spanish", "flag": "🇪🇸", "lessons": {}},
        }
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def documents(tmp_path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path / "documents")


@pytest.fixture
def store(documents, sleep) -> ProgressStore:
    return ProgressStore(documents, sleep=sleep)


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def model() -> FakeCompletionModel:
    return FakeCompletionModel()


@pytest.fixture
def pipeline(recognizer, model, store, sleep) -> AssessmentPipeline:
    return AssessmentPipeline(
        transcriber=TranscriptionClient(recognizer, sleep=sleep),
        grader=GradingClient(model, sleep=sleep),
        store=store,
        clock=lambda: NOW,
    )


@pytest.fixture
def services(catalog, store, pipeline) -> Services:
    return Services(catalog=catalog, store=store, pipeline=pipeline)
