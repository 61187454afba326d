"""Tests for the lesson catalog."""

import pytest

from lingua_coach.errors import InvalidContent, LessonNotFound
from lingua_coach.lessons.catalog import LessonCatalog, load_lesson_catalog
from lingua_coach.models.lesson import LESSON_WORD_COUNT, SUPPORTED_LANGUAGES
from tests.fakes import WORDS


class TestShippedCatalog:
    def test_every_supported_language_has_day_one(self):
        catalog = load_lesson_catalog()
        for code in SUPPORTED_LANGUAGES:
            lesson = catalog.get_lesson(code, 1)
            assert lesson.day == 1
            assert len(lesson.words) == LESSON_WORD_COUNT
            assert lesson.practice_prompt

    def test_language_metadata(self):
        catalog = load_lesson_catalog()
        codes = [lang.code for lang in catalog.available_languages()]
        assert codes == ["en", "es", "fr", "de"]
        lesson = catalog.get_lesson("es", 1)
        assert lesson.language_name == "Spanish"
        assert lesson.flag == "🇪🇸"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LessonCatalog.from_yaml(tmp_path / "missing.yaml")


class TestGetLesson:
    def test_known_lesson(self, catalog):
        lesson = catalog.get_lesson("en", 1)
        assert lesson.title == "Greetings & Basics"
        assert [w.word for w in lesson.words][:2] == ["hello", "goodbye"]

    def test_unknown_language(self, catalog):
        with pytest.raises(LessonNotFound):
            catalog.get_lesson("it", 1)

    def test_unknown_day(self, catalog):
        with pytest.raises(LessonNotFound, match="Lesson 9 not available for English"):
            catalog.get_lesson("en", 9)

    def test_language_without_lessons(self, catalog):
        with pytest.raises(LessonNotFound):
            catalog.get_lesson("es", 1)

    def test_string_day_keys(self):
        catalog = LessonCatalog(
            {"fr": {"name": "French", "lessons": {"1": {"title": "Salut", "words": WORDS, "practice_prompt": "Dis bonjour"}}}}
        )
        assert catalog.get_lesson("fr", 1).title == "Salut"

    def test_wrong_word_count_is_invalid_content(self):
        catalog = LessonCatalog(
            {"de": {"name": "German", "lessons": {1: {"title": "Hallo", "words": WORDS[:4], "practice_prompt": "Sag hallo"}}}}
        )
        with pytest.raises(InvalidContent):
            catalog.get_lesson("de", 1)

    def test_malformed_entry_is_invalid_content(self):
        catalog = LessonCatalog({"de": {"lessons": {1: "not a mapping"}}})
        with pytest.raises(InvalidContent):
            catalog.get_lesson("de", 1)
