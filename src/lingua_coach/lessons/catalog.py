"""Static lesson catalog keyed by (language, day)."""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from lingua_coach.config import find_project_root
from lingua_coach.errors import InvalidContent, LessonNotFound
from lingua_coach.models.lesson import LanguageInfo, Lesson, language_name

logger = structlog.get_logger()


class LessonCatalog:
    """Lookup of lesson content loaded from ``config/lessons.yaml``.

    Args:
        languages: Mapping of language code to
            ``{"name", "flag", "lessons": {day: {...}}}``.
    """

    def __init__(self, languages: dict[str, dict[str, Any]]):
        self._languages = languages

    @classmethod
    def from_yaml(cls, path: Path) -> "LessonCatalog":
        if not path.exists():
            raise FileNotFoundError(f"Lessons file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(data.get("languages", {}))

    def available_languages(self) -> list[LanguageInfo]:
        return [
            LanguageInfo(
                code=code,
                name=entry.get("name", language_name(code)),
                flag=entry.get("flag", "📚"),
            )
            for code, entry in self._languages.items()
        ]

    def has_language(self, code: str) -> bool:
        return code in self._languages

    def get_lesson(self, language: str, day: int) -> Lesson:
        """Return the lesson for ``language`` on ``day``.

        Raises:
            LessonNotFound: The language or the day is absent.
            InvalidContent: The entry exists but is malformed (e.g. not
                exactly five vocabulary items).
        """
        entry = self._languages.get(language)
        if entry is None:
            logger.warning("lesson_language_unknown", language=language)
            raise LessonNotFound(f"Language '{language}' is not supported")

        lessons = entry.get("lessons") or {}
        raw = lessons.get(day, lessons.get(str(day)))
        name = entry.get("name", language_name(language))
        if raw is None:
            logger.warning("lesson_not_found", language=language, day=day)
            raise LessonNotFound(f"Lesson {day} not available for {name}")

        try:
            return Lesson(
                language=language,
                day=day,
                title=raw.get("title", ""),
                words=raw.get("words") or [],
                practice_prompt=raw.get("practice_prompt", ""),
                language_name=name,
                flag=entry.get("flag", "📚"),
            )
        except (ValidationError, AttributeError) as e:
            logger.error("lesson_content_invalid", language=language, day=day, error=str(e))
            raise InvalidContent(f"Lesson {day} for {name} is malformed") from e


def load_lesson_catalog(path: Path | None = None) -> LessonCatalog:
    """Load the catalog from ``path`` or the project's ``config/lessons.yaml``."""
    if path is None:
        path = find_project_root() / "config" / "lessons.yaml"
    return LessonCatalog.from_yaml(path)
