"""Lesson content models."""

from pydantic import BaseModel, Field

LESSON_WORD_COUNT = 5

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "es", "fr", "de")

DEFAULT_NATIVE_LANGUAGE = "he"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "he": "Hebrew",
}


def language_name(code: str) -> str:
    """Display name for a language code, falling back to the code itself."""
    return LANGUAGE_NAMES.get(code, code)


class VocabularyItem(BaseModel):
    """One vocabulary entry of a lesson."""

    word: str = Field(min_length=1)
    translation: str = Field(min_length=1)
    example: str = Field(min_length=1)


class LanguageInfo(BaseModel):
    code: str
    name: str
    flag: str = "📚"


class Lesson(BaseModel):
    """A daily lesson: exactly five vocabulary entries and a practice prompt."""

    language: str
    day: int = Field(ge=1)
    title: str
    words: list[VocabularyItem] = Field(
        min_length=LESSON_WORD_COUNT, max_length=LESSON_WORD_COUNT
    )
    practice_prompt: str
    language_name: str = ""
    flag: str = "📚"
