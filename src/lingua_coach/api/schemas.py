"""Request and response bodies for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lingua_coach.models.lesson import VocabularyItem


class AssessVoiceRequest(BaseModel):
    """Assessment request; accepts snake_case or camelCase keys.

    Exactly one of ``audio_url`` / ``audio_base64`` carries the recording.
    Lesson words and the expected answer default to the catalog lesson for
    (target_language, lesson_day).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    lesson_day: int
    target_language: str
    native_language: str | None = None
    audio_url: str | None = None
    audio_base64: str | None = None
    lesson_words: list[VocabularyItem] | None = None
    expected_answer: str | None = None


class ToolCallRequest(BaseModel):
    name: str
    arguments: dict = Field(default_factory=dict)


class ProgressResponse(BaseModel):
    user_id: str
    name: str
    target_language: str
    lesson_day: int
    total_lessons: int
    avg_score: float
    streak: int
    days_active: int
    focus_areas: list[str]


ASSESS_VOICE_TOOL = {
    "name": "assess_voice",
    "description": "Assess language learning voice recording with AI-powered feedback",
    "inputSchema": {
        "type": "object",
        "properties": {
            "userId": {
                "type": "string",
                "description": "User ID (Telegram ID or external system ID)",
            },
            "lessonDay": {"type": "number", "description": "Lesson day number"},
            "targetLanguage": {
                "type": "string",
                "description": "Target language code (en, es, fr, de)",
                "enum": ["en", "es", "fr", "de"],
            },
            "audioUrl": {"type": "string", "description": "URL to download the audio file"},
            "lessonWords": {
                "type": "array",
                "description": "Array of lesson vocabulary words",
                "items": {
                    "type": "object",
                    "properties": {
                        "word": {"type": "string"},
                        "translation": {"type": "string"},
                        "example": {"type": "string"},
                    },
                },
            },
            "expectedAnswer": {
                "type": "string",
                "description": "Expected response or quiz prompt",
            },
            "nativeLanguage": {
                "type": "string",
                "description": "Native language code (default: he)",
                "default": "he",
            },
        },
        "required": ["userId", "lessonDay", "targetLanguage", "audioUrl"],
    },
}
