"""User profile model for tracking learning progress across lessons."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from lingua_coach.models.lesson import DEFAULT_NATIVE_LANGUAGE, SUPPORTED_LANGUAGES


class NotificationSettings(BaseModel):
    notification_enabled: bool = True
    lesson_time: str = Field(default="09:00", pattern=r"^([01]\d|2[0-3]):([0-5]\d)$")

    @property
    def lesson_hour(self) -> int:
        return int(self.lesson_time.split(":")[0])


class UserProfile(BaseModel):
    user_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    target_language: str
    native_language: str = DEFAULT_NATIVE_LANGUAGE
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    lesson_day: int = Field(default=1, ge=1)
    total_lessons: int = Field(default=0, ge=0)
    avg_score: float = Field(default=0.0, ge=0, le=100)
    streak: int = Field(default=0, ge=0)
    settings: NotificationSettings = Field(default_factory=NotificationSettings)

    @field_validator("target_language")
    @classmethod
    def _check_language(cls, value: str) -> str:
        if value not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Language '{value}' is not supported")
        return value
