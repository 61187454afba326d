"""Error taxonomy shared by the assessment pipeline and its callers."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable failure categories surfaced to callers."""

    INVALID_INPUT = "invalid_input"
    EMPTY_AUDIO = "empty_audio"
    AUDIO_DOWNLOAD_FAILED = "audio_download_failed"
    TRANSCRIPTION_FAILED = "transcription_failed"
    GRADING_FAILED = "grading_failed"
    STORE_UNAVAILABLE = "store_unavailable"
    LESSON_NOT_FOUND = "lesson_not_found"
    INVALID_CONTENT = "invalid_content"


class LinguaCoachError(Exception):
    """Base class for typed failures.

    Args:
        message: Human-readable description, safe to show to a caller.
    """

    kind: ErrorKind = ErrorKind.GRADING_FAILED
    default_message = "Assessment processing failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(LinguaCoachError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid assessment input"


class EmptyAudio(LinguaCoachError):
    kind = ErrorKind.EMPTY_AUDIO
    default_message = "Audio buffer is empty"


class AudioDownloadFailed(LinguaCoachError):
    kind = ErrorKind.AUDIO_DOWNLOAD_FAILED
    default_message = "Failed to download audio file"


class TranscriptionFailed(LinguaCoachError):
    kind = ErrorKind.TRANSCRIPTION_FAILED
    default_message = "Audio transcription failed"


class GradingFailed(LinguaCoachError):
    kind = ErrorKind.GRADING_FAILED
    default_message = "Grading failed"


class StoreUnavailable(LinguaCoachError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "Database temporarily unavailable"


class LessonNotFound(LinguaCoachError):
    kind = ErrorKind.LESSON_NOT_FOUND
    default_message = "Lesson not found"


class InvalidContent(LinguaCoachError):
    kind = ErrorKind.INVALID_CONTENT
    default_message = "Lesson content is malformed"
