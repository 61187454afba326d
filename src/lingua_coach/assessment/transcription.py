"""Speech-to-text for voice answers."""

import asyncio
from typing import Protocol

import structlog
from openai import AsyncOpenAI

from lingua_coach.errors import EmptyAudio, TranscriptionFailed
from lingua_coach.models.lesson import SUPPORTED_LANGUAGES
from lingua_coach.retry import EXTERNAL_API_RETRY, RetryPolicy, Sleep, retry_async

logger = structlog.get_logger()


class SpeechRecognizer(Protocol):
    """Remote speech-to-text collaborator."""

    async def recognize(self, audio: bytes, language: str) -> str: ...


class WhisperRecognizer:
    """Whisper transcription through the OpenAI audio API.

    Works against OpenAI directly or any OpenAI-compatible endpoint (e.g.
    Groq with ``model="whisper-large-v3"``).

    Args:
        api_key: API key.
        model: Transcription model.
        base_url: Optional OpenAI-compatible endpoint.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        base_url: str | None = None,
        timeout: float = 30.0,
    ):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.model = model

    async def recognize(self, audio: bytes, language: str) -> str:
        transcription = await self.client.audio.transcriptions.create(
            file=("audio.ogg", audio, "audio/ogg"),
            model=self.model,
            language=language,
        )
        return transcription.text


class TranscriptionClient:
    """Transcribes recordings, retrying the remote call once.

    Empty or whitespace-only recognized text is returned as-is; grading is
    responsible for scoring it.

    Args:
        recognizer: Speech-to-text collaborator.
        retry_policy: Delay schedule for retries.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        retry_policy: RetryPolicy = EXTERNAL_API_RETRY,
        sleep: Sleep = asyncio.sleep,
    ):
        self.recognizer = recognizer
        self.retry_policy = retry_policy
        self._sleep = sleep

    async def transcribe(self, audio: bytes, language_hint: str) -> str:
        """Transcribe ``audio`` in ``language_hint``.

        Raises:
            EmptyAudio: ``audio`` is zero-length (no network call is made).
            TranscriptionFailed: The recognizer failed on every attempt.
        """
        if not audio:
            raise EmptyAudio()

        language = language_hint if language_hint in SUPPORTED_LANGUAGES else "en"

        try:
            text = await retry_async(
                lambda: self.recognizer.recognize(audio, language),
                self.retry_policy,
                operation="transcription",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error("transcription_failed", language=language, error=str(e))
            raise TranscriptionFailed() from e

        text = text or ""
        if not text.strip():
            logger.warning("transcription_empty", language=language)
        logger.info("audio_transcribed", language=language, transcript_length=len(text))
        return text
