"""LLM grading of transcribed voice answers."""

import asyncio
from collections.abc import Sequence
from typing import Protocol

import structlog
from openai import AsyncOpenAI

from lingua_coach.errors import GradingFailed
from lingua_coach.models.lesson import VocabularyItem, language_name
from lingua_coach.retry import EXTERNAL_API_RETRY, RetryPolicy, Sleep, retry_async

logger = structlog.get_logger()

GRADER_SYSTEM_PROMPT = "You are an expert language teacher providing assessment feedback."

# Point allocation per category; sums to 100.
RUBRIC: dict[str, int] = {
    "Pronunciation": 25,
    "Grammar": 25,
    "Vocabulary": 20,
    "Fluency": 20,
    "Comprehension": 10,
}

GRADING_PROMPT = """\
You are an expert teacher for {native_language} speakers learning {target_language}.
Grade this beginner-level response:

TRANSCRIPT: {transcript}
LESSON WORDS: {lesson_words}
EXPECTED: {expected_answer}

Score 0-100 using rubric:
{rubric}

RESPOND ONLY with:
SCORE: X/100
FEEDBACK: [1-2 sentences of actionable advice]
STRENGTHS: [comma-separated list]
WEAK_AREAS: [comma-separated list]"""


def build_grading_prompt(
    transcript: str,
    target_language: str,
    native_language: str,
    lesson_words: Sequence[VocabularyItem],
    expected_answer: str,
) -> str:
    """Fill the grading template for one submission."""
    rubric = "\n".join(f"- {category}: {points} points" for category, points in RUBRIC.items())
    return GRADING_PROMPT.format(
        native_language=language_name(native_language),
        target_language=language_name(target_language),
        transcript=transcript,
        lesson_words=", ".join(w.word for w in lesson_words),
        expected_answer=expected_answer,
        rubric=rubric,
    )


class CompletionModel(Protocol):
    """Remote text-completion collaborator."""

    async def complete(self, prompt: str) -> str: ...


class OpenAIChatModel:
    """Chat-completions backed grader model.

    Args:
        api_key: API key.
        model: Chat model (e.g. ``gpt-4``, or ``llama-3.3-70b-versatile`` on Groq).
        base_url: Optional OpenAI-compatible endpoint.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str | None = None,
        timeout: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": GRADER_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""


class GradingClient:
    """Sends transcripts to the grading model and returns its raw reply.

    Args:
        model: Completion collaborator.
        retry_policy: Delay schedule for retries.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        model: CompletionModel,
        retry_policy: RetryPolicy = EXTERNAL_API_RETRY,
        sleep: Sleep = asyncio.sleep,
    ):
        self.model = model
        self.retry_policy = retry_policy
        self._sleep = sleep

    async def grade(
        self,
        transcript: str,
        target_language: str,
        native_language: str,
        lesson_words: Sequence[VocabularyItem],
        expected_answer: str,
    ) -> str:
        """Grade a transcript.

        Returns:
            The model's response text, unparsed.

        Raises:
            GradingFailed: The model call failed on every attempt.
        """
        prompt = build_grading_prompt(
            transcript=transcript,
            target_language=target_language,
            native_language=native_language,
            lesson_words=lesson_words,
            expected_answer=expected_answer,
        )

        try:
            raw = await retry_async(
                lambda: self.model.complete(prompt),
                self.retry_policy,
                operation="grading",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error("grading_failed", target_language=target_language, error=str(e))
            raise GradingFailed() from e

        logger.info(
            "transcript_graded",
            target_language=target_language,
            transcript_length=len(transcript),
        )
        return raw
