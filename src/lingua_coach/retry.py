"""Retry combinator shared by the external API clients and the progress store."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Delay schedule for retrying a failed call.

    The call is attempted once, then retried once per entry in ``delays``,
    sleeping for that entry (in seconds) before the retry.

    Args:
        delays: Seconds to wait before each retry.
    """

    delays: tuple[float, ...] = ()

    @property
    def max_attempts(self) -> int:
        return len(self.delays) + 1


# One retry after one second for transcription and grading calls.
EXTERNAL_API_RETRY = RetryPolicy(delays=(1.0,))

# Three retries with 100/200/400 ms backoff for document store calls.
STORE_RETRY = RetryPolicy(delays=(0.1, 0.2, 0.4))


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation: str,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``fn`` under ``policy``, re-raising the last error when retries run out.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        policy: Delay schedule.
        operation: Name used in log events.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        The first successful result of ``fn``.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except Exception as e:
            if attempt >= policy.max_attempts:
                logger.error(
                    "retry_exhausted",
                    operation=operation,
                    attempts=attempt,
                    error=str(e),
                )
                raise
            delay = policy.delays[attempt - 1]
            logger.warning(
                "retrying_operation",
                operation=operation,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_seconds=delay,
                error=str(e),
            )
            await sleep(delay)
