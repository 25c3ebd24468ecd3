"""Bounded retry with linear-growth backoff for generation attempts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.core.errors import CareerEngineError, GenerationUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Runs one generate+validate attempt up to ``max_retries + 1`` times.

    Usage::

        executor = RetryExecutor(base_delay_seconds=1.0)
        quiz = await executor.execute(attempt, max_retries=2)

    The delay before attempt k+1 is ``base_delay * k``. Which failures are
    retried is decided by ``CareerEngineError.retryable`` (see RETRYABLE_KINDS);
    exceptions outside the domain hierarchy count as transport faults.
    """

    def __init__(self, base_delay_seconds: float = 1.0, sleep: SleepFn = asyncio.sleep) -> None:
        self._base_delay = base_delay_seconds
        self._sleep = sleep

    async def execute(
        self,
        attempt_fn: Callable[[], Awaitable[T]],
        max_retries: int,
        *,
        label: str = "generation",
    ) -> T:
        if max_retries < 0:
            msg = f"max_retries must be >= 0, got {max_retries}"
            raise ValueError(msg)

        attempts = max_retries + 1
        attempt = 1
        while True:
            try:
                return await attempt_fn()
            except CareerEngineError as e:
                if not e.retryable:
                    raise
                error: Exception = e
            except Exception as e:
                error = e

            logger.warning(
                "Attempt %d/%d failed for %s: %s", attempt, attempts, label, error,
            )
            if attempt == attempts:
                raise GenerationUnavailable(attempts, error) from error
            await self._sleep(self._base_delay * attempt)
            attempt += 1
