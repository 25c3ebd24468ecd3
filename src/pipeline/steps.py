"""Step runners: decompose a job into labelled, independently observable steps.

``InlineStepRunner`` just executes. ``JournalStepRunner`` records each
completed step's JSON result under (run_id, label) in SQLite; running the
same run_id again replays recorded results instead of re-executing, so a
crashed batch resumes where it stopped. Step results must be JSON-serialisable.

Labels that repeat within a run (e.g. the delay between industries) are
disambiguated by occurrence: "Rate limit delay", "Rate limit delay#2", ...
"""

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Awaitable, Callable
from typing import Any

from src.core.db import get_step_result, save_step_result
from src.generation.retry import SleepFn

logger = logging.getLogger(__name__)

StepFn = Callable[[], Awaitable[Any]]


class StepRunner(ABC):
    """Executes named units of work and durable sleeps."""

    @abstractmethod
    async def run_step(self, label: str, fn: StepFn) -> Any:
        """Run ``fn`` once for this label and return its result."""

    @abstractmethod
    async def sleep(self, label: str, seconds: float) -> None:
        """Suspend the job for ``seconds``."""


class InlineStepRunner(StepRunner):
    def __init__(self, sleep: SleepFn = asyncio.sleep) -> None:
        self._sleep = sleep

    async def run_step(self, label: str, fn: StepFn) -> Any:
        logger.debug("Step: %s", label)
        return await fn()

    async def sleep(self, label: str, seconds: float) -> None:
        logger.debug("Sleep: %s (%.1fs)", label, seconds)
        await self._sleep(seconds)


class JournalStepRunner(StepRunner):
    """Step runner backed by the workflow_steps table."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        run_id: str,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._conn = conn
        self._run_id = run_id
        self._sleep = sleep
        self._seen: Counter[str] = Counter()

    @property
    def run_id(self) -> str:
        return self._run_id

    def _key(self, label: str) -> str:
        self._seen[label] += 1
        n = self._seen[label]
        return label if n == 1 else f"{label}#{n}"

    async def run_step(self, label: str, fn: StepFn) -> Any:
        key = self._key(label)
        found, result = get_step_result(self._conn, self._run_id, key)
        if found:
            logger.info("Step '%s' already completed in run %s - replaying", key, self._run_id)
            return result
        result = await fn()
        save_step_result(self._conn, self._run_id, key, result)
        return result

    async def sleep(self, label: str, seconds: float) -> None:
        key = self._key(label)
        found, _ = get_step_result(self._conn, self._run_id, key)
        if found:
            logger.debug("Sleep '%s' already completed in run %s", key, self._run_id)
            return
        await self._sleep(seconds)
        save_step_result(self._conn, self._run_id, key, {"slept": seconds})
