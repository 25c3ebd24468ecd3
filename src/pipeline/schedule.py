"""In-process weekly trigger for the batch refresh (default: Sunday 00:00).

Each weekly slot has a stable run id, ``weekly-YYYY-MM-DD``. A process that
restarts after crashing mid-run resumes the latest slot's journal before
waiting for the next one.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta

from src.core.db import get_step_result, has_step_results
from src.core.schemas import BatchRunReport
from src.generation.retry import SleepFn
from src.pipeline.batch_refresh import FINAL_STEP, BatchRefreshScheduler

logger = logging.getLogger(__name__)


def next_weekly_run(now: datetime, weekday: int, hour: int) -> datetime:
    """Next datetime strictly after ``now`` falling on ``weekday`` at ``hour``:00.

    weekday follows datetime.weekday(): 0 is Monday, 6 is Sunday.
    """
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def previous_weekly_run(now: datetime, weekday: int, hour: int) -> datetime:
    """Latest slot at or before ``now``."""
    return next_weekly_run(now, weekday, hour) - timedelta(days=7)


def weekly_run_id(due: datetime) -> str:
    return f"weekly-{due:%Y-%m-%d}"


def run_unfinished(conn: sqlite3.Connection, run_id: str) -> bool:
    """True when the run journaled some steps but never reached its final one."""
    if not has_step_results(conn, run_id):
        return False
    finished, _ = get_step_result(conn, run_id, FINAL_STEP)
    return not finished


async def run_weekly(
    scheduler_factory: Callable[[datetime], BatchRefreshScheduler],
    weekday: int,
    hour: int,
    *,
    sleep: SleepFn = asyncio.sleep,
    clock: Callable[[], datetime] = datetime.now,
    max_runs: int | None = None,
    resume_pending: Callable[[datetime], bool] | None = None,
) -> BatchRunReport | None:
    """Sleep until each weekly slot and run one batch refresh there.

    ``scheduler_factory`` receives the slot being run. When ``resume_pending``
    says the latest past slot is unfinished, that slot runs first, without
    waiting. Loops forever unless ``max_runs`` is given; returns the last report.
    """
    runs = 0
    report: BatchRunReport | None = None

    if resume_pending is not None:
        last_due = previous_weekly_run(clock(), weekday, hour)
        if resume_pending(last_due):
            logger.info("Resuming unfinished industry insights refresh for %s", last_due)
            report = await scheduler_factory(last_due).run()
            runs += 1

    while max_runs is None or runs < max_runs:
        now = clock()
        due = next_weekly_run(now, weekday, hour)
        wait = (due - now).total_seconds()
        logger.info("Next industry insights refresh at %s (in %.0fs)", due, wait)
        await sleep(wait)

        report = await scheduler_factory(due).run()
        runs += 1
    return report
