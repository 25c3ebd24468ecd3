"""Batch refresh: regenerate every cached industry report, one at a time.

Run order (each numbered item is a step recorded by the StepRunner):
  1. Fetch unique industries (store order); blank keys are skipped
  2. Per industry: generate insights (retry executor) -> upsert full record
  3. Durable sleep between industries to stay under provider rate limits
  4. Finalise and log the BatchRunReport

Industries are processed sequentially on purpose; the delay is the throttle.
A failure on one industry is recorded in the report and the run moves on.
Re-running a step with the same inputs is safe: the upsert is a full-field
overwrite keyed by industry.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from typing import Any

from src.core.db import list_distinct_industries, upsert_insight
from src.core.errors import InvalidInput
from src.core.schemas import BatchRunReport, IndustryInsight, IndustryInsightRecord
from src.generation.generator import ArtifactGenerator
from src.pipeline.insight_cache import build_record
from src.pipeline.steps import StepRunner

logger = logging.getLogger(__name__)

_RULE = "=" * 40

FINAL_STEP = "Finalize report"


class BatchRefreshScheduler:
    """Weekly regeneration of all industry insight records.

    Usage::

        scheduler = BatchRefreshScheduler(conn, generator, InlineStepRunner())
        report = await scheduler.run()
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        generator: ArtifactGenerator,
        runner: StepRunner,
        *,
        delay_seconds: float = 2.0,
        cache_days: int = 7,
        max_retries: int = 2,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._conn = conn
        self._generator = generator
        self._runner = runner
        self._delay = delay_seconds
        self._cache_days = cache_days
        self._max_retries = max_retries
        self._clock = clock

    def list_industries(self) -> list[str | None]:
        return list_distinct_industries(self._conn)

    async def run(self) -> BatchRunReport:
        report = BatchRunReport(start_time=self._clock())

        async def fetch() -> list[str | None]:
            return self.list_industries()

        industries: list[str | None] = await self._runner.run_step(
            "Fetch unique industries", fetch,
        )
        report.total = len(industries)
        logger.info("Found %d unique industries to update", report.total)

        last = len(industries) - 1
        for i, industry in enumerate(industries):
            if industry is None or not industry.strip():
                logger.warning("Skipping invalid industry at index %d", i)
                report.skipped += 1
                continue

            try:
                await self._generate_and_store(
                    industry,
                    generate_label=f"Generate insights for {industry}",
                    store_label=f"Update {industry} in database",
                )
            except Exception as e:
                report.record_failure(industry, e, self._clock())
                logger.error("Failed to update '%s': %s", industry, e)
            else:
                report.successful += 1
                logger.info(
                    "Updated '%s' (%d/%d)", industry, report.successful, report.total,
                )

            if i < last:
                await self._runner.sleep("Rate limit delay", self._delay)

        report.end_time = self._clock()

        async def finalize() -> dict[str, int]:
            return {"successful": report.successful, "failed": report.failed}

        await self._runner.run_step(FINAL_STEP, finalize)
        log_report(report)
        return report

    async def refresh_single(self, industry: str | None) -> IndustryInsightRecord:
        """Manual trigger for one industry: same steps, no loop and no delay."""
        if industry is None or not industry.strip():
            msg = "Industry name is required"
            raise InvalidInput(msg)
        return await self._generate_and_store(
            industry.strip(),
            generate_label="Generate insights",
            store_label="Update database",
        )

    async def _generate_and_store(
        self, industry: str, *, generate_label: str, store_label: str,
    ) -> IndustryInsightRecord:
        async def generate() -> dict[str, Any]:
            insight = await self._generator.generate_insight(
                industry, max_retries=self._max_retries,
            )
            return insight.model_dump(mode="json", by_alias=True)

        payload = await self._runner.run_step(generate_label, generate)
        insight = IndustryInsight.model_validate(payload)

        async def store() -> dict[str, Any]:
            record = build_record(industry, insight, self._clock(), self._cache_days)
            upsert_insight(self._conn, record)
            return record.model_dump(mode="json")

        stored = await self._runner.run_step(store_label, store)
        return IndustryInsightRecord.model_validate(stored)


def log_report(report: BatchRunReport) -> None:
    logger.info(_RULE)
    logger.info("Industry insights batch refresh completed")
    logger.info(_RULE)
    logger.info("Total industries: %d", report.total)
    logger.info("Successful: %d", report.successful)
    logger.info("Failed: %d", report.failed)
    logger.info("Skipped: %d", report.skipped)
    logger.info("Duration: %.1f seconds", report.duration_seconds)
    if report.failures:
        logger.info("Failures:")
        for f in report.failures:
            logger.info("  - %s: %s", f.subject_key, f.error_message)
    logger.info(_RULE)
