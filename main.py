"""CLI entry point for the career content engine."""

import argparse
import asyncio
import logging
import sqlite3
import sys
from datetime import datetime, timedelta

from src.core.config import Settings
from src.core.db import init_db, prune_step_results
from src.core.errors import CareerEngineError
from src.generation.client import TextGenerationClient
from src.generation.generator import ArtifactGenerator
from src.generation.retry import RetryExecutor
from src.pipeline.batch_refresh import BatchRefreshScheduler
from src.pipeline.insight_cache import InsightCacheManager
from src.pipeline.schedule import run_unfinished, run_weekly, weekly_run_id
from src.pipeline.steps import InlineStepRunner, JournalStepRunner, StepRunner

logger = logging.getLogger(__name__)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Career content engine - industry insight cache maintenance",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- batch-refresh ---
    batch_parser = subparsers.add_parser(
        "batch-refresh", help="Regenerate insights for every cached industry",
    )
    batch_parser.add_argument(
        "--run-id",
        help="Journal steps under this id; re-running the same id resumes the run",
    )
    batch_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the industries that would be refreshed without generating",
    )
    _add_common(batch_parser)

    # --- refresh-industry ---
    single_parser = subparsers.add_parser(
        "refresh-industry", help="Regenerate insights for one industry now",
    )
    single_parser.add_argument("--industry", required=True, help="Industry key")
    _add_common(single_parser)

    # --- insights ---
    insights_parser = subparsers.add_parser(
        "insights", help="Show insights for an industry, refreshing if stale",
    )
    insights_parser.add_argument("--industry", required=True, help="Industry key")
    _add_common(insights_parser)

    # --- schedule ---
    schedule_parser = subparsers.add_parser(
        "schedule", help="Run the batch refresh weekly (blocks forever)",
    )
    _add_common(schedule_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_generator(settings: Settings, *, batch: bool = False) -> ArtifactGenerator:
    """Wire client -> retry executor -> generator.

    The batch path uses the insights retry settings, interactive paths the
    general retry settings.
    """
    client = TextGenerationClient.from_name(
        settings.llm.provider, model=settings.llm.model, **settings.llm.provider_options(),
    )
    if batch:
        executor = RetryExecutor(settings.insights.retry_base_delay_seconds)
        return ArtifactGenerator(client, executor, settings.insights.batch_max_retries)
    executor = RetryExecutor(settings.retry.base_delay_seconds)
    return ArtifactGenerator(client, executor, settings.retry.max_retries)


def build_scheduler(
    settings: Settings,
    conn: sqlite3.Connection,
    runner: StepRunner | None = None,
) -> BatchRefreshScheduler:
    return BatchRefreshScheduler(
        conn,
        build_generator(settings, batch=True),
        runner or InlineStepRunner(),
        delay_seconds=settings.insights.batch_delay_seconds,
        cache_days=settings.insights.cache_days,
        max_retries=settings.insights.batch_max_retries,
    )


def dry_run(settings: Settings) -> None:
    """Print the industries a batch run would process."""
    conn = init_db(settings.database.path)
    scheduler = build_scheduler(settings, conn)
    industries = scheduler.list_industries()
    print(f"[DRY RUN] {len(industries)} industries in the insight store")
    for industry in industries:
        status = "SKIP (blank)" if not industry or not industry.strip() else "refresh"
        print(f"  '{industry}': {status}")
    conn.close()


async def cmd_batch_refresh(settings: Settings, run_id: str | None) -> None:
    conn = init_db(settings.database.path)
    runner: StepRunner = (
        JournalStepRunner(conn, run_id) if run_id else InlineStepRunner()
    )
    report = await build_scheduler(settings, conn, runner).run()

    print(f"\nBatch refresh complete: {report.successful} successful, "
          f"{report.failed} failed, {report.skipped} skipped of {report.total}.")
    for f in report.failures:
        print(f"  {f.subject_key}: {f.error_message}")
    conn.close()


async def cmd_refresh_industry(settings: Settings, industry: str) -> None:
    conn = init_db(settings.database.path)
    record = await build_scheduler(settings, conn).refresh_single(industry)
    print(f"Refreshed '{record.industry}' (next update {record.next_update:%Y-%m-%d %H:%M})")
    conn.close()


async def cmd_insights(settings: Settings, industry: str) -> None:
    conn = init_db(settings.database.path)
    cache = InsightCacheManager(conn, build_generator(settings), settings.insights.cache_days)
    record = await cache.get_or_refresh(industry)
    print(record.model_dump_json(indent=2))
    conn.close()


async def cmd_schedule(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    retention = timedelta(weeks=settings.schedule.journal_weeks)

    def factory(due: datetime) -> BatchRefreshScheduler:
        pruned = prune_step_results(conn, due - retention)
        if pruned:
            logger.info("Pruned %d old workflow journal rows", pruned)
        return build_scheduler(settings, conn, JournalStepRunner(conn, weekly_run_id(due)))

    def resume_pending(due: datetime) -> bool:
        return run_unfinished(conn, weekly_run_id(due))

    try:
        await run_weekly(
            factory,
            settings.schedule.weekday,
            settings.schedule.hour,
            resume_pending=resume_pending,
        )
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "batch-refresh":
            if args.dry_run:
                dry_run(settings)
            else:
                asyncio.run(cmd_batch_refresh(settings, args.run_id))
        elif args.command == "refresh-industry":
            asyncio.run(cmd_refresh_industry(settings, args.industry))
        elif args.command == "insights":
            asyncio.run(cmd_insights(settings, args.industry))
        else:
            asyncio.run(cmd_schedule(settings))
    except (CareerEngineError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
