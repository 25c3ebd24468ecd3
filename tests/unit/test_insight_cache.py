"""Tests for the per-industry insight cache: ABSENT / FRESH / STALE handling."""

import json
import sqlite3
from datetime import timedelta
from unittest.mock import patch

import pytest

from src.core.db import create_insight, get_insight
from src.core.errors import GenerationUnavailable, InvalidInput
from src.core.schemas import DemandLevel, IndustryInsight, IndustryInsightRecord, MarketOutlook
from src.pipeline.insight_cache import CacheState, InsightCacheManager, classify
from tests.helpers import FakeClock, GeneratorFactory


def _manager(
    db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    responses: list[str | Exception],
) -> tuple[InsightCacheManager, list[str]]:
    generator, provider = make_generator(responses, max_retries=1)
    return InsightCacheManager(db, generator, cache_days=7, clock=clock), provider.prompts


def _seed(db: sqlite3.Connection, clock: FakeClock, industry: str, **age: float) -> None:
    """Placeholder record created ``age`` ago."""
    create_insight(db, IndustryInsightRecord.placeholder(
        industry, clock() - timedelta(**age), cache_days=7,
    ))


class TestClassify:
    def test_states(self, clock: FakeClock) -> None:
        record = IndustryInsightRecord.placeholder("Tech", clock(), cache_days=7)
        assert classify(None, clock()) is CacheState.ABSENT
        assert classify(record, clock() + timedelta(days=6)) is CacheState.FRESH
        assert classify(record, clock() + timedelta(days=7)) is CacheState.FRESH
        assert classify(record, clock() + timedelta(days=7, seconds=1)) is CacheState.STALE


class TestGetOrRefresh:
    async def test_fresh_makes_no_generation_call(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        _seed(db, clock, "Tech", days=2)
        manager, prompts = _manager(db, clock, make_generator, [RuntimeError("unused")])
        record = await manager.get_or_refresh("Tech")
        assert prompts == []
        assert record == get_insight(db, "Tech")

    async def test_stale_refreshes_once(
        self, db: sqlite3.Connection, clock: FakeClock,
        make_generator: GeneratorFactory, insight_json: str,
    ) -> None:
        _seed(db, clock, "Tech", days=8)  # next_update was yesterday
        manager, prompts = _manager(db, clock, make_generator, [insight_json])

        record = await manager.get_or_refresh("Tech")

        assert len(prompts) == 1
        assert record.last_updated == clock()
        assert record.next_update == clock() + timedelta(days=7)
        assert record.demand_level is DemandLevel.HIGH
        assert get_insight(db, "Tech") == record

    async def test_stale_failure_propagates(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        _seed(db, clock, "Tech", days=8)
        manager, _ = _manager(db, clock, make_generator, ["garbage"])
        before = get_insight(db, "Tech")
        with pytest.raises(GenerationUnavailable):
            await manager.get_or_refresh("Tech")
        assert get_insight(db, "Tech") == before

    async def test_absent_creates_then_refreshes(
        self, db: sqlite3.Connection, clock: FakeClock,
        make_generator: GeneratorFactory, insight_json: str,
    ) -> None:
        manager, prompts = _manager(db, clock, make_generator, [insight_json])
        record = await manager.get_or_refresh("Data Science")
        assert len(prompts) == 1
        assert record.growth_rate == 12.5
        assert manager.state("Data Science") is CacheState.FRESH

    async def test_absent_failure_keeps_placeholder(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        manager, prompts = _manager(db, clock, make_generator, [RuntimeError("503")])
        with caplog.at_level("WARNING"):
            record = await manager.get_or_refresh("Data Science")

        assert len(prompts) == 2  # max_retries=1
        assert record.growth_rate == 0.0
        assert record.demand_level is DemandLevel.MEDIUM
        assert record.market_outlook is MarketOutlook.NEUTRAL
        assert record.next_update == clock() + timedelta(days=7)
        assert get_insight(db, "Data Science") == record
        assert "keeping placeholder" in caplog.text

    async def test_blank_industry(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        manager, _ = _manager(db, clock, make_generator, ["unused"])
        with pytest.raises(InvalidInput):
            await manager.get_or_refresh("   ")


class TestRefresh:
    async def test_refresh_ignores_freshness(
        self, db: sqlite3.Connection, clock: FakeClock,
        make_generator: GeneratorFactory, insight_json: str,
    ) -> None:
        _seed(db, clock, "Tech", hours=1)
        manager, prompts = _manager(db, clock, make_generator, [insight_json])
        record = await manager.refresh("Tech")
        assert len(prompts) == 1
        assert record.top_skills[0] == "Python"

    async def test_refresh_failure_propagates(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        manager, _ = _manager(db, clock, make_generator, [RuntimeError("down")])
        with pytest.raises(GenerationUnavailable):
            await manager.refresh("Tech")


class TestEnsureExists:
    async def test_existing_untouched_even_when_stale(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        _seed(db, clock, "Tech", days=30)
        manager, prompts = _manager(db, clock, make_generator, ["unused"])
        record = await manager.ensure_exists("Tech")
        assert prompts == []
        assert record.is_stale(clock())

    async def test_absent_swallows_failure(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        manager, _ = _manager(db, clock, make_generator, ["not json"])
        record = await manager.ensure_exists("Finance")
        assert record.top_skills == []


class TestApplyInsight:
    async def test_idempotent_overwrite(
        self, db: sqlite3.Connection, clock: FakeClock,
        make_generator: GeneratorFactory, insight_json: str,
    ) -> None:
        manager, _ = _manager(db, clock, make_generator, ["unused"])
        insight = IndustryInsight.model_validate_json(insight_json)
        first = manager.apply_insight("Tech", insight)
        second = manager.apply_insight("Tech", insight)
        assert first == second == get_insight(db, "Tech")

    async def test_string_salary_ranges_stored(
        self, db: sqlite3.Connection, clock: FakeClock,
        make_generator: GeneratorFactory, insight_json: str,
    ) -> None:
        payload = json.loads(insight_json)
        payload["salaryRanges"] = ["$90k-$120k", "$120k-$160k", "$160k-$210k"]
        manager, _ = _manager(db, clock, make_generator, [json.dumps(payload)])

        record = await manager.refresh("Tech")

        assert record.salary_ranges == payload["salaryRanges"]
        assert get_insight(db, "Tech") == record


class TestConcurrentCreate:
    async def test_serves_record_written_by_other_caller(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        _seed(db, clock, "Tech", days=1)
        manager, prompts = _manager(db, clock, make_generator, ["unused"])
        existing = get_insight(db, "Tech")
        with patch("src.pipeline.insight_cache.get_insight", side_effect=[None, existing]):
            record = await manager.get_or_refresh("Tech")
        assert record == existing
        assert prompts == []

    async def test_missing_after_lost_create_raises(
        self, db: sqlite3.Connection, clock: FakeClock, make_generator: GeneratorFactory,
    ) -> None:
        manager, _ = _manager(db, clock, make_generator, ["unused"])
        with (
            patch("src.pipeline.insight_cache.create_insight", return_value=False),
            pytest.raises(sqlite3.DatabaseError, match="Tech"),
        ):
            await manager.ensure_exists("Tech")
