"""Per-industry insight cache with a fixed staleness window.

States per industry key:
  ABSENT  no record; create a neutral placeholder, then best-effort refresh
  FRESH   now <= next_update; served as-is, no generation call
  STALE   now > next_update; synchronous refresh, failures propagate

The only write path is a full-field upsert keyed by industry, so a lazy
refresh racing the weekly batch ends with one complete report (last writer
wins), never a mix of two.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum

from src.core.db import create_insight, get_insight, upsert_insight
from src.core.errors import GenerationUnavailable, InvalidInput
from src.core.schemas import IndustryInsight, IndustryInsightRecord
from src.generation.generator import ArtifactGenerator

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    ABSENT = "absent"


def classify(record: IndustryInsightRecord | None, now: datetime) -> CacheState:
    if record is None:
        return CacheState.ABSENT
    return CacheState.STALE if record.is_stale(now) else CacheState.FRESH


def build_record(
    industry: str, insight: IndustryInsight, now: datetime, cache_days: int,
) -> IndustryInsightRecord:
    """Full insight record with a new freshness window starting at ``now``."""
    return IndustryInsightRecord(
        industry=industry,
        salary_ranges=insight.salary_ranges,
        growth_rate=insight.growth_rate,
        demand_level=insight.demand_level,
        top_skills=insight.top_skills,
        market_outlook=insight.market_outlook,
        key_trends=insight.key_trends,
        recommended_skills=insight.recommended_skills,
        last_updated=now,
        next_update=now + timedelta(days=cache_days),
    )


class InsightCacheManager:
    """Serves cached industry insights and refreshes them when stale."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        generator: ArtifactGenerator,
        cache_days: int = 7,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._conn = conn
        self._generator = generator
        self._cache_days = cache_days
        self._clock = clock

    def state(self, industry: str) -> CacheState:
        return classify(get_insight(self._conn, industry), self._clock())

    def apply_insight(self, industry: str, insight: IndustryInsight) -> IndustryInsightRecord:
        """Overwrite every insight field for the industry and restart its window."""
        record = build_record(industry, insight, self._clock(), self._cache_days)
        upsert_insight(self._conn, record)
        return record

    async def refresh(self, industry: str) -> IndustryInsightRecord:
        """Regenerate regardless of freshness. GenerationUnavailable propagates."""
        industry = _require_industry(industry)
        insight = await self._generator.generate_insight(industry)
        record = self.apply_insight(industry, insight)
        logger.info("Refreshed insights for '%s' (next update %s)", industry, record.next_update)
        return record

    async def get_or_refresh(self, industry: str) -> IndustryInsightRecord:
        industry = _require_industry(industry)
        record = get_insight(self._conn, industry)
        state = classify(record, self._clock())

        if record is None:
            return await self._create_with_best_effort(industry)
        if state is CacheState.FRESH:
            logger.debug("Insight cache hit for '%s'", industry)
            return record

        logger.info("Insights for '%s' are stale - refreshing", industry)
        return await self.refresh(industry)

    async def ensure_exists(self, industry: str) -> IndustryInsightRecord:
        """Profile-setup path: never blocks on generation, never touches existing records."""
        industry = _require_industry(industry)
        record = get_insight(self._conn, industry)
        if record is not None:
            return record
        return await self._create_with_best_effort(industry)

    async def _create_with_best_effort(self, industry: str) -> IndustryInsightRecord:
        placeholder = IndustryInsightRecord.placeholder(
            industry, self._clock(), self._cache_days,
        )
        if not create_insight(self._conn, placeholder):
            # Another caller created it first; serve what it wrote.
            existing = get_insight(self._conn, industry)
            if existing is not None:
                return existing
            msg = f"Insights for '{industry}' vanished after a concurrent create"
            raise sqlite3.DatabaseError(msg)

        logger.info("Created placeholder insights for '%s'", industry)
        try:
            return await self.refresh(industry)
        except GenerationUnavailable:
            logger.warning(
                "Insight generation for '%s' failed - keeping placeholder",
                industry,
                exc_info=True,
            )
            return placeholder


def _require_industry(industry: str | None) -> str:
    if industry is None or not industry.strip():
        msg = "Industry is required to generate insights"
        raise InvalidInput(msg)
    return industry.strip()
