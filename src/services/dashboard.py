"""Dashboard: industry insights for the signed-in user's industry."""

import sqlite3

from src.core.errors import InvalidInput
from src.core.schemas import IndustryInsightRecord, User
from src.pipeline.insight_cache import InsightCacheManager
from src.services.identity import IdentityResolver, get_authenticated_user


class DashboardService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        identity: IdentityResolver,
        insights: InsightCacheManager,
    ) -> None:
        self._conn = conn
        self._identity = identity
        self._insights = insights

    def _user_with_industry(self) -> User:
        user = get_authenticated_user(self._conn, self._identity)
        if not user.industry or not user.industry.strip():
            msg = "User industry not set. Please update your profile."
            raise InvalidInput(msg)
        return user

    async def get_industry_insights(self) -> IndustryInsightRecord:
        """Cached report when fresh, regenerated when stale."""
        user = self._user_with_industry()
        return await self._insights.get_or_refresh(user.industry or "")

    async def refresh_industry_insights(self) -> IndustryInsightRecord:
        """Force regeneration. GenerationUnavailable propagates to the caller."""
        user = self._user_with_industry()
        return await self._insights.refresh(user.industry or "")
