"""User profile updates and onboarding status."""

import logging
import sqlite3
from typing import Any

from src.core.db import get_user_by_auth_id, upsert_user
from src.core.errors import InvalidInput
from src.core.schemas import User
from src.pipeline.insight_cache import InsightCacheManager
from src.services.identity import IdentityResolver, require_auth_id

logger = logging.getLogger(__name__)


def normalize_skills(value: Any) -> list[str]:
    """Accept a list or a comma-separated string; trim and drop empties."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [s.strip() for s in value if isinstance(s, str) and s.strip()]
    return []


class UserService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        identity: IdentityResolver,
        insights: InsightCacheManager,
    ) -> None:
        self._conn = conn
        self._identity = identity
        self._insights = insights

    async def update_profile(
        self,
        *,
        industry: str,
        experience: int | str | None = None,
        bio: str | None = None,
        skills: Any = None,
        email: str = "",
        name: str | None = None,
    ) -> User:
        """Create or update the signed-in user's profile.

        The industry's insight record is created first (placeholder plus a
        best-effort generation) so the profile never waits on model availability.
        """
        auth_id = require_auth_id(self._identity)
        if not industry or not industry.strip():
            msg = "Industry is required"
            raise InvalidInput(msg)
        industry = industry.strip()

        try:
            years = int(experience) if experience not in (None, "") else None
        except (TypeError, ValueError) as e:
            msg = f"Invalid experience: {experience!r}"
            raise InvalidInput(msg) from e

        await self._insights.ensure_exists(industry)

        user = upsert_user(
            self._conn,
            auth_id,
            industry=industry,
            experience=years,
            bio=bio,
            skills=normalize_skills(skills),
            email=email,
            name=name,
        )
        logger.info("Updated profile for user %d (%s)", user.id, industry)
        return user

    def get_onboarding_status(self) -> bool:
        """True once the signed-in user has an industry set."""
        user = get_user_by_auth_id(self._conn, require_auth_id(self._identity))
        return bool(user is not None and user.industry)
