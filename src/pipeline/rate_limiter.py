"""Rate limiter: trailing-window quotas per user and artifact kind.

Counts are derived from artifact creation timestamps in SQLite, so there is
no counter table to reset. The check is read-then-act with no reservation:
two concurrent requests from the same user can both pass before either
artifact is written, overshooting the quota by the degree of concurrency.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta

from src.core.config import QuotaConfig
from src.core.db import count_artifacts_since
from src.core.errors import QuotaExceeded
from src.core.schemas import RateLimitWindow

logger = logging.getLogger(__name__)

_LABELS = {
    "cover_letter": "cover letters",
    "quiz": "quizzes",
    "resume_improvement": "improvements",
}


def describe_window(window_seconds: int) -> str:
    """Human form of a window length: 'per day', 'per hour' or 'per N seconds'."""
    if window_seconds == 86_400:
        return "per day"
    if window_seconds == 3_600:
        return "per hour"
    return f"per {window_seconds} seconds"


class RateLimiter:
    """Enforces per-user quotas for each artifact kind.

    Usage::

        limiter = RateLimiter(conn, settings.quotas)
        limiter.check_quota(user.id, "quiz")  # raises QuotaExceeded
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        quotas: dict[str, QuotaConfig],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._conn = conn
        self._quotas = quotas
        self._clock = clock

    def window(self, subject_id: int, artifact_key: str, window_seconds: int) -> RateLimitWindow:
        now = self._clock()
        start = now - timedelta(seconds=window_seconds)
        count = count_artifacts_since(self._conn, artifact_key, subject_id, start, now)
        return RateLimitWindow(
            subject_id=subject_id,
            window_start=start,
            window_duration_seconds=window_seconds,
            count_observed=count,
        )

    def check(
        self, subject_id: int, artifact_key: str, window_seconds: int, max_count: int,
    ) -> RateLimitWindow:
        """Raise QuotaExceeded if the subject already has max_count artifacts in the window."""
        observed = self.window(subject_id, artifact_key, window_seconds)
        if observed.count_observed >= max_count:
            logger.info(
                "Quota reached for user %d on '%s': %d/%d %s",
                subject_id, artifact_key, observed.count_observed, max_count,
                describe_window(window_seconds),
            )
            raise QuotaExceeded(
                max_count,
                describe_window(window_seconds),
                label=_LABELS.get(artifact_key, "requests"),
            )
        return observed

    def check_quota(self, subject_id: int, artifact_key: str) -> RateLimitWindow | None:
        """Check against the configured quota. Unconfigured kinds are always allowed."""
        config = self._quotas.get(artifact_key)
        if config is None:
            logger.debug("No quota config for '%s' - allowing request", artifact_key)
            return None
        return self.check(subject_id, artifact_key, config.window_seconds, config.max_count)
