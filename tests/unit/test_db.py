"""Tests for the SQLite record store."""

import sqlite3
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from src.core.db import (
    count_artifacts_since,
    create_assessment,
    create_cover_letter,
    create_insight,
    delete_cover_letter,
    delete_resume,
    get_insight,
    get_step_result,
    get_user_by_auth_id,
    has_step_results,
    list_cover_letters,
    list_distinct_industries,
    prune_step_results,
    record_resume_improvement,
    save_step_result,
    update_cover_letter,
    upsert_insight,
    upsert_resume,
    upsert_user,
)
from src.core.schemas import (
    CoverLetterStatus,
    DemandLevel,
    IndustryInsightRecord,
    MarketOutlook,
    QuestionResult,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _user(db: sqlite3.Connection, auth_id: str = "auth-1") -> int:
    return upsert_user(
        db, auth_id, industry="Data Science", experience=4, bio=None, skills=["Python"],
    ).id


def _record(industry: str = "Data Science", **kw: object) -> IndustryInsightRecord:
    defaults: dict[str, object] = {
        "industry": industry,
        "salary_ranges": [{"role": "Analyst", "min": 1, "max": 2, "median": 1.5}],
        "growth_rate": 4.2,
        "demand_level": DemandLevel.HIGH,
        "top_skills": ["Python"],
        "market_outlook": MarketOutlook.POSITIVE,
        "key_trends": ["AI"],
        "recommended_skills": ["dbt"],
        "last_updated": NOW,
        "next_update": NOW + timedelta(days=7),
    }
    defaults.update(kw)
    return IndustryInsightRecord(**defaults)  # type: ignore[arg-type]


class TestUsers:
    def test_upsert_creates_then_updates(self, db: sqlite3.Connection) -> None:
        first = upsert_user(
            db, "auth-1", industry="Finance", experience=2, bio="hi",
            skills=["Excel"], email="a@b.c",
        )
        second = upsert_user(
            db, "auth-1", industry="Data Science", experience=3, bio=None, skills=[],
        )
        assert first.id == second.id
        assert second.industry == "Data Science"
        assert second.skills == []
        assert second.email == "a@b.c"

    def test_unknown_user(self, db: sqlite3.Connection) -> None:
        assert get_user_by_auth_id(db, "ghost") is None

    def test_missing_row_after_write_raises(self, db: sqlite3.Connection) -> None:
        with (
            patch("src.core.db.get_user_by_auth_id", return_value=None),
            pytest.raises(sqlite3.DatabaseError, match="user row missing after write"),
        ):
            upsert_user(db, "auth-1", industry="Finance", experience=None, bio=None, skills=[])


class TestCoverLetters:
    def test_lifecycle(self, db: sqlite3.Connection) -> None:
        user_id = _user(db)
        letter = create_cover_letter(
            db, user_id, job_title="Engineer", company_name="Acme", job_description="Build",
        )
        assert letter.status is CoverLetterStatus.PENDING
        assert letter.content == ""

        update_cover_letter(db, letter.id, status=CoverLetterStatus.COMPLETED, content="Dear")
        [stored] = list_cover_letters(db, user_id)
        assert stored.status is CoverLetterStatus.COMPLETED
        assert stored.content == "Dear"

        assert delete_cover_letter(db, letter.id, user_id) is True
        assert delete_cover_letter(db, letter.id, user_id) is False

    def test_scoped_to_user(self, db: sqlite3.Connection) -> None:
        owner = _user(db, "owner")
        other = _user(db, "other")
        letter = create_cover_letter(
            db, owner, job_title="E", company_name="A", job_description="D",
        )
        assert delete_cover_letter(db, letter.id, other) is False
        assert list_cover_letters(db, other) == []


class TestResumes:
    def test_upsert_single_row_per_user(self, db: sqlite3.Connection) -> None:
        user_id = _user(db)
        upsert_resume(db, user_id, "v1")
        resume = upsert_resume(db, user_id, "v2")
        assert resume.content == "v2"
        assert delete_resume(db, user_id) is True
        assert delete_resume(db, user_id) is False


class TestCountArtifacts:
    def test_inclusive_lower_bound(self, db: sqlite3.Connection) -> None:
        user_id = _user(db)
        record_resume_improvement(db, user_id, "summary", now=NOW)
        record_resume_improvement(db, user_id, "summary", now=NOW - timedelta(hours=2))
        assert count_artifacts_since(db, "resume_improvement", user_id, NOW, NOW) == 1
        assert count_artifacts_since(
            db, "resume_improvement", user_id, NOW - timedelta(hours=3), NOW,
        ) == 2

    def test_inclusive_upper_bound(self, db: sqlite3.Connection) -> None:
        user_id = _user(db)
        record_resume_improvement(db, user_id, "summary", now=NOW)
        record_resume_improvement(db, user_id, "summary", now=NOW + timedelta(seconds=1))
        assert count_artifacts_since(
            db, "resume_improvement", user_id, NOW - timedelta(hours=1), NOW,
        ) == 1

    def test_counts_assessments_for_quiz(self, db: sqlite3.Connection) -> None:
        user_id = _user(db)
        create_assessment(
            db, user_id, quiz_score=50.0, improvement_tip=None, now=NOW,
            questions=[QuestionResult(
                question="q", answer="a", user_answer="b", is_correct=False, explanation="e",
            )],
        )
        assert count_artifacts_since(db, "quiz", user_id, NOW - timedelta(days=1), NOW) == 1

    def test_unknown_key(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Unknown artifact key"):
            count_artifacts_since(db, "poem", 1, NOW)


class TestInsights:
    def test_create_is_insert_only(self, db: sqlite3.Connection) -> None:
        assert create_insight(db, _record()) is True
        assert create_insight(db, _record(growth_rate=99.0)) is False
        stored = get_insight(db, "Data Science")
        assert stored is not None
        assert stored.growth_rate == 4.2

    def test_upsert_overwrites_every_field(self, db: sqlite3.Connection) -> None:
        create_insight(db, _record())
        later = NOW + timedelta(days=8)
        upsert_insight(db, _record(
            growth_rate=-1.0,
            demand_level=DemandLevel.LOW,
            market_outlook=MarketOutlook.NEGATIVE,
            top_skills=[],
            key_trends=["Layoffs"],
            last_updated=later,
            next_update=later + timedelta(days=7),
        ))
        stored = get_insight(db, "Data Science")
        assert stored is not None
        assert stored.growth_rate == -1.0
        assert stored.demand_level is DemandLevel.LOW
        assert stored.market_outlook is MarketOutlook.NEGATIVE
        assert stored.top_skills == []
        assert stored.key_trends == ["Layoffs"]
        assert stored.last_updated == later

    def test_upsert_twice_is_idempotent(self, db: sqlite3.Connection) -> None:
        upsert_insight(db, _record())
        first = get_insight(db, "Data Science")
        upsert_insight(db, _record())
        assert get_insight(db, "Data Science") == first
        assert list_distinct_industries(db) == ["Data Science"]

    def test_distinct_industries_in_insert_order(self, db: sqlite3.Connection) -> None:
        for name in ("Finance", "Healthcare", "Data Science"):
            create_insight(db, _record(name))
        db.execute(
            "INSERT INTO industry_insights (industry, last_updated, next_update) "
            "VALUES (NULL, '2026-01-01T00:00:00.000000', '2026-01-08T00:00:00.000000')",
        )
        db.commit()
        assert list_distinct_industries(db) == ["Finance", "Healthcare", "Data Science", None]


class TestWorkflowSteps:
    def test_round_trip(self, db: sqlite3.Connection) -> None:
        assert get_step_result(db, "run-1", "Fetch") == (False, None)
        save_step_result(db, "run-1", "Fetch", ["A", "B"])
        assert get_step_result(db, "run-1", "Fetch") == (True, ["A", "B"])
        assert get_step_result(db, "run-2", "Fetch") == (False, None)

    def test_has_step_results(self, db: sqlite3.Connection) -> None:
        assert has_step_results(db, "run-1") is False
        save_step_result(db, "run-1", "Fetch", [])
        assert has_step_results(db, "run-1") is True

    def test_prune_old_runs(self, db: sqlite3.Connection) -> None:
        save_step_result(db, "weekly-old", "Fetch", [], now=NOW - timedelta(weeks=5))
        save_step_result(db, "weekly-new", "Fetch", [], now=NOW)
        assert prune_step_results(db, NOW - timedelta(weeks=4)) == 1
        assert has_step_results(db, "weekly-old") is False
        assert has_step_results(db, "weekly-new") is True
