"""Tests for ResumeService."""

import sqlite3
from datetime import datetime, timedelta

import pytest

from src.core.config import QuotaConfig
from src.core.db import count_artifacts_since, get_resume, upsert_user
from src.core.errors import InvalidInput, NotFound, QuotaExceeded
from src.pipeline.rate_limiter import RateLimiter
from src.services.identity import StaticIdentity
from src.services.resume import MAX_RESUME_LENGTH, ResumeService
from tests.helpers import GeneratorFactory, ScriptedProvider

IMPROVED = "Led a team of 4 engineers to migrate 40 services to Kubernetes."


def _service(
    db: sqlite3.Connection, make_generator: GeneratorFactory,
    responses: list[str | Exception], improvements_per_hour: int = 20,
) -> tuple[ResumeService, ScriptedProvider]:
    generator, provider = make_generator(responses, max_retries=0)
    limiter = RateLimiter(db, {
        "resume_improvement": QuotaConfig(max_count=improvements_per_hour, window_seconds=3_600),
    })
    return ResumeService(db, StaticIdentity("auth-1"), limiter, generator), provider


def _user(db: sqlite3.Connection, industry: str = "Tech") -> int:
    return upsert_user(db, "auth-1", industry=industry, experience=None, bio=None, skills=[]).id


class TestSaveResume:
    def test_trims_and_upserts(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory,
    ) -> None:
        user_id = _user(db)
        service, _ = _service(db, make_generator, ["unused"])
        service.save_resume("  # Jane Doe  ")
        saved = service.save_resume("# Jane Doe\nEngineer")
        assert saved.content == "# Jane Doe\nEngineer"
        assert get_resume(db, user_id) == saved
        assert service.get_resume() == saved

    @pytest.mark.parametrize("content", ["", "   ", "x" * (MAX_RESUME_LENGTH + 1)])
    def test_rejected(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory, content: str,
    ) -> None:
        _user(db)
        service, _ = _service(db, make_generator, ["unused"])
        with pytest.raises(InvalidInput):
            service.save_resume(content)


class TestImproveSection:
    async def test_improves_and_counts(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory,
    ) -> None:
        user_id = _user(db)
        service, provider = _service(db, make_generator, [IMPROVED])
        text = await service.improve_section("migrated stuff to k8s", "Experience")
        assert text == IMPROVED
        assert "migrated stuff to k8s" in provider.prompts[0]
        assert count_artifacts_since(
            db, "resume_improvement", user_id, datetime.now() - timedelta(hours=1),
        ) == 1

    async def test_hourly_quota(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory,
    ) -> None:
        _user(db)
        service, provider = _service(db, make_generator, [IMPROVED], improvements_per_hour=1)
        await service.improve_section("did things", "summary")
        with pytest.raises(QuotaExceeded, match="per hour"):
            await service.improve_section("did things", "summary")
        assert len(provider.prompts) == 1

    @pytest.mark.parametrize(("current", "section_type"), [
        ("", "summary"),
        ("x" * 5_001, "summary"),
        ("did things", ""),
        ("did things", "hobbies"),
    ])
    async def test_invalid_input(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory,
        current: str, section_type: str,
    ) -> None:
        _user(db)
        service, provider = _service(db, make_generator, [IMPROVED])
        with pytest.raises(InvalidInput):
            await service.improve_section(current, section_type)
        assert provider.prompts == []

    async def test_industry_required(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory,
    ) -> None:
        _user(db, industry="")
        service, _ = _service(db, make_generator, [IMPROVED])
        with pytest.raises(InvalidInput, match="industry"):
            await service.improve_section("did things", "summary")


class TestAnalyzeResume:
    async def test_analysis(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory, analysis_json: str,
    ) -> None:
        _user(db)
        service, _ = _service(db, make_generator, [analysis_json])
        service.save_resume("# Jane Doe\nData analyst, SQL, Python")
        analysis = await service.analyze_resume()
        assert analysis.score == 72
        assert "Airflow" in analysis.missing_keywords

    async def test_no_resume(
        self, db: sqlite3.Connection, make_generator: GeneratorFactory, analysis_json: str,
    ) -> None:
        _user(db)
        service, provider = _service(db, make_generator, [analysis_json])
        with pytest.raises(NotFound, match="No resume found"):
            await service.analyze_resume()
        assert provider.prompts == []


class TestDeleteResume:
    def test_delete_twice(self, db: sqlite3.Connection, make_generator: GeneratorFactory) -> None:
        _user(db)
        service, _ = _service(db, make_generator, ["unused"])
        service.save_resume("# Jane Doe")
        assert service.delete_resume() is True
        assert service.delete_resume() is False
        assert service.get_resume() is None
