"""Shared fixtures: temp SQLite store, scripted generator, sample model output."""

import sqlite3
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.core.db import init_db
from src.generation.client import TextGenerationClient
from src.generation.generator import ArtifactGenerator
from src.generation.retry import RetryExecutor
from tests.helpers import FakeClock, GeneratorFactory, ScriptedProvider

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    return init_db(tmp_path / "test.db")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def insight_json() -> str:
    return (FIXTURES_DIR / "sample_insight.json").read_text()


@pytest.fixture
def quiz_json() -> str:
    return (FIXTURES_DIR / "sample_quiz.json").read_text()


@pytest.fixture
def analysis_json() -> str:
    return (FIXTURES_DIR / "sample_analysis.json").read_text()


@pytest.fixture
def make_generator() -> GeneratorFactory:
    """Build a generator over a ScriptedProvider with a no-op sleep."""

    def _make(
        responses: list[str | Exception], max_retries: int = 2,
    ) -> tuple[ArtifactGenerator, ScriptedProvider]:
        provider = ScriptedProvider(responses)
        executor = RetryExecutor(base_delay_seconds=1.0, sleep=AsyncMock())
        generator = ArtifactGenerator(TextGenerationClient(provider), executor, max_retries)
        return generator, provider

    return _make
