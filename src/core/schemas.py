"""Core data models for the career content engine.

Validated artifacts are frozen: once an AI response has passed the schema
validator it is never mutated. JSON field names from the model output are
camelCase and mapped through aliases.
"""

import json
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ArtifactType(str, Enum):
    COVER_LETTER = "cover_letter"
    QUIZ = "quiz"
    RESUME_SECTION = "resume_section"
    RESUME_ANALYSIS = "resume_analysis"
    INDUSTRY_INSIGHT = "industry_insight"


class DemandLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class MarketOutlook(str, Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"


class GenerationRequest(BaseModel):
    """A single generation invocation. Not persisted."""

    model_config = ConfigDict(frozen=True)

    artifact_type: ArtifactType
    prompt_parameters: dict[str, Any] = Field(default_factory=dict)
    requester_id: str = ""


# ---------------------------------------------------------------------------
# Validated artifacts
# ---------------------------------------------------------------------------


class _Artifact(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class QuizQuestion(_Artifact):
    question: str
    options: list[str]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str


class Quiz(_Artifact):
    questions: list[QuizQuestion]


class IndustryInsight(_Artifact):
    # Salary ranges are free-form: objects per role, or plain strings.
    salary_ranges: list[Any] = Field(alias="salaryRanges")
    growth_rate: float = Field(alias="growthRate")
    demand_level: DemandLevel = Field(alias="demandLevel")
    top_skills: list[str] = Field(alias="topSkills")
    market_outlook: MarketOutlook = Field(alias="marketOutlook")
    key_trends: list[str] = Field(alias="keyTrends")
    recommended_skills: list[str] = Field(alias="recommendedSkills")

    @field_validator("top_skills", "key_trends", "recommended_skills", mode="before")
    @classmethod
    def stringify_items(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [item if isinstance(item, str) else json.dumps(item) for item in v]
        return v


class ResumeAnalysis(_Artifact):
    score: float
    strengths: list[str]
    improvements: list[str]
    missing_keywords: list[str] = Field(default_factory=list, alias="missingKeywords")
    ats_compatibility: float | None = Field(default=None, alias="atsCompatibility")


class TextArtifact(_Artifact):
    """Free-form text output (cover letter, improved resume section)."""

    artifact_type: ArtifactType
    text: str


# ---------------------------------------------------------------------------
# Insight cache
# ---------------------------------------------------------------------------


class IndustryInsightRecord(BaseModel):
    """Cached per-industry market report, shared by every user in the industry."""

    model_config = ConfigDict(frozen=True)

    industry: str
    salary_ranges: list[Any] = Field(default_factory=list)
    growth_rate: float = 0.0
    demand_level: DemandLevel = DemandLevel.MEDIUM
    top_skills: list[str] = Field(default_factory=list)
    market_outlook: MarketOutlook = MarketOutlook.NEUTRAL
    key_trends: list[str] = Field(default_factory=list)
    recommended_skills: list[str] = Field(default_factory=list)
    last_updated: datetime
    next_update: datetime

    def is_stale(self, now: datetime) -> bool:
        return now > self.next_update

    @classmethod
    def placeholder(cls, industry: str, now: datetime, cache_days: int) -> "IndustryInsightRecord":
        """Neutral defaults used before the first successful generation."""
        return cls(
            industry=industry,
            last_updated=now,
            next_update=now + timedelta(days=cache_days),
        )


class RateLimitWindow(BaseModel):
    """Derived view of a subject's recent artifact count. Never stored."""

    model_config = ConfigDict(frozen=True)

    subject_id: int
    window_start: datetime
    window_duration_seconds: int
    count_observed: int


# ---------------------------------------------------------------------------
# Batch run report
# ---------------------------------------------------------------------------


class BatchFailure(BaseModel):
    subject_key: str
    error_message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class BatchRunReport(BaseModel):
    """Summary of one scheduler run. Returned and logged, never persisted."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[BatchFailure] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def record_failure(self, subject_key: str, error: BaseException, when: datetime) -> None:
        self.failed += 1
        self.failures.append(
            BatchFailure(subject_key=subject_key, error_message=str(error), timestamp=when)
        )


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class User(BaseModel):
    id: int
    auth_id: str
    email: str = ""
    name: str | None = None
    industry: str | None = None
    experience: int | None = None
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    created_at: datetime


class CoverLetterStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class CoverLetter(BaseModel):
    id: int
    user_id: int
    content: str = ""
    job_description: str
    company_name: str
    job_title: str
    status: CoverLetterStatus = CoverLetterStatus.PENDING
    created_at: datetime
    updated_at: datetime


class QuestionResult(BaseModel):
    question: str
    answer: str
    user_answer: str
    is_correct: bool
    explanation: str


class Assessment(BaseModel):
    id: int
    user_id: int
    quiz_score: float
    questions: list[QuestionResult] = Field(default_factory=list)
    category: str = "Technical"
    improvement_tip: str | None = None
    created_at: datetime


class Resume(BaseModel):
    id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class RecentScore(BaseModel):
    score: float
    date: datetime


class QuizStats(BaseModel):
    total_quizzes: int = 0
    average_score: int = 0
    highest_score: float = 0
    lowest_score: float = 0
    recent_scores: list[RecentScore] = Field(default_factory=list)
