"""Structural checks on parsed model output, one validator per artifact type.

Validators never repair or mutate their input. They return True or raise
MalformedArtifact naming the offending field (and question index for quizzes).
``decode_artifact`` chains sanitize -> parse -> validate -> typed model and
reports the outcome as a DecodeResult instead of raising.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from src.core.errors import MalformedArtifact
from src.core.schemas import (
    ArtifactType,
    DemandLevel,
    IndustryInsight,
    MarketOutlook,
    Quiz,
    ResumeAnalysis,
    TextArtifact,
)
from src.generation.sanitizer import parse_json, strip_code_fences

QUIZ_QUESTION_COUNT = 10
QUIZ_OPTION_COUNT = 4
MIN_SALARY_RANGES = 3
MIN_TOP_SKILLS = 5
MIN_TEXT_LENGTH = 10

INSIGHT_FIELDS = (
    "salaryRanges",
    "growthRate",
    "demandLevel",
    "topSkills",
    "marketOutlook",
    "keyTrends",
    "recommendedSkills",
)

_DEMAND_LEVELS = {d.value for d in DemandLevel}
_MARKET_OUTLOOKS = {m.value for m in MarketOutlook}


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        msg = f"Invalid {what} format: expected a JSON object"
        raise MalformedArtifact(msg)
    return data


# ---------------------------------------------------------------------------
# Per-type validators
# ---------------------------------------------------------------------------


def validate_quiz(data: Any) -> bool:
    """Exactly 10 questions, 4 options each, correctAnswer among the options."""
    quiz = _require_mapping(data, "quiz")
    questions = quiz.get("questions")
    if not _is_list(questions):
        msg = "Invalid quiz format: missing questions array"
        raise MalformedArtifact(msg, field="questions")
    if len(questions) != QUIZ_QUESTION_COUNT:
        msg = (
            f"Invalid quiz format: expected {QUIZ_QUESTION_COUNT} questions, "
            f"got {len(questions)}"
        )
        raise MalformedArtifact(msg, field="questions")

    for index, q in enumerate(questions):
        number = index + 1
        if not isinstance(q, Mapping):
            msg = f"Question {number}: expected a JSON object"
            raise MalformedArtifact(msg, field="questions", index=index)
        if not _non_empty_str(q.get("question")):
            msg = f"Question {number}: missing or invalid question text"
            raise MalformedArtifact(msg, field="question", index=index)
        options = q.get("options")
        if not _is_list(options) or len(options) != QUIZ_OPTION_COUNT:
            msg = f"Question {number}: must have exactly {QUIZ_OPTION_COUNT} options"
            raise MalformedArtifact(msg, field="options", index=index)
        answer = q.get("correctAnswer")
        if not isinstance(answer, str) or answer not in options:
            msg = f"Question {number}: correctAnswer must be one of the options"
            raise MalformedArtifact(msg, field="correctAnswer", index=index)
        if not _non_empty_str(q.get("explanation")):
            msg = f"Question {number}: missing or invalid explanation"
            raise MalformedArtifact(msg, field="explanation", index=index)

    return True


def validate_industry_insight(data: Any) -> bool:
    insight = _require_mapping(data, "insights")

    for field in INSIGHT_FIELDS:
        if field not in insight:
            msg = f"Missing required field: {field}"
            raise MalformedArtifact(msg, field=field)

    salary_ranges = insight["salaryRanges"]
    if not _is_list(salary_ranges) or len(salary_ranges) < MIN_SALARY_RANGES:
        msg = f"Invalid salaryRanges: must be array with at least {MIN_SALARY_RANGES} items"
        raise MalformedArtifact(msg, field="salaryRanges")

    top_skills = insight["topSkills"]
    if not _is_list(top_skills) or len(top_skills) < MIN_TOP_SKILLS:
        msg = f"Invalid topSkills: must be array with at least {MIN_TOP_SKILLS} items"
        raise MalformedArtifact(msg, field="topSkills")

    if insight["demandLevel"] not in _DEMAND_LEVELS:
        msg = "Invalid demandLevel: must be HIGH, MEDIUM, or LOW"
        raise MalformedArtifact(msg, field="demandLevel")

    if insight["marketOutlook"] not in _MARKET_OUTLOOKS:
        msg = "Invalid marketOutlook: must be POSITIVE, NEUTRAL, or NEGATIVE"
        raise MalformedArtifact(msg, field="marketOutlook")

    return True


def validate_resume_analysis(data: Any) -> bool:
    analysis = _require_mapping(data, "analysis")
    score = analysis.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        msg = "Invalid analysis format: score must be a number"
        raise MalformedArtifact(msg, field="score")
    for field in ("strengths", "improvements"):
        if not _is_list(analysis.get(field)):
            msg = f"Invalid analysis format: {field} must be an array"
            raise MalformedArtifact(msg, field=field)
    return True


def validate_text(text: Any) -> bool:
    """Free-form output: non-empty and not suspiciously short."""
    if not isinstance(text, str) or not text.strip():
        msg = "Empty response from model"
        raise MalformedArtifact(msg, field="text")
    if len(text.strip()) < MIN_TEXT_LENGTH:
        msg = "Model returned suspiciously short content"
        raise MalformedArtifact(msg, field="text")
    return True


# ---------------------------------------------------------------------------
# Strict decoder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DecodeResult:
    """Tagged outcome of decoding one response: ok with artifact, or error."""

    ok: bool
    artifact: Any = None
    error: MalformedArtifact | None = None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        if not self.ok:
            msg = "Decode failed without a recorded error"
            raise MalformedArtifact(msg)
        return self.artifact


_JSON_DECODERS = {
    ArtifactType.QUIZ: (validate_quiz, Quiz),
    ArtifactType.INDUSTRY_INSIGHT: (validate_industry_insight, IndustryInsight),
    ArtifactType.RESUME_ANALYSIS: (validate_resume_analysis, ResumeAnalysis),
}


def decode_artifact(artifact_type: ArtifactType, raw_text: str) -> DecodeResult:
    """Turn raw model text into a validated, immutable artifact."""
    try:
        if artifact_type in _JSON_DECODERS:
            validator, model = _JSON_DECODERS[artifact_type]
            data = parse_json(raw_text)
            validator(data)
            try:
                artifact = model.model_validate(data)
            except ValidationError as e:
                msg = f"Invalid {artifact_type.value} payload: {e.error_count()} field error(s)"
                raise MalformedArtifact(msg) from e
        else:
            text = strip_code_fences(raw_text)
            validate_text(text)
            artifact = TextArtifact(artifact_type=artifact_type, text=text)
    except MalformedArtifact as e:
        return DecodeResult(ok=False, error=e)
    return DecodeResult(ok=True, artifact=artifact)
