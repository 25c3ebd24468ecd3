"""Interview quizzes: generation, scoring history and improvement tips."""

import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

from src.core import db
from src.core.errors import InvalidInput, NotFound
from src.core.schemas import (
    ArtifactType,
    Assessment,
    GenerationRequest,
    QuestionResult,
    Quiz,
    QuizQuestion,
    QuizStats,
    RecentScore,
)
from src.generation.generator import ArtifactGenerator
from src.generation.prompts import improvement_tip_prompt
from src.pipeline.rate_limiter import RateLimiter
from src.services.identity import IdentityResolver, get_authenticated_user

logger = logging.getLogger(__name__)

FALLBACK_TIP = (
    "Keep practicing! Review the explanations for questions you missed "
    "and focus on those topics."
)
PERFECT_SCORE_TIP = "Perfect score! You've demonstrated excellent knowledge. Keep it up!"
MAX_TIP_EXAMPLES = 3
RECENT_SCORES = 5


class InterviewService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        identity: IdentityResolver,
        limiter: RateLimiter,
        generator: ArtifactGenerator,
    ) -> None:
        self._conn = conn
        self._identity = identity
        self._limiter = limiter
        self._generator = generator

    async def generate_quiz(self) -> list[QuizQuestion]:
        """Return 10 validated multiple-choice questions for the user's industry."""
        user = get_authenticated_user(self._conn, self._identity)
        self._limiter.check_quota(user.id, "quiz")
        if not user.industry:
            msg = "Please set your industry in your profile before generating quizzes"
            raise InvalidInput(msg)

        request = GenerationRequest(
            artifact_type=ArtifactType.QUIZ,
            requester_id=user.auth_id,
            prompt_parameters={"industry": user.industry, "skills": user.skills},
        )
        quiz: Quiz = await self._generator.generate(request)
        return quiz.questions

    async def save_quiz_result(
        self,
        questions: Sequence[QuizQuestion | dict[str, Any]],
        answers: Sequence[str | None],
        score: float,
    ) -> Assessment:
        if not questions:
            msg = "Invalid questions array"
            raise InvalidInput(msg)
        if answers is None:
            msg = "Invalid answers array"
            raise InvalidInput(msg)
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
            msg = "Invalid score: must be between 0 and 100"
            raise InvalidInput(msg)
        if len(questions) != len(answers):
            msg = "Questions and answers length mismatch"
            raise InvalidInput(msg)

        user = get_authenticated_user(self._conn, self._identity)

        results = []
        for q, answer in zip(questions, answers):
            question = q if isinstance(q, QuizQuestion) else QuizQuestion.model_validate(q)
            results.append(QuestionResult(
                question=question.question,
                answer=question.correct_answer,
                user_answer=answer or "Not answered",
                is_correct=question.correct_answer == answer,
                explanation=question.explanation,
            ))

        tip = await self._improvement_tip(user.industry, results)
        return db.create_assessment(
            self._conn,
            user.id,
            quiz_score=score,
            questions=results,
            improvement_tip=tip,
        )

    async def _improvement_tip(self, industry: str | None, results: list[QuestionResult]) -> str:
        wrong = [r for r in results if not r.is_correct]
        if not wrong:
            return PERFECT_SCORE_TIP

        examples = [(r.question, r.answer, r.user_answer) for r in wrong[:MAX_TIP_EXAMPLES]]
        prompt = improvement_tip_prompt(industry, examples, len(wrong))
        try:
            tip = await self._generator.complete_text(prompt)
        except Exception:
            logger.warning("Improvement tip generation failed - using fallback", exc_info=True)
            return FALLBACK_TIP
        return tip or FALLBACK_TIP

    def list_assessments(self) -> list[Assessment]:
        user = get_authenticated_user(self._conn, self._identity)
        return db.list_assessments(self._conn, user.id)

    def get_assessment(self, assessment_id: int) -> Assessment:
        if not assessment_id:
            msg = "Assessment ID is required"
            raise InvalidInput(msg)
        user = get_authenticated_user(self._conn, self._identity)
        assessment = db.get_assessment(self._conn, assessment_id, user.id)
        if assessment is None:
            msg = "Assessment not found"
            raise NotFound(msg)
        return assessment

    def delete_assessment(self, assessment_id: int) -> None:
        if not assessment_id:
            msg = "Assessment ID is required"
            raise InvalidInput(msg)
        user = get_authenticated_user(self._conn, self._identity)
        if not db.delete_assessment(self._conn, assessment_id, user.id):
            msg = "Assessment not found"
            raise NotFound(msg)

    def get_quiz_stats(self) -> QuizStats:
        assessments = self.list_assessments()
        if not assessments:
            return QuizStats()

        scores = [a.quiz_score for a in assessments]
        return QuizStats(
            total_quizzes=len(assessments),
            average_score=round(sum(scores) / len(scores)),
            highest_score=max(scores),
            lowest_score=min(scores),
            recent_scores=[
                RecentScore(score=a.quiz_score, date=a.created_at)
                for a in assessments[:RECENT_SCORES]
            ],
        )
