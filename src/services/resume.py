"""Resume storage, AI section rewrites and AI critique."""

import logging
import sqlite3

from src.core import db
from src.core.errors import InvalidInput, NotFound
from src.core.schemas import (
    ArtifactType,
    GenerationRequest,
    Resume,
    ResumeAnalysis,
    TextArtifact,
)
from src.generation.generator import ArtifactGenerator
from src.generation.prompts import RESUME_SECTION_TYPES
from src.pipeline.rate_limiter import RateLimiter
from src.services.identity import IdentityResolver, get_authenticated_user

logger = logging.getLogger(__name__)

MAX_RESUME_LENGTH = 50_000
MAX_SECTION_LENGTH = 5_000


class ResumeService:
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

    def save_resume(self, content: str) -> Resume:
        if not isinstance(content, str):
            msg = "Invalid resume content"
            raise InvalidInput(msg)
        trimmed = content.strip()
        if not trimmed:
            msg = "Resume content cannot be empty"
            raise InvalidInput(msg)
        if len(trimmed) > MAX_RESUME_LENGTH:
            msg = f"Resume is too long (max {MAX_RESUME_LENGTH} characters)"
            raise InvalidInput(msg)

        user = get_authenticated_user(self._conn, self._identity)
        return db.upsert_resume(self._conn, user.id, trimmed)

    def get_resume(self) -> Resume | None:
        user = get_authenticated_user(self._conn, self._identity)
        return db.get_resume(self._conn, user.id)

    async def improve_section(self, current: str, section_type: str) -> str:
        """Rewrite one resume section; counts against the hourly quota."""
        if not isinstance(current, str) or not current.strip():
            msg = "Current content is required and cannot be empty"
            raise InvalidInput(msg)
        if len(current) > MAX_SECTION_LENGTH:
            msg = f"Content is too long (max {MAX_SECTION_LENGTH} characters per section)"
            raise InvalidInput(msg)
        if not section_type:
            msg = "Content type is required"
            raise InvalidInput(msg)
        normalized = section_type.lower()
        if normalized not in RESUME_SECTION_TYPES:
            msg = f"Invalid type. Must be one of: {', '.join(RESUME_SECTION_TYPES)}"
            raise InvalidInput(msg)

        user = get_authenticated_user(self._conn, self._identity)
        if not user.industry:
            msg = "Please set your industry in your profile before using AI improvements"
            raise InvalidInput(msg)
        self._limiter.check_quota(user.id, "resume_improvement")

        request = GenerationRequest(
            artifact_type=ArtifactType.RESUME_SECTION,
            requester_id=user.auth_id,
            prompt_parameters={
                "current": current,
                "section_type": normalized,
                "industry": user.industry,
            },
        )
        artifact: TextArtifact = await self._generator.generate(request)
        db.record_resume_improvement(self._conn, user.id, normalized)
        return artifact.text

    async def analyze_resume(self) -> ResumeAnalysis:
        user = get_authenticated_user(self._conn, self._identity)
        if not user.industry:
            msg = "Please set your industry in your profile before analyzing your resume"
            raise InvalidInput(msg)
        resume = db.get_resume(self._conn, user.id)
        if resume is None or not resume.content.strip():
            msg = "No resume found to analyze. Please create a resume first."
            raise NotFound(msg)

        request = GenerationRequest(
            artifact_type=ArtifactType.RESUME_ANALYSIS,
            requester_id=user.auth_id,
            prompt_parameters={"content": resume.content, "industry": user.industry},
        )
        return await self._generator.generate(request)  # type: ignore[no-any-return]

    def delete_resume(self) -> bool:
        """Delete the user's resume. Returns False if there was nothing to delete."""
        user = get_authenticated_user(self._conn, self._identity)
        removed = db.delete_resume(self._conn, user.id)
        if not removed:
            logger.debug("Resume for user %d already deleted", user.id)
        return removed
