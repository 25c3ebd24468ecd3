"""Cover letter generation and retrieval for the signed-in user."""

import logging
import sqlite3

from src.core import db
from src.core.errors import InvalidInput, NotFound
from src.core.schemas import (
    ArtifactType,
    CoverLetter,
    CoverLetterStatus,
    GenerationRequest,
    TextArtifact,
)
from src.generation.generator import ArtifactGenerator
from src.pipeline.rate_limiter import RateLimiter
from src.services.identity import IdentityResolver, get_authenticated_user

logger = logging.getLogger(__name__)


class CoverLetterService:
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

    async def generate_cover_letter(
        self, job_title: str, company_name: str, job_description: str,
    ) -> CoverLetter:
        """Generate and store a cover letter.

        A pending record is written before generation and ends up either
        completed (with content) or failed; on failure the error is re-raised.
        """
        if not job_title or not company_name or not job_description:
            msg = "Missing required fields: job_title, company_name and job_description"
            raise InvalidInput(msg)

        user = get_authenticated_user(self._conn, self._identity)
        self._limiter.check_quota(user.id, "cover_letter")

        request = GenerationRequest(
            artifact_type=ArtifactType.COVER_LETTER,
            requester_id=user.auth_id,
            prompt_parameters={
                "job_title": job_title,
                "company_name": company_name,
                "job_description": job_description,
                "industry": user.industry,
                "experience": user.experience,
                "skills": user.skills,
                "bio": user.bio,
            },
        )

        letter = db.create_cover_letter(
            self._conn,
            user.id,
            job_title=job_title,
            company_name=company_name,
            job_description=job_description,
        )
        try:
            artifact: TextArtifact = await self._generator.generate(request)
        except Exception:
            logger.error("Cover letter %d generation failed", letter.id)
            db.update_cover_letter(self._conn, letter.id, status=CoverLetterStatus.FAILED)
            raise

        db.update_cover_letter(
            self._conn, letter.id, status=CoverLetterStatus.COMPLETED, content=artifact.text,
        )
        return self.get_cover_letter(letter.id)

    def list_cover_letters(self) -> list[CoverLetter]:
        user = get_authenticated_user(self._conn, self._identity)
        return db.list_cover_letters(self._conn, user.id)

    def get_cover_letter(self, letter_id: int) -> CoverLetter:
        if not letter_id:
            msg = "Cover letter ID is required"
            raise InvalidInput(msg)
        user = get_authenticated_user(self._conn, self._identity)
        letter = db.get_cover_letter(self._conn, letter_id, user.id)
        if letter is None:
            msg = "Cover letter not found"
            raise NotFound(msg)
        return letter

    def delete_cover_letter(self, letter_id: int) -> None:
        if not letter_id:
            msg = "Cover letter ID is required"
            raise InvalidInput(msg)
        user = get_authenticated_user(self._conn, self._identity)
        if not db.delete_cover_letter(self._conn, letter_id, user.id):
            msg = "Cover letter not found"
            raise NotFound(msg)
