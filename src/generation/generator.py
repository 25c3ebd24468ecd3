"""Artifact generator: prompt -> model -> decode, wrapped in the retry executor.

Data flow per attempt:
  1. TextGenerationClient.generate(prompt) -> raw text
  2. decode_artifact(type, raw) -> sanitize, parse, validate, typed model
  3. DecodeResult.unwrap() raises MalformedArtifact on failure (retryable)
"""

import logging
from typing import Any

from src.core.errors import InvalidInput
from src.core.schemas import ArtifactType, GenerationRequest, IndustryInsight
from src.generation import prompts
from src.generation.client import TextGenerationClient
from src.generation.retry import RetryExecutor
from src.generation.validators import decode_artifact

logger = logging.getLogger(__name__)


class ArtifactGenerator:
    """Produces validated artifacts for any ArtifactType."""

    def __init__(
        self,
        client: TextGenerationClient,
        executor: RetryExecutor,
        max_retries: int = 2,
    ) -> None:
        self._client = client
        self._executor = executor
        self._max_retries = max_retries

    def build_prompt(self, request: GenerationRequest) -> str:
        params = request.prompt_parameters
        try:
            if request.artifact_type is ArtifactType.INDUSTRY_INSIGHT:
                return prompts.industry_insight_prompt(params["industry"])
            if request.artifact_type is ArtifactType.QUIZ:
                return prompts.quiz_prompt(params["industry"], params.get("skills"))
            if request.artifact_type is ArtifactType.COVER_LETTER:
                return prompts.cover_letter_prompt(
                    params["job_title"],
                    params["company_name"],
                    params["job_description"],
                    industry=params.get("industry"),
                    experience=params.get("experience"),
                    skills=params.get("skills"),
                    bio=params.get("bio"),
                )
            if request.artifact_type is ArtifactType.RESUME_SECTION:
                return prompts.resume_section_prompt(
                    params["current"], params["section_type"], params["industry"],
                )
            return prompts.resume_analysis_prompt(params["content"], params["industry"])
        except KeyError as e:
            msg = f"Missing prompt parameter for {request.artifact_type.value}: {e.args[0]}"
            raise InvalidInput(msg) from e

    async def generate(
        self, request: GenerationRequest, *, max_retries: int | None = None,
    ) -> Any:
        """Return the validated artifact for ``request`` or raise GenerationUnavailable."""
        prompt = self.build_prompt(request)
        return await self.generate_from_prompt(
            request.artifact_type, prompt, max_retries=max_retries,
        )

    async def generate_from_prompt(
        self,
        artifact_type: ArtifactType,
        prompt: str,
        *,
        max_retries: int | None = None,
        label: str | None = None,
    ) -> Any:
        async def attempt() -> Any:
            raw = await self._client.generate(prompt)
            return decode_artifact(artifact_type, raw).unwrap()

        bound = self._max_retries if max_retries is None else max_retries
        return await self._executor.execute(
            attempt, bound, label=label or artifact_type.value,
        )

    async def generate_insight(
        self, industry: str, *, max_retries: int | None = None,
    ) -> IndustryInsight:
        request = GenerationRequest(
            artifact_type=ArtifactType.INDUSTRY_INSIGHT,
            prompt_parameters={"industry": industry},
        )
        prompt = self.build_prompt(request)
        return await self.generate_from_prompt(  # type: ignore[no-any-return]
            ArtifactType.INDUSTRY_INSIGHT, prompt, max_retries=max_retries, label=industry,
        )

    async def complete_text(self, prompt: str) -> str:
        """Single unvalidated call for best-effort text (e.g. quiz tips)."""
        raw = await self._client.generate(prompt)
        return raw.strip()
