"""Async wrapper around a blocking LLM provider."""

import asyncio
import logging
from typing import Any

from src.core.errors import TransportError
from src.llm import get_provider
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class TextGenerationClient:
    """Sends prompts to one provider and returns raw text.

    Constructed once at composition time and passed to whatever needs it.
    Provider failures of any type surface as ``TransportError``.
    """

    def __init__(self, provider: LLMProvider, model: str | None = None) -> None:
        self._provider = provider
        self._model = model

    @classmethod
    def from_name(
        cls, name: str, model: str | None = None, **options: Any,
    ) -> "TextGenerationClient":
        return cls(get_provider(name, **options), model=model)

    @property
    def provider_id(self) -> str:
        return self._provider.provider_id

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        try:
            text = await asyncio.to_thread(
                self._provider.complete, prompt, self._model, system=system,
            )
        except Exception as e:
            msg = f"{self._provider.provider_id} request failed: {e}"
            raise TransportError(msg) from e

        if text is None:
            msg = f"{self._provider.provider_id} returned no text"
            raise TransportError(msg)

        logger.debug("Received %d characters from %s", len(text), self._provider.provider_id)
        return text
