"""Ollama local LLM provider (OpenAI-compatible API)."""

import logging
import os
from typing import Any

from src.llm.openai import OpenAIProvider, import_openai

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """Local Ollama server through its OpenAI-compatible endpoint.

    ``OLLAMA_BASE_URL`` points at a non-default host. No API key is needed.
    """

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3"

    @property
    def env_var(self) -> None:
        return None

    @property
    def base_url(self) -> str:
        return os.environ.get("OLLAMA_BASE_URL", DEFAULT_BASE_URL)

    def _get_client(self) -> Any:
        if self._client is None:
            openai = import_openai("Ollama (OpenAI-compatible API)")
            self._client = openai.OpenAI(
                base_url=self.base_url, api_key="ollama", timeout=self.timeout_seconds,
            )
        return self._client
