"""Abstract base class for LLM text-generation providers."""

from abc import ABC, abstractmethod
from typing import Any

SYSTEM_PROMPT = (
    "You are an expert career coach and labour-market analyst. "
    "Follow the output format requested in each prompt exactly. "
    "When JSON is requested, return ONLY the JSON object with no markdown "
    "and no explanation."
)


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    Generation options are fixed at construction. The SDK client is built on
    the first call and reused, so a batch run shares one connection pool.
    """

    def __init__(
        self,
        *,
        max_tokens: int = 4096,
        temperature: float | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._client: Any = None

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'gemini')."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: Fully rendered user prompt.
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to SYSTEM_PROMPT.

        Returns:
            Raw text response from the LLM. No structural guarantee.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    def sampling_kwargs(self) -> dict[str, Any]:
        """Temperature only when configured; providers keep their own default otherwise."""
        if self.temperature is None:
            return {}
        return {"temperature": self.temperature}
