"""Anthropic Claude LLM provider."""

import logging
import os
from typing import Any

from src.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic Claude API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client

        api_key = os.environ.get(self.env_var)
        if not api_key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for text generation. "
                "Install with: pip install 'career-content-engine[anthropic]'"
            )
            raise ImportError(msg) from None

        self._client = anthropic.Anthropic(api_key=api_key, timeout=self.timeout_seconds)
        return self._client

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        client = self._get_client()
        use_model = model or self.default_model

        logger.debug("Sending %d-char prompt to Anthropic (%s)", len(prompt), use_model)
        message = client.messages.create(
            model=use_model,
            max_tokens=self.max_tokens,
            system=system if system is not None else SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
            **self.sampling_kwargs(),
        )

        # Text blocks only; a refusal or tool block yields an empty string.
        return "".join(
            block.text for block in message.content if getattr(block, "type", "text") == "text"
        )
