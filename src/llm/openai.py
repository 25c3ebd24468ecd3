"""OpenAI LLM provider, also the transport for OpenAI-compatible servers."""

import logging
import os
from typing import Any

from src.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


def chat_messages(prompt: str, system: str | None) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system if system is not None else SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def import_openai(purpose: str) -> Any:
    try:
        import openai
    except ImportError:
        msg = (
            f"openai is required for {purpose}. "
            "Install with: pip install 'career-content-engine[openai]'"
        )
        raise ImportError(msg) from None
    return openai


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = os.environ.get(self.env_var)
            if not api_key:
                msg = f"{self.env_var} environment variable is required"
                raise ValueError(msg)
            openai = import_openai("text generation")
            self._client = openai.OpenAI(api_key=api_key, timeout=self.timeout_seconds)
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

        logger.debug("Sending %d-char prompt to %s (%s)", len(prompt), self.provider_id, use_model)
        response = client.chat.completions.create(
            model=use_model,
            messages=chat_messages(prompt, system),
            max_tokens=self.max_tokens,
            **self.sampling_kwargs(),
        )

        return response.choices[0].message.content  # type: ignore[no-any-return]
