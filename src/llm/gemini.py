"""Google Gemini LLM provider (google-genai SDK)."""

import logging
import os
from typing import Any

from src.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """LLM provider using the Google Gemini API (google-genai SDK)."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def _import_sdk(self) -> tuple[Any, Any]:
        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for text generation. "
                "Install with: pip install 'career-content-engine[gemini]'"
            )
            raise ImportError(msg) from None
        return genai, genai_types

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        api_key = os.environ.get(self.env_var)
        if not api_key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)

        genai, genai_types = self._import_sdk()
        if self._client is None:
            self._client = genai.Client(
                api_key=api_key,
                http_options=genai_types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )

        use_model = model or self.default_model
        logger.debug("Sending %d-char prompt to Gemini (%s)", len(prompt), use_model)
        response = self._client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system if system is not None else SYSTEM_PROMPT,
                max_output_tokens=self.max_tokens,
                **self.sampling_kwargs(),
            ),
        )

        # None when the response was blocked; the client turns that into a transport error.
        return response.text  # type: ignore[no-any-return]
