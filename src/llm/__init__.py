"""LLM provider registry with lazy loading.

Usage:
    from src.llm import get_provider

    provider = get_provider("gemini", temperature=0.7)
    raw = provider.complete(prompt)
"""

from __future__ import annotations

import importlib
from typing import Any

from src.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider"]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("src.llm.anthropic", "AnthropicProvider"),
    "openai": ("src.llm.openai", "OpenAIProvider"),
    "gemini": ("src.llm.gemini", "GeminiProvider"),
    "ollama": ("src.llm.ollama", "OllamaProvider"),
}


def get_provider(name: str, **options: Any) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Args:
        name: Provider identifier (anthropic, openai, gemini, ollama).
        **options: Generation options (max_tokens, temperature, timeout_seconds).

    Returns:
        An LLMProvider instance.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(**options)  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
