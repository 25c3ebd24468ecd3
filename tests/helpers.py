"""Test doubles shared across unit and integration tests."""

from collections.abc import Callable
from datetime import datetime, timedelta

from src.generation.generator import ArtifactGenerator
from src.llm.base import LLMProvider


class ScriptedProvider(LLMProvider):
    """Replays canned responses in order; Exception items are raised.

    The last item repeats once the script is exhausted.
    """

    def __init__(self, responses: list[str | Exception]) -> None:
        super().__init__()
        self._responses = list(responses)
        self.prompts: list[str] = []

    @property
    def provider_id(self) -> str:
        return "scripted"

    @property
    def default_model(self) -> str:
        return "scripted-1"

    @property
    def env_var(self) -> None:
        return None

    def complete(self, prompt: str, model: str | None = None, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self._responses) - 1)
        item = self._responses[index]
        if isinstance(item, Exception):
            raise item
        return item


class KeyedProvider(LLMProvider):
    """Answers by the first key found in the prompt; unknown prompts raise."""

    def __init__(self, responses: dict[str, str | Exception]) -> None:
        super().__init__()
        self._responses = responses
        self.prompts: list[str] = []

    @property
    def provider_id(self) -> str:
        return "keyed"

    @property
    def default_model(self) -> str:
        return "keyed-1"

    @property
    def env_var(self) -> None:
        return None

    def complete(self, prompt: str, model: str | None = None, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        for key, item in self._responses.items():
            if key in prompt:
                if isinstance(item, Exception):
                    raise item
                return item
        msg = "no scripted response"
        raise RuntimeError(msg)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


GeneratorFactory = Callable[..., tuple[ArtifactGenerator, ScriptedProvider]]
