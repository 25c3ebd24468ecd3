"""Strip markdown fencing from model output before JSON parsing."""

import json
import re
from typing import Any

from src.core.errors import MalformedArtifact

_OPENING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```\s*$")


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding ```/```json block and outer whitespace.

    Parse-ability is not checked here.
    """
    cleaned = _OPENING_FENCE.sub("", raw.strip())
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def parse_json(raw: str) -> Any:
    """Sanitize and decode a JSON response."""
    cleaned = strip_code_fences(raw)
    if not cleaned:
        msg = "Empty response from model"
        raise MalformedArtifact(msg)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse model response as JSON: {e}"
        raise MalformedArtifact(msg) from e
