"""
Parse JSON out of LLM completions.

Shared by the evaluator, the input synthesizer and the search term extractor so
that all of them accept exactly the same response shapes.
"""

import json
import logging
import re
from typing import Any

from actor_scout.packages.errors import ResponseParseError

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\n?")


def strip_markdown_fence(text: str) -> str:
    """Remove markdown code fences (```json ... ```) surrounding a response."""
    return FENCE_PATTERN.sub("", text or "").strip()


def parse_json_response(text: str) -> Any:
    """Strip markdown fencing and parse the remainder as JSON."""
    cleaned = strip_markdown_fence(text)
    if not cleaned:
        raise ResponseParseError("Empty response", raw_text=text or "")

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse response as JSON: {e}")
        raise ResponseParseError(f"Invalid JSON: {e}", raw_text=text) from e


def parse_json_object(text: str) -> dict:
    """Parse a response that must be a single JSON object."""
    parsed = parse_json_response(text)
    if not isinstance(parsed, dict):
        raise ResponseParseError(
            f"Expected a JSON object, got {type(parsed).__name__}", raw_text=text)
    return parsed
