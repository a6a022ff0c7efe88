"""Helpers for turning raw model replies into JSON values."""

import json
import re
from typing import Any, Dict, List, Union

from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

_LEADING_JSON_FENCE = re.compile(r"^```json", re.IGNORECASE)


def strip_markdown_fences(text: str) -> str:
    """Remove a surrounding markdown code fence from a model reply.

    Trims whitespace, drops a leading ```json (any case) or bare ```, and a
    trailing ```. Text without fences is returned trimmed and otherwise
    unchanged.

    Args:
        text: Raw reply text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    cleaned_text = text.strip()
    if _LEADING_JSON_FENCE.match(cleaned_text):
        cleaned_text = cleaned_text[7:]
    elif cleaned_text.startswith("```"):
        cleaned_text = cleaned_text[3:]

    if cleaned_text.endswith("```"):
        cleaned_text = cleaned_text[:-3]

    return cleaned_text.strip()


def parse_json_safely(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Parse JSON from text, handling common LLM formatting issues.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Leading/trailing whitespace
    - Prose before or after a single JSON object
    - Trailing garbage after a complete value

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON value or None if parsing fails
    """
    if not text:
        return None

    cleaned_text = strip_markdown_fences(text)

    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, attempting recovery...")
        first_error = e

    recovered = _decode_first_value(cleaned_text)
    if recovered is not None:
        LOGGER.info("Recovered JSON value embedded in model reply")
        return recovered

    LOGGER.error(f"Failed to parse JSON: {first_error}")
    return None


def _decode_first_value(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Decode the first complete JSON object or array found in ``text``."""
    decoder = json.JSONDecoder()
    idx = 0

    while idx < len(text):
        next_brace = text.find("{", idx)
        next_bracket = text.find("[", idx)
        candidates = [pos for pos in (next_brace, next_bracket) if pos != -1]
        if not candidates:
            return None

        start = min(candidates)
        try:
            value, _ = decoder.raw_decode(text, start)
            return value
        except json.JSONDecodeError:
            idx = start + 1

    return None

