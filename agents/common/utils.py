"""Shared utility functions for agents."""

import json
import logging
from typing import Any, Dict

from core.exceptions import EvaluationError

logger = logging.getLogger(__name__)


def parse_json_response(response: str) -> Dict[str, Any]:
    """Parse a JSON object out of a model response.

    Args:
        response: Response text, optionally wrapped in a markdown code block

    Returns:
        Parsed JSON object

    Raises:
        EvaluationError: No JSON object could be parsed
    """
    text = (response or "").strip()

    # Strip markdown code fences
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        end = text.rfind("```")
        if end != -1:
            text = text[:end]
        text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Response is not valid JSON: {e}")
        raise EvaluationError("Model response is not valid JSON", {"error": str(e)}) from e

    if not isinstance(data, dict):
        raise EvaluationError(
            "Model response is not a JSON object", {"type": type(data).__name__}
        )
    return data


def clamp_score(value: Any, low: float = 0.0, high: float = 100.0) -> float:
    """Coerce a model-provided score into range.

    Raises:
        EvaluationError: Value is not numeric
    """
    try:
        score = float(value)
    except (TypeError, ValueError) as e:
        raise EvaluationError(f"Score {value!r} is not a number") from e
    return max(low, min(high, score))
