"""Shared utility functions for agents."""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def parse_json_response(response: str) -> Optional[Dict[str, Any]]:
    """Safely parse JSON from agent response.

    Args:
        response: Agent response text that may contain JSON

    Returns:
        Parsed JSON dict or None if parsing fails. A bare array is wrapped
        as ``{"questions": [...]}``.
    """
    if not response:
        return None

    parsed = None

    # Try to extract JSON from markdown code blocks
    if "```json" in response:
        try:
            start = response.find("```json") + 7
            end = response.find("```", start)
            parsed = json.loads(response[start:end].strip())
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from code block: {e}")

    # Try to parse the entire response
    if parsed is None:
        try:
            parsed = json.loads(response)
        except json.JSONDecodeError:
            logger.warning("Response is not valid JSON")
            return None

    if isinstance(parsed, list):
        return {"questions": parsed}
    return parsed if isinstance(parsed, dict) else None
