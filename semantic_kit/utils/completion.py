"""
Utility functions for completion responses.

This module reads content and tool calls out of litellm responses,
tolerating both objects and plain dicts.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from litellm import ModelResponse

# Set up logging
logger = logging.getLogger(__name__)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_message(response: ModelResponse) -> Any:
    """
    The first choice's message of a completion response.

    Raises:
        ValueError: If the response has no choices
    """
    choices = _get(response, "choices") or []
    if not choices:
        raise ValueError("Completion response has no choices")
    return _get(choices[0], "message")


def extract_content_from_response(response: ModelResponse) -> str:
    """
    Extract content from a completion response.

    Args:
        response: The completion response

    Returns:
        The message content, or an empty string
    """
    return _get(extract_message(response), "content") or ""


def extract_tool_calls(response: ModelResponse) -> List[Dict[str, Any]]:
    """
    Tool calls requested by the model, as OpenAI-shaped dicts.

    Args:
        response: The completion response

    Returns:
        List of ``{"id", "type", "function": {"name", "arguments"}}`` dicts
    """
    tool_calls = _get(extract_message(response), "tool_calls") or []
    normalized = []
    for tool_call in tool_calls:
        function = _get(tool_call, "function")
        normalized.append(
            {
                "id": _get(tool_call, "id"),
                "type": _get(tool_call, "type", "function") or "function",
                "function": {
                    "name": _get(function, "name"),
                    "arguments": _get(function, "arguments") or "{}",
                },
            }
        )
    return normalized


def parse_tool_arguments(arguments: Optional[str]) -> Dict[str, Any]:
    """
    Parse the JSON arguments of a tool call.

    Raises:
        ValueError: If the arguments are not a JSON object
    """
    if not arguments:
        return {}
    parsed = json.loads(arguments)
    if not isinstance(parsed, dict):
        raise ValueError(f"Tool call arguments must be a JSON object, got {arguments}")
    return parsed
