"""
Helpers for building chat messages in the litellm / OpenAI shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..constants import (
    ASSISTANT,
    CONTENT,
    NAME,
    ROLE,
    SYSTEM,
    TOOL,
    TOOL_CALL_ID,
    TOOL_CALLS,
    USER,
)


def to_system_message(content: str) -> Dict[str, Any]:
    return {ROLE: SYSTEM, CONTENT: content}


def to_user_message(content: str) -> Dict[str, Any]:
    return {ROLE: USER, CONTENT: content}


def to_assistant_message(
    content: Optional[str], tool_calls: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    message: Dict[str, Any] = {ROLE: ASSISTANT, CONTENT: content}
    if tool_calls:
        message[TOOL_CALLS] = tool_calls
    return message


def to_tool_message(
    content: str, tool_call_id: str, name: Optional[str] = None
) -> Dict[str, Any]:
    message: Dict[str, Any] = {ROLE: TOOL, CONTENT: content, TOOL_CALL_ID: tool_call_id}
    if name:
        message[NAME] = name
    return message
