"""
Chat history for Semantic Kit.

Messages are kept in the OpenAI / litellm dict shape so they can be sent to
a completion function as they are.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional

from pydantic import BaseModel

from ..constants import ASSISTANT, CONTENT, ROLE, SYSTEM, TOOL
from ..utils.messaging import (
    to_assistant_message,
    to_system_message,
    to_tool_message,
    to_user_message,
)

# Set up logging
logger = logging.getLogger(__name__)

TokenCounter = Callable[..., int]


class ChatHistory(BaseModel):
    """An ordered list of chat messages."""

    messages: List[Dict[str, Any]] = []

    def add_message(self, message: Dict[str, Any]) -> None:
        if ROLE not in message:
            raise ValueError("Message has no role")
        self.messages.append(message)

    def add_system_message(self, content: str) -> None:
        self.add_message(to_system_message(content))

    def add_user_message(self, content: str) -> None:
        self.add_message(to_user_message(content))

    def add_assistant_message(
        self, content: Optional[str], tool_calls: Optional[List[Dict[str, Any]]] = None
    ) -> None:
        self.add_message(to_assistant_message(content, tool_calls))

    def add_tool_message(
        self, content: str, tool_call_id: str, name: Optional[str] = None
    ) -> None:
        self.add_message(to_tool_message(content, tool_call_id, name))

    @property
    def last_message(self) -> Optional[Dict[str, Any]]:
        return self.messages[-1] if self.messages else None

    def to_messages(self) -> List[Dict[str, Any]]:
        return [dict(m) for m in self.messages]

    def serialize(self) -> str:
        return self.model_dump_json()

    @classmethod
    def restore(cls, data: str) -> ChatHistory:
        return cls.model_validate_json(data)

    def trim(
        self,
        max_tokens: int,
        model: str,
        token_counter: Optional[TokenCounter] = None,
    ) -> List[Dict[str, Any]]:
        """
        Drop the oldest messages until the history fits in ``max_tokens``.

        The leading system message is always kept. Messages are walked from
        newest to oldest; once one does not fit, it and everything older is
        dropped. An assistant message whose tool result is kept is kept too,
        so tool messages never lose the call they answer.

        Args:
            max_tokens: Token budget for the kept messages
            model: Model name used for token counting
            token_counter: Counting function, defaults to litellm's

        Returns:
            The dropped messages, oldest first
        """
        if token_counter is None:
            from litellm import token_counter  # type: ignore

        if not self.messages:
            return []

        messages = self.messages
        system_message = None
        current_token_count = 0
        if messages[0][ROLE] == SYSTEM:
            system_message = messages[0]
            messages = messages[1:]
            current_token_count = token_counter(model=model, messages=[system_message])

        kept: Deque[Dict[str, Any]] = deque()
        dropped: List[Dict[str, Any]] = []
        over_budget = False

        for msg in reversed(messages):
            msg_token_count = token_counter(model=model, text=str(msg.get(CONTENT) or ""))

            # A kept tool result needs the assistant message that called it
            if kept and kept[0][ROLE] == TOOL and msg[ROLE] in (ASSISTANT, TOOL):
                kept.appendleft(msg)
                current_token_count += msg_token_count
                continue

            if over_budget or current_token_count + msg_token_count > max_tokens:
                over_budget = True
                dropped.append(msg)
                continue

            kept.appendleft(msg)
            current_token_count += msg_token_count

        dropped.reverse()
        # An orphaned tool message at the front has lost its call
        while kept and kept[0][ROLE] == TOOL:
            dropped.append(kept.popleft())

        if dropped:
            logger.info(f"Trimmed {len(dropped)} messages from chat history")

        self.messages = ([system_message] if system_message else []) + list(kept)
        return dropped

    def __iter__(self) -> Iterator[Dict[str, Any]]:  # type: ignore[override]
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)
