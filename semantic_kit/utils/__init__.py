"""
Utility functions for Semantic Kit.

This module provides utility functions for embeddings, completion responses
and chat messages.
"""

from .completion import (
    extract_content_from_response,
    extract_message,
    extract_tool_calls,
    parse_tool_arguments,
)
from .embedding import (
    bytes_to_embedding,
    embedding_to_bytes,
    truncate_if_context_exceeded,
)
from .messaging import (
    to_assistant_message,
    to_system_message,
    to_tool_message,
    to_user_message,
)

__all__ = [
    # Embedding utilities
    "bytes_to_embedding",
    "embedding_to_bytes",
    "truncate_if_context_exceeded",
    # Completion utilities
    "extract_content_from_response",
    "extract_message",
    "extract_tool_calls",
    "parse_tool_arguments",
    # Message builders
    "to_assistant_message",
    "to_system_message",
    "to_tool_message",
    "to_user_message",
]
