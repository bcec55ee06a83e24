"""
Storage for Semantic Kit state outside vector stores.
"""

from .chat_store import ChatMessageRecord, ChatSession, SQLChatHistoryStore

__all__ = ["ChatMessageRecord", "ChatSession", "SQLChatHistoryStore"]
