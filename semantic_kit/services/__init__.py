"""
AI services for Semantic Kit.
"""

from .chat_completion import ChatCompletionService
from .embedding import TextEmbeddingService

__all__ = ["ChatCompletionService", "TextEmbeddingService"]
