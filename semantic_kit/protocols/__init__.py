from .base import CompletionFunction, EmbeddingFunction, VectorStoreProtocol

__all__ = ["CompletionFunction", "EmbeddingFunction", "VectorStoreProtocol"]
