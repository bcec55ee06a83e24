"""
Default plugin implementation for Semantic Kit.

This module registers the litellm-backed embedding and completion functions
and the built-in vector stores.
"""

from __future__ import annotations

from typing import List, Unpack

from litellm import ChatCompletionRequest, ModelResponse  # type: ignore
from litellm.types.utils import EmbeddingResponse

from ..connectors.azure_ai_search import AzureAISearchVectorStore
from ..connectors.redis import RedisVectorStore
from ..connectors.sql import SQLVectorStore
from ..data.in_memory import InMemoryVectorStore
from .registry import registry


class DefaultPlugin:
    """Default plugin for Semantic Kit."""

    @staticmethod
    def embedding_fn(model: str, text: str) -> List[float]:
        """
        Default embedding function using litellm.

        Args:
            model: The embedding model
            text: Text to embed

        Returns:
            The embedding vector
        """
        from litellm import embedding as litellm_embedding

        resp = litellm_embedding(model=model, input=[text])
        assert isinstance(resp, EmbeddingResponse)

        return resp.data[0]["embedding"]

    @staticmethod
    def completion_fn(
        **request: Unpack[ChatCompletionRequest],
    ) -> ModelResponse:
        """
        Default completion function using litellm.

        Args:
            **request: The chat completion request (model, messages, tools, ...)

        Returns:
            Completion response
        """
        from litellm import completion as litellm_completion

        resp = litellm_completion(**request)  # type: ignore

        assert isinstance(resp, ModelResponse), "Response is not of type ModelResponse"
        return resp


registry.register_embedding_fn(
    DefaultPlugin.embedding_fn,
    "default",
    aliases=["text-embedding-3-small", "text-embedding-3-large"],
)

registry.register_completion_fn(
    DefaultPlugin.completion_fn,
    "default",
    aliases=["gpt-4o-mini", "gpt-4o"],
)

registry.register_vector_store(InMemoryVectorStore, "in_memory", aliases=["volatile"])

registry.register_vector_store(SQLVectorStore, "sql", aliases=["sqlite", "default"])

registry.register_vector_store(RedisVectorStore, "redis")

registry.register_vector_store(AzureAISearchVectorStore, "azure_ai_search", aliases=["azure"])
