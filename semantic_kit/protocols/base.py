"""
Protocol definitions for Semantic Kit.

This module contains the protocols that pluggable components conform to:
embedding functions, completion functions and vector stores.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Type, Unpack, runtime_checkable

from litellm import ChatCompletionRequest, ModelResponse  # type: ignore


@runtime_checkable
class EmbeddingFunction(Protocol):
    def __call__(self, model: str, text: str) -> List[float]:
        ...


@runtime_checkable
class CompletionFunction(Protocol):
    # Accepts the litellm / OpenAI chat completion request, including
    # tools and tool_choice for function calling

    def __call__(
        self,
        **request: Unpack[ChatCompletionRequest],
    ) -> ModelResponse:
        ...


@runtime_checkable
class VectorStoreProtocol(Protocol):
    @classmethod
    def from_settings(cls, settings: Any) -> Any:
        ...

    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[Any] = None,
        **kwargs: Any,
    ) -> Any:
        ...

    def list_collection_names(self) -> List[str]:
        ...
