from __future__ import annotations

from functools import partial
from typing import List, Optional, Sequence

from toolz import pipe
from toolz.curried import map

from ..constants import DEFAULT_EMBEDDING_MODEL
from ..exceptions import ServiceNotFoundError
from ..plugins import registry
from ..protocols.base import EmbeddingFunction
from ..utils.embedding import truncate_if_context_exceeded


class TextEmbeddingService:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        embedding_fn: Optional[EmbeddingFunction] = None,
    ):
        """
        Initialize a new TextEmbeddingService instance.

        Args:
            model: The embedding model name
            embedding_fn: The function to call for generating embeddings; looked
                up in the plugin registry by model name, then ``default``
        """
        embedding_fn = (
            embedding_fn
            or registry.get_embedding_fn(model)
            or registry.get_embedding_fn("default")
        )
        if embedding_fn is None:
            raise ServiceNotFoundError(f"No embedding function registered for {model}")
        self.model = model
        self.embedding = truncate_if_context_exceeded(embedding_fn)

    def generate_embedding(self, text: str) -> List[float]:
        return self.embedding(self.model, text)

    def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        return pipe(texts, map(partial(self.embedding, self.model)), list)
