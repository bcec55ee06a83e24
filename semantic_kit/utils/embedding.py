"""
Utility functions for embedding operations.

This module provides utility functions for working with embeddings,
including retry on oversized input and conversion to binary blobs.
"""

from __future__ import annotations

import functools
import logging
from typing import List, Sequence

import numpy as np
from litellm.exceptions import ContextWindowExceededError

from ..protocols.base import EmbeddingFunction

# Set up logging
logger = logging.getLogger(__name__)


def truncate_if_context_exceeded(embedding_fn: EmbeddingFunction) -> EmbeddingFunction:
    """
    Decorator for embedding functions that retries with half the text when the
    model's context window is exceeded.

    Args:
        embedding_fn: The embedding function to wrap

    Returns:
        Wrapped function with error handling
    """

    @functools.wraps(embedding_fn)
    def wrapper(model: str, text: str) -> List[float]:
        if not isinstance(text, str):
            raise TypeError("Text must be a string")

        try:
            return embedding_fn(model, text)
        except ContextWindowExceededError:
            if len(text) < 2:
                raise
            logger.info("Context window exceeded, retrying with half the text")
            return wrapper(model, text[int(len(text) / 2) :])

    return wrapper


def embedding_to_bytes(embedding: Sequence[float]) -> bytes:
    """
    Convert a list of floats to little-endian float32 bytes.

    Args:
        embedding: List of float values representing an embedding

    Returns:
        Bytes representation of the embedding
    """
    return np.asarray(embedding, dtype="<f4").tobytes()


def bytes_to_embedding(embedding_bytes: bytes) -> List[float]:
    """
    Convert bytes representation back to a list of floats.

    Args:
        embedding_bytes: Bytes representation of an embedding

    Returns:
        List of float values representing the embedding
    """
    return np.frombuffer(embedding_bytes, dtype="<f4").tolist()
