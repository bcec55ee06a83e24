"""
Vector math and exact (brute force) similarity search.

Used by the in-memory store and by SQL providers that cannot rank vectors
inside the database.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Sequence, Tuple

import numpy as np
from toolz import pipe
from toolz.curried import drop, take

from ..exceptions import VectorStoreError
from .definition import DistanceFunction, VectorField
from .options import VectorSearchOptions

# Set up logging
logger = logging.getLogger(__name__)


def _as_array(vector: Sequence[float]) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64)


def _check_lengths(x: Sequence[float], y: Sequence[float]) -> None:
    if len(x) != len(y):
        raise VectorStoreError(
            f"Vectors lengths must be equal, got {len(x)} and {len(y)}"
        )


def dot(x: Sequence[float], y: Sequence[float]) -> float:
    _check_lengths(x, y)
    return float(np.dot(_as_array(x), _as_array(y)))


def euclidean_length(x: Sequence[float]) -> float:
    return float(np.linalg.norm(_as_array(x)))


def cosine_similarity(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Raises:
        VectorStoreError: If the lengths differ or either vector has zero norm
    """
    _check_lengths(x, y)
    norm_x = euclidean_length(x)
    norm_y = euclidean_length(y)
    if norm_x == 0 or norm_y == 0:
        raise VectorStoreError("Vector norm must be non-zero")
    return float(np.dot(_as_array(x), _as_array(y)) / (norm_x * norm_y))


def cosine_distance(x: Sequence[float], y: Sequence[float]) -> float:
    return 1.0 - cosine_similarity(x, y)


def euclidean_distance(x: Sequence[float], y: Sequence[float]) -> float:
    _check_lengths(x, y)
    return float(np.linalg.norm(_as_array(x) - _as_array(y)))


def multiply(x: Sequence[float], multiplier: float) -> List[float]:
    if math.isnan(multiplier) or math.isinf(multiplier):
        raise VectorStoreError("Multiplier must be a finite number")
    return (_as_array(x) * multiplier).tolist()


def divide(x: Sequence[float], divisor: float) -> List[float]:
    if math.isnan(divisor) or divisor == 0:
        raise VectorStoreError("Divisor must be a non-zero number")
    return (_as_array(x) / divisor).tolist()


def normalize(x: Sequence[float]) -> List[float]:
    return divide(x, euclidean_length(x))


SCORERS: Dict[DistanceFunction, Callable[[Sequence[float], Sequence[float]], float]] = {
    DistanceFunction.COSINE_SIMILARITY: cosine_similarity,
    DistanceFunction.COSINE_DISTANCE: cosine_distance,
    DistanceFunction.DOT_PRODUCT: dot,
    DistanceFunction.EUCLIDEAN_DISTANCE: euclidean_distance,
}

# Higher scores rank first for these
_DESCENDING = {DistanceFunction.COSINE_SIMILARITY, DistanceFunction.DOT_PRODUCT}

_COSINE = {DistanceFunction.COSINE_SIMILARITY, DistanceFunction.COSINE_DISTANCE}


def resolve_distance_function(
    field: VectorField, default: DistanceFunction
) -> DistanceFunction:
    if field.distance_function == DistanceFunction.UNDEFINED:
        return default
    return field.distance_function


def exact_similarity_search(
    records: Sequence[Dict[str, Any]],
    vector: Sequence[float],
    vector_field: VectorField,
    distance_function: DistanceFunction,
    options: VectorSearchOptions,
) -> List[Tuple[Dict[str, Any], float]]:
    """
    Rank storage records against a query vector.

    Args:
        records: Storage models keyed by storage name
        vector: The query vector
        vector_field: The vector field to compare against
        distance_function: The resolved distance function
        options: Search options; only ``offset`` and ``limit`` are applied here

    Returns:
        (record, score) pairs, best first, after offset and limit
    """
    if distance_function not in SCORERS:
        raise VectorStoreError(f"Unsupported distance function: {distance_function}")
    scorer = SCORERS[distance_function]
    storage_name = vector_field.effective_storage_name

    scored = []
    for record in records:
        candidate = record.get(storage_name)
        if candidate is None:
            logger.debug(f"Skipping record without vector field {storage_name}")
            continue
        if distance_function in _COSINE and euclidean_length(candidate) == 0:
            logger.debug(f"Skipping record with a zero vector in {storage_name}")
            continue
        scored.append((record, scorer(candidate, vector)))

    return pipe(
        sorted(
            scored,
            key=lambda pair: pair[1],
            reverse=distance_function in _DESCENDING,
        ),
        drop(options.offset),
        take(options.limit),
        list,
    )
