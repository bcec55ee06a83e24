"""
Tests for vector math and exact similarity search.
"""

import math

import pytest

from semantic_kit.data.definition import DistanceFunction, VectorField
from semantic_kit.data.options import VectorSearchOptions
from semantic_kit.data.vector_ops import (
    cosine_distance,
    cosine_similarity,
    divide,
    dot,
    euclidean_distance,
    euclidean_length,
    exact_similarity_search,
    multiply,
    normalize,
    resolve_distance_function,
)
from semantic_kit.exceptions import VectorStoreError


def test_basic_vector_math():
    assert dot([1, 2, 3], [4, 5, 6]) == 32
    assert euclidean_length([3, 4]) == 5
    assert euclidean_distance([0, 0], [3, 4]) == 5
    assert multiply([1, 2], 2) == [2, 4]
    assert divide([2, 4], 2) == [1, 2]
    assert normalize([3, 4]) == pytest.approx([0.6, 0.8])


def test_cosine():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)
    assert cosine_distance([1, 0], [0, 1]) == pytest.approx(1.0)


def test_vector_math_errors():
    """Test the error cases of the vector helpers."""
    with pytest.raises(VectorStoreError, match="lengths must be equal"):
        dot([1, 2], [1, 2, 3])

    with pytest.raises(VectorStoreError, match="non-zero"):
        cosine_similarity([0, 0], [1, 1])

    with pytest.raises(VectorStoreError):
        divide([1, 2], 0)

    with pytest.raises(VectorStoreError):
        divide([1, 2], math.nan)

    with pytest.raises(VectorStoreError):
        multiply([1, 2], math.inf)


def test_resolve_distance_function():
    assert (
        resolve_distance_function(VectorField(name="v"), DistanceFunction.DOT_PRODUCT)
        == DistanceFunction.DOT_PRODUCT
    )
    assert (
        resolve_distance_function(
            VectorField(name="v", distance_function=DistanceFunction.EUCLIDEAN_DISTANCE),
            DistanceFunction.DOT_PRODUCT,
        )
        == DistanceFunction.EUCLIDEAN_DISTANCE
    )


RECORDS = [
    {"id": "right", "v": [1.0, 0.0]},
    {"id": "diagonal", "v": [1.0, 1.0]},
    {"id": "up", "v": [0.0, 1.0]},
    {"id": "empty", "v": None},
]


def _ids(ranked):
    return [record["id"] for record, _ in ranked]


def test_exact_search_similarity_ranks_descending():
    ranked = exact_similarity_search(
        RECORDS,
        [1.0, 0.0],
        VectorField(name="v"),
        DistanceFunction.COSINE_SIMILARITY,
        VectorSearchOptions(limit=10),
    )

    # Records without a vector are skipped
    assert _ids(ranked) == ["right", "diagonal", "up"]
    assert ranked[0][1] == pytest.approx(1.0)


def test_exact_search_distance_ranks_ascending():
    ranked = exact_similarity_search(
        RECORDS,
        [0.0, 1.0],
        VectorField(name="v"),
        DistanceFunction.EUCLIDEAN_DISTANCE,
        VectorSearchOptions(limit=10),
    )

    assert _ids(ranked) == ["up", "diagonal", "right"]
    assert ranked[0][1] == pytest.approx(0.0)


def test_exact_search_paging():
    ranked = exact_similarity_search(
        RECORDS,
        [1.0, 0.0],
        VectorField(name="v"),
        DistanceFunction.COSINE_SIMILARITY,
        VectorSearchOptions(limit=1, offset=1),
    )

    assert _ids(ranked) == ["diagonal"]


def test_exact_search_skips_zero_vectors_for_cosine():
    records = RECORDS + [{"id": "zero", "v": [0.0, 0.0]}]

    ranked = exact_similarity_search(
        records,
        [1.0, 0.0],
        VectorField(name="v"),
        DistanceFunction.COSINE_DISTANCE,
        VectorSearchOptions(limit=10),
    )

    assert _ids(ranked) == ["right", "diagonal", "up"]

    ranked = exact_similarity_search(
        records,
        [1.0, 0.0],
        VectorField(name="v"),
        DistanceFunction.EUCLIDEAN_DISTANCE,
        VectorSearchOptions(limit=10),
    )

    assert "zero" in _ids(ranked)


def test_exact_search_unsupported_distance():
    with pytest.raises(VectorStoreError, match="Unsupported distance function"):
        exact_similarity_search(
            RECORDS,
            [1.0, 0.0],
            VectorField(name="v"),
            DistanceFunction.UNDEFINED,
            VectorSearchOptions(),
        )
