"""
Text records for Semantic Kit.

The record shape used by the CLI and the HTTP server: a key, the text, a
list of tags that can be filtered on and the text's embedding.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel

from .constants import DEFAULT_EMBEDDING_DIMENSIONS
from .data.definition import (
    DataField,
    DistanceFunction,
    KeyField,
    RecordDefinition,
    VectorField,
    VectorStoreRecordData,
    VectorStoreRecordKey,
    VectorStoreRecordVector,
)

ID = "id"
TEXT = "text"
TAGS = "tags"
EMBEDDING = "embedding"


class TextRecord(BaseModel):
    id: Annotated[str, VectorStoreRecordKey()]
    text: Annotated[str, VectorStoreRecordData()]
    tags: Annotated[List[str], VectorStoreRecordData(is_filterable=True)] = []
    embedding: Annotated[
        Optional[List[float]],
        VectorStoreRecordVector(
            dimensions=DEFAULT_EMBEDDING_DIMENSIONS,
            distance_function=DistanceFunction.COSINE_SIMILARITY,
        ),
    ] = None


def text_record_definition(dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS) -> RecordDefinition:
    """Definition for dict text records with embeddings of ``dimensions`` floats."""
    return RecordDefinition.from_fields(
        [
            KeyField(name=ID),
            DataField(name=TEXT),
            DataField(name=TAGS, field_type=list, is_filterable=True),
            VectorField(
                name=EMBEDDING,
                dimensions=dimensions,
                distance_function=DistanceFunction.COSINE_SIMILARITY,
            ),
        ]
    )


def to_text_record(data: Dict[str, Any], embedding: List[float]) -> Dict[str, Any]:
    """
    Build a dict text record from ``{"id", "text", "tags"?}`` input.

    Raises:
        ValueError: If ``id`` or ``text`` is missing
    """
    if not data.get(ID) or not data.get(TEXT):
        raise ValueError(f"Record needs an id and a text: {data}")
    return {
        ID: str(data[ID]),
        TEXT: data[TEXT],
        TAGS: list(data.get(TAGS) or []),
        EMBEDDING: embedding,
    }
