"""
RediSearch index schemas for record definitions.
"""

from __future__ import annotations

import datetime
import logging
from enum import Enum
from typing import List, Optional

from redis.commands.search.field import (
    Field,
    NumericField,
    TagField,
    TextField,
    VectorField,
)

from ...data.definition import (
    DataField,
    DistanceFunction,
    IndexKind,
    RecordDefinition,
    normalize_type,
)
from ...data.definition import VectorField as RecordVectorField
from ...exceptions import RecordDefinitionError

# Set up logging
logger = logging.getLogger(__name__)


class RedisStorageType(str, Enum):
    HASH_SET = "hash"
    JSON = "json"


_METRICS = {
    DistanceFunction.COSINE_SIMILARITY: "COSINE",
    DistanceFunction.COSINE_DISTANCE: "COSINE",
    DistanceFunction.DOT_PRODUCT: "IP",
    DistanceFunction.EUCLIDEAN_DISTANCE: "L2",
    DistanceFunction.UNDEFINED: "COSINE",
}


def field_path(storage_name: str, storage_type: RedisStorageType) -> str:
    return f"$.{storage_name}" if storage_type == RedisStorageType.JSON else storage_name


def data_field_schema(
    field: DataField, storage_type: RedisStorageType
) -> Optional[Field]:
    """
    Index field for a filterable data field, or None when it is not indexed.
    """
    if not field.is_filterable:
        return None
    name = field.effective_storage_name
    path = field_path(name, storage_type)
    field_type = normalize_type(field.field_type)
    if field_type is bool:
        return TagField(path, as_name=name)
    if field_type in (int, float):
        return NumericField(path, as_name=name)
    if field_type in (str, datetime.datetime):
        return TextField(path, as_name=name)
    if field_type is list:
        if storage_type == RedisStorageType.JSON:
            return TagField(f"{path}[*]", as_name=name)
        return TagField(path, as_name=name)
    logger.warning(f"Field {field.name} of type {field_type} cannot be indexed")
    return None


def vector_field_schema(
    field: RecordVectorField, storage_type: RedisStorageType
) -> VectorField:
    if field.dimensions is None or field.dimensions < 1:
        raise RecordDefinitionError(
            f"Vector field {field.name} must have dimensions of at least 1"
        )
    name = field.effective_storage_name
    algorithm = "FLAT" if field.index_kind == IndexKind.FLAT else "HNSW"
    return VectorField(
        field_path(name, storage_type),
        algorithm,
        {
            "TYPE": "FLOAT32",
            "DIM": field.dimensions,
            "DISTANCE_METRIC": _METRICS[field.distance_function],
        },
        as_name=name,
    )


def build_schema(
    definition: RecordDefinition, storage_type: RedisStorageType
) -> List[Field]:
    """
    Build the index schema for a record definition.

    Args:
        definition: The record definition
        storage_type: Hash set or JSON documents

    Returns:
        RediSearch fields for filterable data fields and all vector fields
    """
    schema: List[Field] = []
    for field in definition.data_fields:
        indexed = data_field_schema(field, storage_type)
        if indexed is not None:
            schema.append(indexed)
    for vector_field in definition.vector_fields:
        schema.append(vector_field_schema(vector_field, storage_type))
    return schema
