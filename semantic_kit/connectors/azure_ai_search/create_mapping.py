"""
Azure AI Search index definitions for record definitions.
"""

from __future__ import annotations

import datetime
from typing import List, Tuple

from azure.search.documents.indexes.models import (
    ExhaustiveKnnAlgorithmConfiguration,
    ExhaustiveKnnParameters,
    HnswAlgorithmConfiguration,
    HnswParameters,
    SearchableField,
    SearchField,
    SearchFieldDataType,
    SearchIndex,
    SimpleField,
    VectorSearch,
    VectorSearchAlgorithmMetric,
    VectorSearchProfile,
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

_DATA_TYPES = {
    str: SearchFieldDataType.String,
    int: SearchFieldDataType.Int64,
    float: SearchFieldDataType.Double,
    bool: SearchFieldDataType.Boolean,
    datetime.datetime: SearchFieldDataType.DateTimeOffset,
    list: SearchFieldDataType.Collection(SearchFieldDataType.String),
}

_METRICS = {
    DistanceFunction.COSINE_SIMILARITY: VectorSearchAlgorithmMetric.COSINE,
    DistanceFunction.COSINE_DISTANCE: VectorSearchAlgorithmMetric.COSINE,
    DistanceFunction.DOT_PRODUCT: VectorSearchAlgorithmMetric.DOT_PRODUCT,
    DistanceFunction.EUCLIDEAN_DISTANCE: VectorSearchAlgorithmMetric.EUCLIDEAN,
    DistanceFunction.UNDEFINED: VectorSearchAlgorithmMetric.COSINE,
}

SUPPORTED_DATA_TYPES = set(_DATA_TYPES)


def data_field_schema(field: DataField) -> SearchField:
    name = field.effective_storage_name
    field_type = normalize_type(field.field_type)
    if field_type is str:
        return SearchableField(name=name, filterable=field.is_filterable)
    if field_type is list:
        return SearchableField(name=name, collection=True, filterable=field.is_filterable)
    return SimpleField(
        name=name, type=_DATA_TYPES[field_type], filterable=field.is_filterable
    )


def vector_search_config(
    field: RecordVectorField,
) -> Tuple[SearchField, object, VectorSearchProfile]:
    if field.dimensions is None or field.dimensions < 1:
        raise RecordDefinitionError(
            f"Vector field {field.name} must have dimensions of at least 1"
        )
    name = field.effective_storage_name
    algorithm_name = f"{name}AlgoConfig"
    metric = _METRICS[field.distance_function]
    if field.index_kind == IndexKind.FLAT:
        algorithm: object = ExhaustiveKnnAlgorithmConfiguration(
            name=algorithm_name, parameters=ExhaustiveKnnParameters(metric=metric)
        )
    else:
        algorithm = HnswAlgorithmConfiguration(
            name=algorithm_name, parameters=HnswParameters(metric=metric)
        )
    profile = VectorSearchProfile(
        name=f"{name}Profile", algorithm_configuration_name=algorithm_name
    )
    search_field = SearchField(
        name=name,
        type=SearchFieldDataType.Collection(SearchFieldDataType.Single),
        searchable=True,
        vector_search_dimensions=field.dimensions,
        vector_search_profile_name=profile.name,
    )
    return search_field, algorithm, profile


def build_index(index_name: str, definition: RecordDefinition) -> SearchIndex:
    """
    Build the index definition for a record definition.

    Args:
        index_name: The index (collection) name
        definition: The record definition

    Returns:
        The SearchIndex to create
    """
    fields: List[SearchField] = [
        SimpleField(
            name=definition.key_field.effective_storage_name,
            type=SearchFieldDataType.String,
            key=True,
            filterable=True,
        )
    ]
    fields.extend(data_field_schema(f) for f in definition.data_fields)

    algorithms = []
    profiles = []
    for vector_field in definition.vector_fields:
        search_field, algorithm, profile = vector_search_config(vector_field)
        fields.append(search_field)
        algorithms.append(algorithm)
        profiles.append(profile)

    return SearchIndex(
        name=index_name,
        fields=fields,
        vector_search=VectorSearch(algorithms=algorithms, profiles=profiles)
        if algorithms
        else None,
    )
