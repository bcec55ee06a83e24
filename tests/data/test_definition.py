"""
Tests for record definitions, filters and options.
"""

import datetime
from typing import Annotated, Dict, List, Optional

import pytest
from pydantic import BaseModel, Field

from semantic_kit.data.definition import (
    DataField,
    DistanceFunction,
    IndexKind,
    KeyField,
    RecordDefinition,
    VectorField,
    VectorStoreRecordData,
    VectorStoreRecordKey,
    VectorStoreRecordVector,
    normalize_type,
    validate_supported_types,
)
from semantic_kit.data.filters import (
    AnyTagEqualToFilterClause,
    EqualToFilterClause,
    VectorSearchFilter,
)
from semantic_kit.data.options import VectorSearchOptions
from semantic_kit.exceptions import RecordDefinitionError
from semantic_kit.records import TextRecord


class Hotel(BaseModel):
    hotel_id: Annotated[str, VectorStoreRecordKey()]
    name: Annotated[str, VectorStoreRecordData(is_filterable=True)]
    rating: Annotated[float, VectorStoreRecordData(storage_name="hotel_rating")]
    opened: Annotated[Optional[datetime.datetime], VectorStoreRecordData()] = None
    description_embedding: Annotated[
        Optional[List[float]],
        VectorStoreRecordVector(
            dimensions=4,
            index_kind=IndexKind.HNSW,
            distance_function=DistanceFunction.COSINE_DISTANCE,
        ),
    ] = None
    notes: str = ""


class Aliased(BaseModel):
    key: Annotated[str, VectorStoreRecordKey()] = Field(alias="Key")
    body: Annotated[str, VectorStoreRecordData()] = Field(alias="Body")


def test_definition_from_record_class():
    """Test reading a definition from Annotated markers."""
    definition = RecordDefinition.from_record_class(Hotel)

    assert definition.key_field.name == "hotel_id"
    assert [f.name for f in definition.data_fields] == ["name", "rating", "opened"]
    assert [f.name for f in definition.vector_fields] == ["description_embedding"]
    assert not definition.contains_field("notes")

    assert definition.get_field("name").is_filterable
    assert definition.storage_name_of("rating") == "hotel_rating"
    assert normalize_type(definition.get_field("opened").field_type) is datetime.datetime

    vector = definition.get_vector_field()
    assert vector.dimensions == 4
    assert vector.index_kind == IndexKind.HNSW
    assert vector.distance_function == DistanceFunction.COSINE_DISTANCE


def test_definition_uses_alias_as_storage_name():
    definition = RecordDefinition.from_record_class(Aliased)

    assert definition.storage_name_of("key") == "Key"
    assert definition.storage_name_of("body") == "Body"


def test_definition_field_order():
    definition = RecordDefinition.from_record_class(TextRecord)

    assert [f.name for f in definition.all_fields] == ["id", "text", "tags", "embedding"]
    assert [f.name for f in definition.non_vector_fields] == ["id", "text", "tags"]


def test_definition_requires_exactly_one_key():
    """Test that definitions without a single key field are rejected."""
    with pytest.raises(RecordDefinitionError, match="exactly one key field"):
        RecordDefinition([DataField(name="text")])

    with pytest.raises(RecordDefinitionError, match="exactly one key field"):
        RecordDefinition([KeyField(name="a"), KeyField(name="b")])


def test_definition_rejects_duplicate_names():
    with pytest.raises(RecordDefinitionError, match="Duplicate field name"):
        RecordDefinition([KeyField(name="id"), DataField(name="id")])


def test_definition_rejects_non_model_record_class():
    with pytest.raises(RecordDefinitionError):
        RecordDefinition.from_record_class(dict)


def test_get_vector_field_errors():
    definition = RecordDefinition([KeyField(name="id"), DataField(name="text")])

    with pytest.raises(RecordDefinitionError, match="no vector fields"):
        definition.get_vector_field()

    with pytest.raises(RecordDefinitionError, match="not a vector field"):
        definition.get_vector_field("text")

    with pytest.raises(RecordDefinitionError, match="Field not found"):
        definition.get_field("missing")


def test_normalize_type():
    assert normalize_type(Optional[str]) is str
    assert normalize_type(List[float]) is list
    assert normalize_type(Annotated[Optional[int], "meta"]) is int
    assert normalize_type(Dict[str, str]) == Dict[str, str]


def test_validate_supported_types_lists_every_problem():
    fields = [
        DataField(name="a", field_type=dict),
        DataField(name="b", field_type=str),
        DataField(name="c", field_type=bytes),
    ]

    with pytest.raises(RecordDefinitionError) as exc_info:
        validate_supported_types(fields, {str, int})

    message = str(exc_info.value)
    assert "dict" in message
    assert "bytes" in message
    assert "Supported types are: int, str" in message


def test_distance_function_from_string():
    assert DistanceFunction.from_string("Cosine_Similarity") == DistanceFunction.COSINE_SIMILARITY
    assert DistanceFunction.from_string(None) == DistanceFunction.UNDEFINED
    assert IndexKind.from_string("") == IndexKind.UNDEFINED

    with pytest.raises(ValueError):
        DistanceFunction.from_string("manhattan")


def test_vector_field_defaults():
    field = VectorField(name="v")

    assert field.effective_storage_name == "v"
    assert field.distance_function == DistanceFunction.UNDEFINED
    assert field.index_kind == IndexKind.UNDEFINED


def test_filter_builder_chains_clauses():
    """Test that filter clauses are appended in order."""
    search_filter = (
        VectorSearchFilter.create_default()
        .equal_to("name", "Grand")
        .any_tag_equal_to("tags", "pool")
    )

    assert not search_filter.is_empty
    assert isinstance(search_filter.clauses[0], EqualToFilterClause)
    assert isinstance(search_filter.clauses[1], AnyTagEqualToFilterClause)
    assert search_filter.clauses[1].value == "pool"
    assert VectorSearchFilter.create_default().is_empty


def test_search_options_are_clamped():
    options = VectorSearchOptions(limit=0, offset=-5)

    assert options.limit == 1
    assert options.offset == 0
    assert VectorSearchOptions().limit == 3
