"""
Tests for the record mapper and the in-memory vector store.
"""

from typing import Annotated, List, Optional

import pytest
from pydantic import BaseModel, Field

from semantic_kit.data.definition import (
    DistanceFunction,
    RecordDefinition,
    VectorStoreRecordData,
    VectorStoreRecordKey,
    VectorStoreRecordVector,
)
from semantic_kit.data.filters import VectorSearchFilter
from semantic_kit.data.in_memory import InMemoryVectorStore
from semantic_kit.data.mapper import RecordMapper
from semantic_kit.data.options import GetRecordOptions, VectorSearchOptions
from semantic_kit.exceptions import (
    CollectionNotFoundError,
    RecordDefinitionError,
    VectorStoreError,
)


class Note(BaseModel):
    key: Annotated[str, VectorStoreRecordKey()] = Field(alias="Key")
    text: Annotated[str, VectorStoreRecordData()]
    tags: Annotated[List[str], VectorStoreRecordData(is_filterable=True)] = []
    vector: Annotated[
        Optional[List[float]],
        VectorStoreRecordVector(
            dimensions=2, distance_function=DistanceFunction.COSINE_SIMILARITY
        ),
    ] = None


def make_note(key: str, text: str, vector, tags=None) -> Note:
    return Note(Key=key, text=text, vector=vector, tags=tags or [])


@pytest.fixture
def notes():
    store = InMemoryVectorStore()
    collection = store.get_collection("notes", record_type=Note)
    collection.create_collection()
    collection.upsert_batch(
        [
            make_note("a", "east", [1.0, 0.0], ["compass"]),
            make_note("b", "north east", [1.0, 1.0], ["compass", "diagonal"]),
            make_note("c", "north", [0.0, 1.0]),
        ]
    )
    return collection


def test_mapper_round_trip_uses_storage_names():
    """Test that storage models are keyed by storage name."""
    mapper = RecordMapper(Note, RecordDefinition.from_record_class(Note))
    note = make_note("a", "east", [1.0, 0.0])

    storage_model = mapper.to_storage_model(note)
    assert storage_model == {"Key": "a", "text": "east", "tags": [], "vector": [1.0, 0.0]}

    without_vectors = mapper.to_record(storage_model)
    assert without_vectors.key == "a"
    assert without_vectors.vector is None

    with_vectors = mapper.to_record(storage_model, include_vectors=True)
    assert with_vectors.vector == [1.0, 0.0]


def test_mapper_custom_functions(text_definition):
    mapper = RecordMapper(
        None,
        text_definition,
        to_storage_fn=lambda record: {"id": record["id"].upper()},
        from_storage_fn=lambda storage, include_vectors: {"id": storage["id"].lower()},
    )

    assert mapper.to_storage_model({"id": "abc"}) == {"id": "ABC"}
    assert mapper.to_record({"id": "ABC"}) == {"id": "abc"}


def test_mapper_errors(text_definition):
    mapper = RecordMapper(None, text_definition)

    with pytest.raises(VectorStoreError, match="missing its key field"):
        mapper.key_of({"text": "no key"})

    with pytest.raises(VectorStoreError, match="pydantic models or dicts"):
        mapper.to_storage_model(["not", "a", "record"])


def test_collection_requires_type_or_definition():
    with pytest.raises(RecordDefinitionError):
        InMemoryVectorStore().get_collection("notes")


def test_collection_lifecycle():
    """Test creating, listing and deleting collections."""
    store = InMemoryVectorStore()
    collection = store.get_collection("notes", record_type=Note)

    assert not collection.collection_exists()
    collection.create_collection_if_not_exists()
    assert collection.collection_exists()
    assert store.list_collection_names() == ["notes"]

    # A second handle sees the same records
    collection.upsert(make_note("a", "east", [1.0, 0.0]))
    other = store.get_collection("notes", record_type=Note)
    assert other.get("a").text == "east"

    collection.delete_collection()
    assert store.list_collection_names() == []
    with pytest.raises(CollectionNotFoundError):
        collection.get("a")


def test_get_batch_omits_missing_keys(notes):
    records = notes.get_batch(["c", "missing", "a"])

    assert [r.key for r in records] == ["c", "a"]
    assert notes.get("missing") is None


def test_get_include_vectors(notes):
    assert notes.get("a").vector is None
    assert notes.get("a", GetRecordOptions(include_vectors=True)).vector == [1.0, 0.0]


def test_upsert_replaces_and_copies(notes):
    """Test that upserts replace records and do not alias caller data."""
    note = make_note("a", "west", [-1.0, 0.0])
    notes.upsert(note)
    note.text = "changed after upsert"

    assert notes.get("a").text == "west"


def test_delete(notes):
    notes.delete_batch(["a", "missing"])

    assert notes.get("a") is None
    assert notes.get("b") is not None


def test_search_ranks_by_similarity(notes):
    results = notes.search([1.0, 0.0], VectorSearchOptions(limit=2))

    assert [r.record.key for r in results] == ["a", "b"]
    assert results.results[0].score == pytest.approx(1.0)
    assert results.total_count is None


def test_search_with_filters_and_total_count(notes):
    search_filter = VectorSearchFilter.create_default().any_tag_equal_to("tags", "compass")
    results = notes.search(
        [0.0, 1.0],
        VectorSearchOptions(filter=search_filter, limit=1, include_total_count=True),
    )

    assert [r.record.key for r in results] == ["b"]
    assert results.total_count == 2

    search_filter = VectorSearchFilter.create_default().equal_to("text", "north")
    results = notes.search([1.0, 0.0], VectorSearchOptions(filter=search_filter))
    assert [r.record.key for r in results] == ["c"]


def test_search_include_vectors(notes):
    results = notes.search(
        [1.0, 0.0], VectorSearchOptions(limit=1, include_vectors=True)
    )

    assert results.results[0].record.vector == [1.0, 0.0]


def test_dict_records(text_definition):
    collection = InMemoryVectorStore().get_collection(
        "texts", record_definition=text_definition
    )
    collection.create_collection()
    collection.upsert(
        {"id": "1", "text": "hello", "tags": ["x"], "embedding": [1.0, 0.0, 0.0, 0.0]}
    )

    assert collection.get("1") == {"id": "1", "text": "hello", "tags": ["x"]}
