"""
Tests for the SQL vector store on SQLite.
"""

import datetime
from typing import Annotated, List, Optional

import pytest
from pydantic import BaseModel

from semantic_kit.connectors.sql import (
    SQLiteVectorStoreQueryProvider,
    SQLVectorStore,
    SQLVectorStoreQueryProvider,
    build_where_clause,
    validate_sql_identifier,
)
from semantic_kit.data.definition import (
    DataField,
    DistanceFunction,
    KeyField,
    RecordDefinition,
    VectorField,
    VectorStoreRecordData,
    VectorStoreRecordKey,
    VectorStoreRecordVector,
)
from semantic_kit.data.filters import FilterClause, VectorSearchFilter
from semantic_kit.data.options import GetRecordOptions, VectorSearchOptions
from semantic_kit.exceptions import (
    CollectionNotFoundError,
    FilterError,
    RecordDefinitionError,
)


class Event(BaseModel):
    id: Annotated[str, VectorStoreRecordKey()]
    title: Annotated[str, VectorStoreRecordData(is_filterable=True)]
    attendees: Annotated[int, VectorStoreRecordData()] = 0
    public: Annotated[bool, VectorStoreRecordData()] = True
    starts_at: Annotated[Optional[datetime.datetime], VectorStoreRecordData()] = None
    tags: Annotated[List[str], VectorStoreRecordData(is_filterable=True)] = []
    vector: Annotated[
        Optional[List[float]],
        VectorStoreRecordVector(
            dimensions=2, distance_function=DistanceFunction.COSINE_SIMILARITY
        ),
    ] = None


@pytest.fixture
def store(sqlite_engine) -> SQLVectorStore:
    return SQLVectorStore.from_engine(sqlite_engine)


@pytest.fixture
def events(store):
    collection = store.get_collection("events", record_type=Event)
    collection.create_collection_if_not_exists()
    collection.upsert_batch(
        [
            Event(
                id="standup",
                title="Standup",
                attendees=8,
                starts_at=datetime.datetime(2024, 5, 1, 9, 30),
                tags=["daily", "team"],
                vector=[1.0, 0.0],
            ),
            Event(
                id="retro",
                title="Retro",
                attendees=6,
                public=False,
                tags=["team"],
                vector=[1.0, 1.0],
            ),
            Event(id="party", title="Party_100%", tags=["fun"], vector=[0.0, 1.0]),
        ]
    )
    return collection


def test_from_engine_picks_dialect_provider(store):
    assert isinstance(store.query_provider, SQLiteVectorStoreQueryProvider)


def test_collection_lifecycle(store):
    """Test that collections are tracked in the catalog table."""
    collection = store.get_collection("events", record_type=Event)

    assert not collection.collection_exists()
    assert store.list_collection_names() == []

    collection.create_collection()
    collection.create_collection_if_not_exists()
    assert collection.collection_exists()
    assert store.list_collection_names() == ["events"]

    collection.delete_collection()
    assert not collection.collection_exists()
    assert store.list_collection_names() == []


def test_operations_on_missing_collection(store):
    collection = store.get_collection("events", record_type=Event)

    with pytest.raises(CollectionNotFoundError):
        collection.get("standup")


def test_invalid_collection_name(store):
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        store.get_collection("bad name; drop", record_type=Event)


def test_get_round_trips_types(events):
    """Test that values come back with their Python types."""
    standup = events.get("standup")

    assert standup.title == "Standup"
    assert standup.attendees == 8
    assert standup.public is True
    assert standup.starts_at == datetime.datetime(2024, 5, 1, 9, 30)
    assert standup.tags == ["daily", "team"]
    assert standup.vector is None

    retro = events.get("retro", GetRecordOptions(include_vectors=True))
    assert retro.public is False
    assert retro.vector == [1.0, 1.0]


def test_get_batch_keeps_request_order(events):
    records = events.get_batch(["party", "missing", "standup"])

    assert [r.id for r in records] == ["party", "standup"]


def test_upsert_replaces(events):
    events.upsert(Event(id="standup", title="Standup v2", vector=[1.0, 0.0]))

    assert events.get("standup").title == "Standup v2"
    assert len(events.get_batch(["standup", "retro", "party"])) == 3


def test_delete(events):
    events.delete_batch(["standup", "party"])

    assert [r.id for r in events.get_batch(["standup", "retro", "party"])] == ["retro"]


def test_search_ranks_in_python(events):
    results = events.search([1.0, 0.0], VectorSearchOptions(limit=2))

    assert [r.record.id for r in results] == ["standup", "retro"]
    assert results.results[0].score == pytest.approx(1.0)
    assert results.results[0].record.vector is None


def test_search_equal_to_filter(events):
    search_filter = VectorSearchFilter.create_default().equal_to("title", "Retro")
    results = events.search([1.0, 0.0], VectorSearchOptions(filter=search_filter))

    assert [r.record.id for r in results] == ["retro"]


def test_search_any_tag_filter(events):
    """Test tag filtering against JSON list columns."""
    search_filter = VectorSearchFilter.create_default().any_tag_equal_to("tags", "team")
    results = events.search(
        [0.0, 1.0],
        VectorSearchOptions(filter=search_filter, include_total_count=True),
    )

    assert [r.record.id for r in results] == ["retro", "standup"]
    assert results.total_count == 2


def test_search_any_tag_filter_requires_whole_tag(events):
    search_filter = VectorSearchFilter.create_default().any_tag_equal_to("tags", "tea")
    results = events.search([0.0, 1.0], VectorSearchOptions(filter=search_filter))

    assert len(results) == 0


def test_generic_provider_any_tag_filter(sqlite_engine):
    """Test the LIKE based tag filter and the delete-and-insert upsert."""
    store = SQLVectorStore(SQLVectorStoreQueryProvider(sqlite_engine))
    collection = store.get_collection("events", record_type=Event)
    collection.create_collection()
    collection.upsert_batch(
        [
            Event(id="a", title="A", tags=["100%", "x"], vector=[1.0, 0.0]),
            Event(id="b", title="B", tags=["100"], vector=[0.0, 1.0]),
        ]
    )
    collection.upsert(Event(id="b", title="B2", tags=["100"], vector=[0.0, 1.0]))

    search_filter = VectorSearchFilter.create_default().any_tag_equal_to("tags", "100%")
    results = collection.search([1.0, 0.0], VectorSearchOptions(filter=search_filter))

    assert [r.record.id for r in results] == ["a"]
    assert collection.get("b").title == "B2"


def test_unsupported_field_type(store):
    definition = RecordDefinition(
        [KeyField(name="id"), DataField(name="blob", field_type=bytes)]
    )

    with pytest.raises(RecordDefinitionError, match="bytes"):
        store.get_collection("blobs", record_definition=definition)


def test_build_where_clause(text_definition):
    search_filter = (
        VectorSearchFilter.create_default()
        .equal_to("text", "hello")
        .equal_to("id", None)
        .any_tag_equal_to("tags", "x")
    )

    where, params = build_where_clause(
        search_filter,
        text_definition,
        any_tag_condition=lambda column, param, tag: (f"has_tag({column}, :{param})", tag),
    )

    assert where == "text = :p0 AND id IS NULL AND has_tag(tags, :p2)"
    assert params == {"p0": "hello", "p2": "x"}


def test_build_where_clause_errors(text_definition):
    """Test the filters that cannot be translated to SQL."""
    tag_filter = VectorSearchFilter.create_default().any_tag_equal_to("tags", "x")
    with pytest.raises(FilterError, match="not supported"):
        build_where_clause(tag_filter, text_definition)

    value_filter = VectorSearchFilter.create_default().equal_to("text", ["a", "b"])
    with pytest.raises(FilterError, match="Unsupported filter value type"):
        build_where_clause(value_filter, text_definition)

    custom_filter = VectorSearchFilter(clauses=[FilterClause(field_name="text", value="a")])
    with pytest.raises(FilterError, match="Unsupported filter clause type"):
        build_where_clause(custom_filter, text_definition)

    assert build_where_clause(None, text_definition) == ("", {})


def test_validate_sql_identifier():
    assert validate_sql_identifier("skcollection_notes") == "skcollection_notes"

    for bad in ("", "1abc", "a-b", "a b", "a;DROP"):
        with pytest.raises(ValueError):
            validate_sql_identifier(bad)


def test_vector_field_stored_as_json(store, text_definition):
    collection = store.get_collection("texts", record_definition=text_definition)
    collection.create_collection()
    collection.upsert({"id": "1", "text": "hello", "tags": [], "embedding": None})

    assert collection.get("1", GetRecordOptions(include_vectors=True))["embedding"] is None
    assert len(collection.search([1.0, 0.0, 0.0, 0.0])) == 0


def test_vector_field_custom_storage_name(store):
    definition = RecordDefinition(
        [
            KeyField(name="id", storage_name="record_id"),
            VectorField(name="v", storage_name="record_vector", dimensions=2),
        ]
    )
    collection = store.get_collection("vectors", record_definition=definition)
    collection.create_collection()
    collection.upsert({"id": "1", "v": [3.0, 4.0]})

    assert collection.get("1", GetRecordOptions(include_vectors=True)) == {
        "id": "1",
        "v": [3.0, 4.0],
    }
    # Euclidean distance is the SQL default
    results = collection.search([3.0, 4.0])
    assert results.results[0].score == pytest.approx(0.0)
