"""
Tests for text search over a record collection.
"""

import pytest

from semantic_kit.data.filters import VectorSearchFilter
from semantic_kit.data.in_memory import InMemoryVectorStore
from semantic_kit.data.text_search import (
    TextSearchOptions,
    TextSearchResult,
    VectorStoreTextSearch,
)
from semantic_kit.kernel import Kernel

NOTES = [
    ("1", "The cat sat on the mat", ["pets"]),
    ("2", "Dogs love long walks", ["pets"]),
    ("3", "Paris is the capital of France", ["travel"]),
]


@pytest.fixture
def collection(text_definition, embedding_service):
    collection = InMemoryVectorStore().get_collection(
        "notes", record_definition=text_definition
    )
    collection.create_collection()
    collection.upsert_batch(
        [
            {
                "id": key,
                "text": text,
                "tags": tags,
                "embedding": embedding_service.generate_embedding(text),
            }
            for key, text, tags in NOTES
        ]
    )
    return collection


@pytest.fixture
def text_search(collection, embedding_service):
    return VectorStoreTextSearch(collection, embedding_service)


def test_search_returns_strings(text_search):
    results = text_search.search("Dogs love long walks", TextSearchOptions(top=1))

    assert results.results == ["Dogs love long walks"]
    assert len(results) == 1


def test_search_defaults_to_three_results(text_search):
    assert len(text_search.search("anything")) == 3


def test_get_text_search_results(text_search):
    results = text_search.get_text_search_results(
        "The cat sat on the mat", TextSearchOptions(top=1)
    )

    assert list(results) == [
        TextSearchResult(name="1", value="The cat sat on the mat", link=None)
    ]


def test_get_search_results(text_search):
    """Test that raw records come back, filtered and counted."""
    options = TextSearchOptions(
        filter=VectorSearchFilter.create_default().any_tag_equal_to("tags", "pets"),
        include_total_count=True,
        top=5,
    )

    results = text_search.get_search_results("Dogs love long walks", options)

    assert [r["id"] for r in results][0] == "2"
    assert sorted(r["id"] for r in results) == ["1", "2"]
    assert results.total_count == 2


def test_custom_mappers(collection, embedding_service):
    text_search = VectorStoreTextSearch(
        collection,
        embedding_service,
        string_mapper=lambda record: record["text"].upper(),
        result_mapper=lambda record: TextSearchResult(
            value=record["text"], link=f"https://notes.example/{record['id']}"
        ),
    )

    assert text_search.search("Paris is the capital of France", TextSearchOptions(top=1)).results == [
        "PARIS IS THE CAPITAL OF FRANCE"
    ]
    result = text_search.get_text_search_results(
        "Paris is the capital of France", TextSearchOptions(top=1)
    ).results[0]
    assert result.link == "https://notes.example/3"


def test_create_plugin(text_search):
    """Test the search function exposed to kernels."""
    plugin = text_search.create_plugin("memory")
    search = plugin["search"]

    assert search.fully_qualified_name == "memory-search"
    assert search.description == "Search notes for text relevant to a query"
    query, count = search.metadata.parameters
    assert query.is_required and query.description == "What to search for"
    assert not count.is_required and count.default_value == 3

    kernel = Kernel()
    kernel.add_plugin(plugin)
    result = kernel.invoke(
        plugin_name="memory", function_name="search", query="Dogs love long walks", count="2"
    )

    lines = str(result).split("\n")
    assert len(lines) == 2
    assert lines[0] == "Dogs love long walks"


def test_create_plugin_description(text_search):
    plugin = text_search.create_plugin("notes", description="Look up notes")

    assert plugin["search"].description == "Look up notes"
