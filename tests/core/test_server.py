"""
Tests for the HTTP API server.
"""

import pytest
from fastapi.testclient import TestClient

from semantic_kit import SemanticKit
from semantic_kit.config import KitSettings
from semantic_kit.exceptions import FilterError
from semantic_kit.services.chat_completion import ChatCompletionService
from semantic_kit.server import create_app

NOTES = [
    {"id": "1", "text": "The cat sat on the mat", "tags": ["pets"]},
    {"id": "2", "text": "Paris is the capital of France", "tags": ["travel"]},
]


@pytest.fixture
def client(kit):
    """Create a test client for the API server."""
    return TestClient(create_app(kit))


@pytest.fixture
def notes(client):
    response = client.post("/v1/collections/notes/records", json={"records": NOTES})
    assert response.status_code == 200
    return client


def test_upsert_records(client, kit):
    response = client.post("/v1/collections/archive/records", json={"records": NOTES})

    assert response.status_code == 200
    assert response.json() == {"keys": ["1", "2"]}
    assert kit.get_text("2", collection_name="archive")["tags"] == ["travel"]


def test_upsert_validation_error(client):
    response = client.post("/v1/collections/notes/records", json={"records": [{"id": "1"}]})

    assert response.status_code == 422


def test_list_collections(notes):
    response = notes.get("/v1/collections")

    assert response.status_code == 200
    assert response.json() == {"collections": ["notes"]}


def test_get_record(notes):
    response = notes.get("/v1/collections/notes/records/1")

    assert response.status_code == 200
    assert response.json() == {"id": "1", "text": "The cat sat on the mat", "tags": ["pets"]}


def test_get_missing_record(notes):
    response = notes.get("/v1/collections/notes/records/missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "Record missing not found"


def test_delete_record(notes):
    response = notes.delete("/v1/collections/notes/records/1")

    assert response.status_code == 200
    assert response.json() == {"deleted": "1"}
    assert notes.get("/v1/collections/notes/records/1").status_code == 404


def test_search(notes):
    """Test the search endpoint with a tag filter and total count."""
    response = notes.post(
        "/v1/collections/notes/search",
        json={"query": "The cat sat on the mat", "tags": ["pets"], "include_total_count": True},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 1
    hit = body["results"][0]
    assert hit["record"] == {"id": "1", "text": "The cat sat on the mat", "tags": ["pets"]}
    assert hit["score"] == pytest.approx(1.0)


def test_search_filter_error(notes, kit, monkeypatch):
    def unsupported(*args, **kwargs):
        raise FilterError("Tag filters are not supported")

    monkeypatch.setattr(kit, "search", unsupported)

    response = notes.post("/v1/collections/notes/search", json={"query": "cats"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Tag filters are not supported"


def test_invalid_collection_name_is_a_client_error(tmp_path, embedding_service, completion):
    """Test that a collection name the SQL store rejects gives a 400, not a 500."""
    kit = SemanticKit(
        settings=KitSettings(
            database_url=f"sqlite:///{tmp_path / 'vectors.db'}", embedding_dimensions=4
        ),
        embedding_service=embedding_service,
        chat_service=ChatCompletionService("mock-model", completion_fn=completion),
    )
    client = TestClient(create_app(kit))

    responses = [
        client.post("/v1/collections/my-notes/search", json={"query": "cats"}),
        client.get("/v1/collections/my-notes/records/1"),
        client.delete("/v1/collections/my-notes/records/1"),
    ]

    assert [r.status_code for r in responses] == [400, 400, 400]
    assert "Invalid SQL identifier" in responses[0].json()["detail"]


def test_chat_completion(notes, completion, make_response, make_tool_call):
    """Test an OpenAI-style chat completion that searches the collection."""
    completion.responses = [
        make_response(
            tool_calls=[
                make_tool_call("call_1", "memory-search", '{"query": "Paris", "count": 1}')
            ]
        ),
        make_response("Paris is the capital of France."),
    ]

    response = notes.post(
        "/v1/chat/completions",
        json={
            "messages": [{"role": "user", "content": "What is the capital of France?"}],
            "collection": "notes",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["object"] == "chat.completion"
    assert body["model"] == "mock-model"
    assert body["choices"][0]["message"] == {
        "role": "assistant",
        "content": "Paris is the capital of France.",
    }
    assert completion.requests[1]["messages"][-1]["role"] == "tool"


def test_chat_completion_error(client, kit):
    def failing_completion(**request):
        raise RuntimeError("provider down")

    kit.chat_service.completion_fn = failing_completion

    response = client.post(
        "/v1/chat/completions", json={"messages": [{"role": "user", "content": "hi"}]}
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "provider down"
