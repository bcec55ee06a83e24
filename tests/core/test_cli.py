"""
Tests for the CLI functionality of Semantic Kit.
"""

import json

import pytest
from click.testing import CliRunner

from semantic_kit.cli import cli
from semantic_kit.exceptions import VectorStoreError

NOTES_JSONL = "\n".join(
    [
        json.dumps({"id": "1", "text": "The cat sat on the mat", "tags": ["pets"]}),
        "",
        json.dumps({"id": "2", "text": "Paris is the capital of France", "tags": ["travel"]}),
    ]
)


@pytest.fixture
def cli_runner():
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner, kit):
    """Invoke the CLI against the test kit."""

    def _invoke(args, **kwargs):
        return cli_runner.invoke(cli, args, obj={"kit": kit}, **kwargs)

    return _invoke


def test_upsert_from_stdin(invoke, kit):
    result = invoke(["upsert"], input=NOTES_JSONL)

    assert result.exit_code == 0
    assert "Upserted 2 records" in result.output
    assert kit.get_text("2")["text"] == "Paris is the capital of France"


def test_upsert_from_file(invoke, kit, tmp_path):
    source = tmp_path / "notes.jsonl"
    source.write_text(NOTES_JSONL)

    result = invoke(["upsert", str(source)])

    assert result.exit_code == 0
    assert kit.get_text("1") is not None


def test_upsert_invalid_json(invoke):
    result = invoke(["upsert"], input='{"id": "1", "text": "ok"}\nnot json\n')

    assert result.exit_code != 0
    assert "Invalid JSON on line 2" in result.output


def test_upsert_missing_text(invoke):
    result = invoke(["upsert"], input='{"id": "1"}\n')

    assert result.exit_code != 0
    assert "needs an id and a text" in result.output


def test_search_command(invoke):
    """Test the 'search' command."""
    invoke(["upsert"], input=NOTES_JSONL)

    result = invoke(["search", "The cat sat on the mat", "--limit", "1"])

    assert result.exit_code == 0
    assert "Found 1 records:" in result.output
    assert "1. 1 (1.000)" in result.output
    assert "The cat sat on the mat" in result.output
    assert "Tags: pets" in result.output


def test_search_json_output(invoke):
    invoke(["upsert"], input=NOTES_JSONL)

    result = invoke(["search", "anything", "--tag", "travel", "--json"])

    assert result.exit_code == 0
    hits = json.loads(result.output)
    assert len(hits) == 1
    assert hits[0]["id"] == "2"
    assert "embedding" not in hits[0]
    assert "score" in hits[0]


def test_collections_command(invoke):
    result = invoke(["collections"])
    assert "No collections" in result.output

    invoke(["upsert"], input=NOTES_JSONL)
    result = invoke(["collections"])
    assert result.output.strip() == "notes"


def test_delete_command(invoke, kit):
    invoke(["upsert"], input=NOTES_JSONL)

    result = invoke(["delete", "1"])

    assert result.exit_code == 0
    assert "Deleted 1" in result.output
    assert kit.get_text("1") is None


def test_delete_reports_store_errors(invoke, kit, monkeypatch):
    def unavailable(key, collection_name=None):
        raise VectorStoreError("Failed to delete records: database is locked")

    monkeypatch.setattr(kit, "delete_text", unavailable)

    result = invoke(["delete", "1"])

    assert result.exit_code == 1
    assert "Error: Failed to delete records: database is locked" in result.output
    assert "Traceback" not in result.output


def test_chat_command(invoke, kit):
    """Test a chat session that is saved under a name."""
    result = invoke(["chat", "--session", "work"], input="help\nhello\nexit\n")

    assert result.exit_code == 0
    assert "Using model: mock-model" in result.output
    assert "clear - Clear the conversation history" in result.output
    assert "Assistant: Hello from the assistant" in result.output

    saved = kit.chat_store.load("work")
    assert [m["role"] for m in saved] == ["system", "user", "assistant"]
    assert saved.messages[1]["content"] == "hello"


def test_chat_resumes_session(invoke, kit, completion):
    invoke(["chat", "--session", "work"], input="hello\nexit\n")

    result = invoke(["chat", "--session", "work"], input="again\nexit\n")

    assert result.exit_code == 0
    last_request = completion.requests[-1]["messages"]
    assert [m["content"] for m in last_request if m["role"] == "user"] == ["hello", "again"]


def test_chat_reports_errors(invoke, kit):
    def failing_completion(**request):
        raise RuntimeError("provider down")

    kit.chat_service.completion_fn = failing_completion

    result = invoke(["chat"], input="hello\nexit\n")

    assert result.exit_code == 0
    assert "Error: provider down" in result.output
