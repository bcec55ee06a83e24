from typing import Any, Dict, List, Optional

import litellm
import numpy as np
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from semantic_kit.config import KitSettings
from semantic_kit.core import SemanticKit
from semantic_kit.data.in_memory import InMemoryVectorStore
from semantic_kit.records import text_record_definition
from semantic_kit.services.chat_completion import ChatCompletionService
from semantic_kit.services.embedding import TextEmbeddingService
from semantic_kit.storage.chat_store import SQLChatHistoryStore

EMBEDDING_DIMENSIONS = 4


# Mock embedding function for testing
def mock_embed_text(model: str, text: str) -> List[float]:
    """Create a deterministic mock embedding based on the text."""
    # Use hash of text to seed the random number generator
    np.random.seed(hash(text) % 2**32)

    # Generate a random vector of length 4 (small for testing)
    vector = np.random.normal(0, 1, EMBEDDING_DIMENSIONS)

    # Normalize to unit length
    norm = np.linalg.norm(vector)
    if norm > 0:
        vector = vector / norm

    return vector.tolist()


def completion_response(
    content: Optional[str] = None, tool_calls: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """A completion response in the OpenAI dict shape."""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {"choices": [{"index": 0, "message": message}]}


def tool_call(call_id: str, name: str, arguments: str) -> Dict[str, Any]:
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": arguments},
    }


class ScriptedCompletion:
    """Completion function that replays responses and records requests.

    The last response is repeated once the script runs out.
    """

    def __init__(self, *responses: Dict[str, Any]):
        self.responses = list(responses) or [completion_response("OK")]
        self.requests: List[Dict[str, Any]] = []

    def __call__(self, **request: Any) -> Dict[str, Any]:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def count_words(model=None, messages=None, text=None, **kwargs) -> int:
    """Token counter that counts words, so tests need no tokenizer."""
    if messages is not None:
        return sum(len(str(m.get("content") or "").split()) for m in messages)
    return len((text or "").split())


@pytest.fixture
def word_token_counter(monkeypatch):
    monkeypatch.setattr(litellm, "token_counter", count_words)
    return count_words


@pytest.fixture
def embed_fn():
    return mock_embed_text


@pytest.fixture
def make_response():
    return completion_response


@pytest.fixture
def make_tool_call():
    return tool_call


@pytest.fixture
def scripted_completion():
    """Factory for ScriptedCompletion instances."""
    return ScriptedCompletion


@pytest.fixture
def embedding_service() -> TextEmbeddingService:
    return TextEmbeddingService("mock-embedding", embedding_fn=mock_embed_text)


@pytest.fixture
def text_definition():
    return text_record_definition(EMBEDDING_DIMENSIONS)


@pytest.fixture
def sqlite_engine():
    """An in-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def settings() -> KitSettings:
    return KitSettings(
        database_url="sqlite://",
        completion_model="mock-model",
        embedding_model="mock-embedding",
        embedding_dimensions=EMBEDDING_DIMENSIONS,
        default_collection="notes",
    )


@pytest.fixture
def completion():
    """The completion function used by the kit fixture; tests may replace its script."""
    return ScriptedCompletion(completion_response("Hello from the assistant"))


@pytest.fixture
def kit(
    settings, embedding_service, completion, sqlite_engine, word_token_counter
) -> SemanticKit:
    return SemanticKit(
        settings=settings,
        vector_store=InMemoryVectorStore(),
        embedding_service=embedding_service,
        chat_service=ChatCompletionService("mock-model", completion_fn=completion),
        chat_store=SQLChatHistoryStore(sqlite_engine),
    )
