"""
Core entry point for Semantic Kit.

This module contains the SemanticKit class, which wires settings, a vector
store, the AI services, a kernel and the chat history store together for the
CLI and the HTTP server.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import KitSettings, get_settings
from .data.collection import VectorStore, VectorStoreRecordCollection
from .data.filters import VectorSearchFilter
from .data.options import GetRecordOptions, VectorSearchOptions
from .data.results import VectorSearchResults
from .data.text_search import VectorStoreTextSearch
from .exceptions import ServiceNotFoundError
from .kernel.chat_history import ChatHistory
from .kernel.function_choice import FunctionChoiceBehavior
from .kernel.kernel import Kernel
from .kernel.settings import PromptExecutionSettings
from .plugins import get_vector_store, list_vector_stores
from .records import TAGS, TEXT, text_record_definition, to_text_record
from .services.chat_completion import ChatCompletionService
from .services.embedding import TextEmbeddingService
from .storage.chat_store import SQLChatHistoryStore

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the memory search function to look up "
    "stored notes when they could help answer the user."
)


class SemanticKit:
    """
    Main class for working with text collections and chat.

    Args:
        settings: Resolved settings; read from the environment when omitted
        vector_store: Vector store; built from the store named by
            ``settings.vector_store`` when omitted
        embedding_service: Embedding service for records and queries
        chat_service: Chat completion service
        chat_store: Chat history store; shares the SQL database when omitted
    """

    def __init__(
        self,
        settings: Optional[KitSettings] = None,
        vector_store: Optional[VectorStore] = None,
        embedding_service: Optional[TextEmbeddingService] = None,
        chat_service: Optional[ChatCompletionService] = None,
        chat_store: Optional[SQLChatHistoryStore] = None,
    ):
        self.settings = settings or get_settings()
        self.vector_store = vector_store or self._create_vector_store()
        self.embedding_service = embedding_service or TextEmbeddingService(
            self.settings.embedding_model
        )
        self.chat_service = chat_service or ChatCompletionService(
            self.settings.completion_model,
            max_auto_invoke_attempts=self.settings.max_auto_invoke_attempts,
        )
        self._chat_store = chat_store

    def _create_vector_store(self) -> VectorStore:
        store_class = get_vector_store(self.settings.vector_store)
        if store_class is None:
            raise ServiceNotFoundError(
                f"No vector store registered as {self.settings.vector_store}. "
                f"Available: {', '.join(list_vector_stores())}"
            )
        logger.debug(f"Using vector store {self.settings.vector_store}")
        return store_class.from_settings(self.settings)

    @property
    def chat_store(self) -> SQLChatHistoryStore:
        if self._chat_store is None:
            self._chat_store = SQLChatHistoryStore(self.settings.database_url)
        return self._chat_store

    def collection(self, name: Optional[str] = None) -> VectorStoreRecordCollection[Any]:
        """A dict text record collection, created if it does not exist yet."""
        collection = self.vector_store.get_collection(
            name or self.settings.default_collection,
            record_definition=text_record_definition(self.settings.embedding_dimensions),
        )
        collection.create_collection_if_not_exists()
        return collection

    def list_collections(self) -> List[str]:
        return self.vector_store.list_collection_names()

    def upsert_texts(
        self, items: Sequence[Dict[str, Any]], collection_name: Optional[str] = None
    ) -> List[str]:
        """
        Embed and store ``{"id", "text", "tags"?}`` items.

        Returns:
            The keys of the stored records
        """
        records = [
            to_text_record(
                item, self.embedding_service.generate_embedding(item.get(TEXT) or "")
            )
            for item in items
        ]
        keys = self.collection(collection_name).upsert_batch(records)
        logger.info(f"Upserted {len(keys)} records")
        return keys

    def get_text(
        self, key: str, collection_name: Optional[str] = None, include_vectors: bool = False
    ) -> Optional[Dict[str, Any]]:
        return self.collection(collection_name).get(
            key, GetRecordOptions(include_vectors=include_vectors)
        )

    def delete_text(self, key: str, collection_name: Optional[str] = None) -> None:
        self.collection(collection_name).delete(key)

    def search(
        self,
        query: str,
        collection_name: Optional[str] = None,
        limit: int = 3,
        offset: int = 0,
        tags: Optional[Sequence[str]] = None,
        include_total_count: bool = False,
    ) -> VectorSearchResults[Dict[str, Any]]:
        """
        Search a collection for text similar to ``query``.

        Args:
            query: Query text
            collection_name: Collection to search
            limit: Maximum number of results
            offset: Number of results to skip
            tags: Only return records carrying every one of these tags
            include_total_count: Report how many records matched the filter

        Returns:
            The scored records
        """
        search_filter = VectorSearchFilter.create_default()
        for tag in tags or []:
            search_filter = search_filter.any_tag_equal_to(TAGS, tag)
        return self.collection(collection_name).search(
            self.embedding_service.generate_embedding(query),
            VectorSearchOptions(
                filter=search_filter,
                limit=limit,
                offset=offset,
                include_total_count=include_total_count,
            ),
        )

    def create_kernel(self, collection_name: Optional[str] = None) -> Kernel:
        """A kernel with a ``memory`` search plugin over a collection."""
        kernel = Kernel(
            chat_service=self.chat_service, embedding_service=self.embedding_service
        )
        text_search = VectorStoreTextSearch(
            self.collection(collection_name), self.embedding_service
        )
        kernel.add_plugin(text_search.create_plugin("memory"))
        return kernel

    def chat(
        self,
        chat_history: ChatHistory,
        kernel: Optional[Kernel] = None,
        model: Optional[str] = None,
        settings: Optional[PromptExecutionSettings] = None,
    ) -> Dict[str, Any]:
        """
        Answer the last message of ``chat_history``, calling kernel functions as needed.

        The history is trimmed to the configured token limit first. The
        assistant and tool messages produced are appended to the history.

        Returns:
            The final assistant message
        """
        kernel = kernel or self.create_kernel()
        if settings is None:
            settings = PromptExecutionSettings(
                model=model, function_choice_behavior=FunctionChoiceBehavior.auto()
            )
        chat_history.trim(self.settings.token_limit, model or self.chat_service.model)
        return self.chat_service.get_chat_message_content(chat_history, settings, kernel)
