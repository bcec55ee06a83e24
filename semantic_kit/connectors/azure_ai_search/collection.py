"""
Azure AI Search vector store and record collection.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.search.documents import SearchClient
from azure.search.documents.indexes import SearchIndexClient
from azure.search.documents.models import VectorizedQuery

from ...data.collection import TRecord, VectorStore, VectorStoreRecordCollection
from ...data.definition import RecordDefinition, normalize_type
from ...data.options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from ...data.results import VectorSearchResult, VectorSearchResults
from ...exceptions import VectorStoreError
from .create_mapping import SUPPORTED_DATA_TYPES, build_index
from .search_mapping import build_filter

# Set up logging
logger = logging.getLogger(__name__)

SCORE_FIELD = "@search.score"


class AzureAISearchVectorStoreRecordCollection(VectorStoreRecordCollection[TRecord]):
    """
    Record collection stored in an Azure AI Search index.

    Args:
        collection_name: Index name
        index_client: Client for the search service
        record_type: Pydantic model class of the records
        record_definition: Explicit definition for dict records
        **kwargs: Custom mapper callables, see VectorStoreRecordCollection
    """

    supported_data_types = tuple(SUPPORTED_DATA_TYPES)
    supported_vector_types = (list,)

    def __init__(
        self,
        collection_name: str,
        index_client: SearchIndexClient,
        record_type: Optional[Type[TRecord]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ):
        super().__init__(collection_name, record_type, record_definition, **kwargs)
        self.index_client = index_client
        self.search_client: SearchClient = index_client.get_search_client(
            collection_name
        )

    def _selected_fields(self, include_vectors: bool) -> List[str]:
        fields = self.definition.all_fields if include_vectors else self.definition.non_vector_fields
        return [f.effective_storage_name for f in fields]

    def _to_storage_model(self, document: Dict[str, Any]) -> Dict[str, Any]:
        storage_model = {k: v for k, v in document.items() if not k.startswith("@")}
        for field in self.definition.data_fields:
            value = storage_model.get(field.effective_storage_name)
            if normalize_type(field.field_type) is datetime.datetime and isinstance(value, str):
                storage_model[field.effective_storage_name] = datetime.datetime.fromisoformat(
                    value.replace("Z", "+00:00")
                )
        return storage_model

    def _to_document(self, record: TRecord) -> Dict[str, Any]:
        document = self.mapper.to_storage_model(record)
        for name, value in document.items():
            if isinstance(value, datetime.datetime):
                if value.tzinfo is None:
                    value = value.replace(tzinfo=datetime.timezone.utc)
                document[name] = value.isoformat()
        return document

    def collection_exists(self) -> bool:
        try:
            self.index_client.get_index(self.collection_name)
            return True
        except ResourceNotFoundError:
            return False

    def create_collection(self) -> None:
        try:
            self.index_client.create_index(build_index(self.collection_name, self.definition))
        except HttpResponseError as e:
            raise VectorStoreError(
                f"Failed to create index {self.collection_name}: {e}"
            ) from e

    def delete_collection(self) -> None:
        try:
            self.index_client.delete_index(self.collection_name)
        except ResourceNotFoundError:
            logger.debug(f"Index {self.collection_name} does not exist")

    def get_batch(
        self, keys: Sequence[str], options: Optional[GetRecordOptions] = None
    ) -> List[TRecord]:
        options = options or GetRecordOptions()
        selected = self._selected_fields(options.include_vectors)
        records = []
        for key in keys:
            try:
                document = self.search_client.get_document(key=key, selected_fields=selected)
            except ResourceNotFoundError:
                continue
            records.append(
                self.mapper.to_record(self._to_storage_model(document), options.include_vectors)
            )
        return records

    def upsert_batch(
        self, records: Sequence[TRecord], options: Optional[UpsertRecordOptions] = None
    ) -> List[str]:
        if not records:
            return []
        try:
            results = self.search_client.merge_or_upload_documents(
                documents=[self._to_document(r) for r in records]
            )
        except HttpResponseError as e:
            raise VectorStoreError(f"Failed to upsert documents: {e}") from e
        failed = [r.key for r in results if not r.succeeded]
        if failed:
            raise VectorStoreError(f"Failed to upsert documents: {', '.join(failed)}")
        return [r.key for r in results]

    def delete_batch(
        self, keys: Sequence[str], options: Optional[DeleteRecordOptions] = None
    ) -> None:
        if not keys:
            return
        key_name = self.definition.key_field.effective_storage_name
        try:
            self.search_client.delete_documents(documents=[{key_name: k} for k in keys])
        except HttpResponseError as e:
            raise VectorStoreError(f"Failed to delete documents: {e}") from e

    def search(
        self, vector: Sequence[float], options: Optional[VectorSearchOptions] = None
    ) -> VectorSearchResults[TRecord]:
        options = options or VectorSearchOptions()
        vector_field = self.definition.get_vector_field(options.vector_field_name)
        vector_query = VectorizedQuery(
            vector=list(vector),
            k_nearest_neighbors=options.limit + options.offset,
            fields=vector_field.effective_storage_name,
        )
        try:
            results = self.search_client.search(
                search_text=None,
                vector_queries=[vector_query],
                filter=build_filter(options.filter, self.definition),
                select=self._selected_fields(options.include_vectors),
                top=options.limit,
                skip=options.offset,
                include_total_count=options.include_total_count,
            )
            documents = list(results)
        except HttpResponseError as e:
            raise VectorStoreError(f"Failed to search {self.collection_name}: {e}") from e

        return VectorSearchResults(
            results=[
                VectorSearchResult(
                    record=self.mapper.to_record(
                        self._to_storage_model(document), options.include_vectors
                    ),
                    score=document.get(SCORE_FIELD),
                )
                for document in documents
            ],
            total_count=results.get_count() if options.include_total_count else None,
        )


class AzureAISearchVectorStore(VectorStore):
    """
    Vector store over an Azure AI Search service.

    Args:
        index_client: Client for the search service
    """

    def __init__(self, index_client: SearchIndexClient):
        self.index_client = index_client

    @classmethod
    def from_endpoint(cls, endpoint: str, api_key: str) -> AzureAISearchVectorStore:
        return cls(SearchIndexClient(endpoint, AzureKeyCredential(api_key)))

    @classmethod
    def from_settings(cls, settings: Any) -> AzureAISearchVectorStore:
        if not settings.azure_search_endpoint or not settings.azure_search_api_key:
            raise VectorStoreError(
                "azure_search_endpoint and azure_search_api_key must be set"
            )
        return cls.from_endpoint(
            settings.azure_search_endpoint, settings.azure_search_api_key
        )

    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ) -> AzureAISearchVectorStoreRecordCollection[Any]:
        return AzureAISearchVectorStoreRecordCollection(
            collection_name, self.index_client, record_type, record_definition, **kwargs
        )

    def list_collection_names(self) -> List[str]:
        return list(self.index_client.list_index_names())
