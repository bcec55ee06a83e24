"""
Volatile, process-local vector store.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from ..exceptions import CollectionNotFoundError, FilterError
from .collection import TRecord, VectorStore, VectorStoreRecordCollection
from .definition import DistanceFunction, RecordDefinition
from .filters import AnyTagEqualToFilterClause, EqualToFilterClause, clauses_of
from .options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from .results import VectorSearchResult, VectorSearchResults
from .vector_ops import exact_similarity_search, resolve_distance_function

# Set up logging
logger = logging.getLogger(__name__)

_Collections = Dict[str, Dict[str, Dict[str, Any]]]


class InMemoryVectorStoreRecordCollection(VectorStoreRecordCollection[TRecord]):
    """
    Collection backed by a dict of storage models.

    Collections created by the same ``InMemoryVectorStore`` share their
    backing dict, so a collection created through one handle is visible
    through any other.
    """

    DEFAULT_DISTANCE_FUNCTION = DistanceFunction.COSINE_SIMILARITY

    def __init__(
        self,
        collection_name: str,
        record_type: Optional[Type[TRecord]] = None,
        record_definition: Optional[RecordDefinition] = None,
        collections: Optional[_Collections] = None,
        **kwargs: Any,
    ):
        super().__init__(collection_name, record_type, record_definition, **kwargs)
        self._collections: _Collections = collections if collections is not None else {}

    def _records(self) -> Dict[str, Dict[str, Any]]:
        try:
            return self._collections[self.collection_name]
        except KeyError:
            raise CollectionNotFoundError(
                f"Collection {self.collection_name} does not exist"
            ) from None

    def collection_exists(self) -> bool:
        return self.collection_name in self._collections

    def create_collection(self) -> None:
        self._collections.setdefault(self.collection_name, {})

    def delete_collection(self) -> None:
        self._collections.pop(self.collection_name, None)

    def get_batch(
        self, keys: Sequence[str], options: Optional[GetRecordOptions] = None
    ) -> List[TRecord]:
        options = options or GetRecordOptions()
        records = self._records()
        return [
            self.mapper.to_record(copy.deepcopy(records[key]), options.include_vectors)
            for key in keys
            if key in records
        ]

    def upsert_batch(
        self, records: Sequence[TRecord], options: Optional[UpsertRecordOptions] = None
    ) -> List[str]:
        stored = self._records()
        keys = []
        for record in records:
            key = self.mapper.key_of(record)
            stored[key] = copy.deepcopy(self.mapper.to_storage_model(record))
            keys.append(key)
        return keys

    def delete_batch(
        self, keys: Sequence[str], options: Optional[DeleteRecordOptions] = None
    ) -> None:
        records = self._records()
        for key in keys:
            records.pop(key, None)

    def _matches(self, storage_model: Dict[str, Any], options: VectorSearchOptions) -> bool:
        for clause in clauses_of(options.filter):
            value = storage_model.get(self.definition.storage_name_of(clause.field_name))
            if isinstance(clause, EqualToFilterClause):
                if value != clause.value:
                    return False
            elif isinstance(clause, AnyTagEqualToFilterClause):
                if not isinstance(value, (list, tuple, set)) or clause.value not in value:
                    return False
            else:
                raise FilterError(
                    f"Unsupported filter clause type {type(clause).__name__}"
                )
        return True

    def search(
        self, vector: Sequence[float], options: Optional[VectorSearchOptions] = None
    ) -> VectorSearchResults[TRecord]:
        options = options or VectorSearchOptions()
        vector_field = self.definition.get_vector_field(options.vector_field_name)
        candidates = [r for r in self._records().values() if self._matches(r, options)]
        ranked = exact_similarity_search(
            candidates,
            vector,
            vector_field,
            resolve_distance_function(vector_field, self.DEFAULT_DISTANCE_FUNCTION),
            options,
        )
        return VectorSearchResults(
            results=[
                VectorSearchResult(
                    record=self.mapper.to_record(
                        copy.deepcopy(record), options.include_vectors
                    ),
                    score=score,
                )
                for record, score in ranked
            ],
            total_count=len(candidates) if options.include_total_count else None,
        )


class InMemoryVectorStore(VectorStore):
    """Hands out in-memory collections that share one backing dict."""

    def __init__(self):
        self._collections: _Collections = {}

    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ) -> InMemoryVectorStoreRecordCollection[Any]:
        return InMemoryVectorStoreRecordCollection(
            collection_name,
            record_type,
            record_definition,
            collections=self._collections,
            **kwargs,
        )

    def list_collection_names(self) -> List[str]:
        return list(self._collections)
