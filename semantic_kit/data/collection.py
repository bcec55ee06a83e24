"""
Base classes for vector store record collections and vector stores.

Every connector implements the batch operations and the collection
lifecycle; single-record operations are derived from the batch ones.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from ..exceptions import RecordDefinitionError
from .definition import RecordDefinition, validate_supported_types
from .mapper import RecordMapper
from .options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from .results import VectorSearchResults

# Set up logging
logger = logging.getLogger(__name__)

TRecord = TypeVar("TRecord")


class VectorStoreRecordCollection(ABC, Generic[TRecord]):
    """
    A named collection of records in a vector store.

    Args:
        collection_name: Name of the collection
        record_type: Pydantic model class of the records, or None for dict records
        record_definition: Explicit definition; read from ``record_type`` when omitted
        to_storage_fn: Optional custom record -> storage model conversion
        from_storage_fn: Optional custom storage model -> record conversion
    """

    supported_key_types: Sequence[Any] = (str,)
    supported_data_types: Optional[Sequence[Any]] = None
    supported_vector_types: Optional[Sequence[Any]] = None

    def __init__(
        self,
        collection_name: str,
        record_type: Optional[Type[TRecord]] = None,
        record_definition: Optional[RecordDefinition] = None,
        to_storage_fn: Optional[Callable[[TRecord], Dict[str, Any]]] = None,
        from_storage_fn: Optional[Callable[[Dict[str, Any], bool], TRecord]] = None,
    ):
        if not collection_name:
            raise ValueError("Collection name must not be empty")
        if record_definition is None:
            if record_type is None:
                raise RecordDefinitionError(
                    "Either a record type or a record definition is required"
                )
            record_definition = RecordDefinition.from_record_class(record_type)  # type: ignore[arg-type]

        self.collection_name = collection_name
        self.record_type = record_type
        self.definition = record_definition
        self.mapper: RecordMapper[TRecord] = RecordMapper(
            record_type, record_definition, to_storage_fn, from_storage_fn
        )
        self._validate_definition()

    def _validate_definition(self) -> None:
        validate_supported_types([self.definition.key_field], self.supported_key_types)
        if self.supported_data_types is not None:
            validate_supported_types(
                self.definition.data_fields, self.supported_data_types
            )
        if self.supported_vector_types is not None:
            validate_supported_types(
                self.definition.vector_fields, self.supported_vector_types
            )

    # Collection lifecycle

    @abstractmethod
    def collection_exists(self) -> bool:
        ...

    @abstractmethod
    def create_collection(self) -> None:
        ...

    def create_collection_if_not_exists(self) -> None:
        if not self.collection_exists():
            self.create_collection()

    @abstractmethod
    def delete_collection(self) -> None:
        ...

    # Records

    @abstractmethod
    def get_batch(
        self, keys: Sequence[str], options: Optional[GetRecordOptions] = None
    ) -> List[TRecord]:
        """Records for the keys that exist; missing keys are omitted."""

    @abstractmethod
    def upsert_batch(
        self, records: Sequence[TRecord], options: Optional[UpsertRecordOptions] = None
    ) -> List[str]:
        ...

    @abstractmethod
    def delete_batch(
        self, keys: Sequence[str], options: Optional[DeleteRecordOptions] = None
    ) -> None:
        ...

    @abstractmethod
    def search(
        self, vector: Sequence[float], options: Optional[VectorSearchOptions] = None
    ) -> VectorSearchResults[TRecord]:
        ...

    def get(
        self, key: str, options: Optional[GetRecordOptions] = None
    ) -> Optional[TRecord]:
        records = self.get_batch([key], options)
        return records[0] if records else None

    def upsert(
        self, record: TRecord, options: Optional[UpsertRecordOptions] = None
    ) -> str:
        return self.upsert_batch([record], options)[0]

    def delete(self, key: str, options: Optional[DeleteRecordOptions] = None) -> None:
        self.delete_batch([key], options)


class VectorStore(ABC):
    """A vector store hands out collections and lists their names."""

    @classmethod
    def from_settings(cls, settings: Any) -> VectorStore:
        """Build the store from ``KitSettings``; stores without connection settings need none."""
        return cls()

    @abstractmethod
    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ) -> VectorStoreRecordCollection[Any]:
        ...

    @abstractmethod
    def list_collection_names(self) -> List[str]:
        ...
