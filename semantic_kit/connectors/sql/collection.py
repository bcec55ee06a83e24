"""
SQL vector store and record collection.

The collection maps records through the record definition and delegates
every statement to a dialect query provider.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Sequence, Type

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from ...data.collection import TRecord, VectorStore, VectorStoreRecordCollection
from ...data.definition import RecordDefinition
from ...data.options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from ...data.results import VectorSearchResult, VectorSearchResults
from ...exceptions import CollectionNotFoundError
from .mysql import MySQLVectorStoreQueryProvider
from .postgres import PostgreSQLVectorStoreQueryProvider
from .query_provider import SQLVectorStoreQueryProvider
from .sqlite import SQLiteVectorStoreQueryProvider

# Set up logging
logger = logging.getLogger(__name__)


class SQLVectorStoreRecordCollection(VectorStoreRecordCollection[TRecord]):
    """
    Record collection stored in a SQL table.

    Args:
        collection_name: Name of the collection; the table name is the
            provider's prefix plus this name
        query_provider: Dialect query provider
        record_type: Pydantic model class of the records
        record_definition: Explicit definition for dict records
        **kwargs: Custom mapper callables, see VectorStoreRecordCollection
    """

    def __init__(
        self,
        collection_name: str,
        query_provider: SQLVectorStoreQueryProvider,
        record_type: Optional[Type[TRecord]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ):
        self.query_provider = query_provider
        super().__init__(collection_name, record_type, record_definition, **kwargs)
        # Rejects names that do not form a valid table identifier
        query_provider.table_name(collection_name)

    def _validate_definition(self) -> None:
        self.query_provider.validate_supported_types(self.definition)

    def _ensure_exists(self) -> None:
        if not self.query_provider.collection_exists(self.collection_name):
            raise CollectionNotFoundError(
                f"Collection {self.collection_name} does not exist"
            )

    def collection_exists(self) -> bool:
        return self.query_provider.collection_exists(self.collection_name)

    def create_collection(self) -> None:
        self.query_provider.create_collection(self.collection_name, self.definition)

    def delete_collection(self) -> None:
        self.query_provider.delete_collection(self.collection_name)

    def get_batch(
        self, keys: Sequence[str], options: Optional[GetRecordOptions] = None
    ) -> List[TRecord]:
        options = options or GetRecordOptions()
        self._ensure_exists()
        rows = self.query_provider.get_records(
            self.collection_name, keys, self.definition, options
        )
        return [self.mapper.to_record(row, options.include_vectors) for row in rows]

    def upsert_batch(
        self, records: Sequence[TRecord], options: Optional[UpsertRecordOptions] = None
    ) -> List[str]:
        self._ensure_exists()
        self.query_provider.upsert_records(
            self.collection_name,
            [self.mapper.to_storage_model(r) for r in records],
            self.definition,
            options,
        )
        return [self.mapper.key_of(r) for r in records]

    def delete_batch(
        self, keys: Sequence[str], options: Optional[DeleteRecordOptions] = None
    ) -> None:
        self._ensure_exists()
        self.query_provider.delete_records(
            self.collection_name, keys, self.definition, options
        )

    def search(
        self, vector: Sequence[float], options: Optional[VectorSearchOptions] = None
    ) -> VectorSearchResults[TRecord]:
        options = options or VectorSearchOptions()
        self._ensure_exists()
        ranked, total_count = self.query_provider.search(
            self.collection_name, vector, options, self.definition
        )
        return VectorSearchResults(
            results=[
                VectorSearchResult(
                    record=self.mapper.to_record(row, options.include_vectors),
                    score=score,
                )
                for row, score in ranked
            ],
            total_count=total_count,
        )


_PROVIDERS = {
    "sqlite": SQLiteVectorStoreQueryProvider,
    "mysql": MySQLVectorStoreQueryProvider,
    "mariadb": MySQLVectorStoreQueryProvider,
    "postgresql": PostgreSQLVectorStoreQueryProvider,
}


class SQLVectorStore(VectorStore):
    """
    Vector store over a SQL database.

    Args:
        query_provider: Dialect query provider
        prepare: Create the collections catalog table on construction
    """

    def __init__(self, query_provider: SQLVectorStoreQueryProvider, prepare: bool = True):
        self.query_provider = query_provider
        if prepare:
            query_provider.prepare_vector_store()

    @classmethod
    def from_engine(cls, engine: Engine, **kwargs: Any) -> SQLVectorStore:
        """
        Build a store, picking the query provider from the engine's dialect.

        Args:
            engine: SQLAlchemy engine
            **kwargs: Passed to the query provider

        Returns:
            The vector store
        """
        provider_class = _PROVIDERS.get(engine.dialect.name, SQLVectorStoreQueryProvider)
        logger.debug(f"Using {provider_class.__name__} for {engine.dialect.name}")
        return cls(provider_class(engine, **kwargs))

    @classmethod
    def from_url(cls, database_url: str, **kwargs: Any) -> SQLVectorStore:
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
        return cls.from_engine(create_engine(url), **kwargs)

    @classmethod
    def from_settings(cls, settings: Any) -> SQLVectorStore:
        return cls.from_url(
            settings.database_url,
            collections_table=settings.collections_table,
            prefix_for_collection_tables=settings.collection_table_prefix,
        )

    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[RecordDefinition] = None,
        **kwargs: Any,
    ) -> SQLVectorStoreRecordCollection[Any]:
        return SQLVectorStoreRecordCollection(
            collection_name,
            self.query_provider,
            record_type,
            record_definition,
            **kwargs,
        )

    def list_collection_names(self) -> List[str]:
        return self.query_provider.get_collection_names()
