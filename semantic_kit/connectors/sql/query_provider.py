"""
SQL query provider for Semantic Kit vector stores.

This module provides the dialect-neutral query provider. It keeps a catalog
table of collection names and one table per collection, named with a
configurable prefix. Vectors are stored as JSON text and ranked in Python;
dialect subclasses override the statements they can do better.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import Column, MetaData, String, Table, delete, insert, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ...constants import (
    DEFAULT_COLLECTION_ID_COLUMN,
    DEFAULT_COLLECTION_TABLE_PREFIX,
    DEFAULT_COLLECTIONS_TABLE,
)
from ...data.definition import (
    DistanceFunction,
    IndexKind,
    RecordDefinition,
    VectorField,
    normalize_type,
    validate_supported_types,
)
from ...data.options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from ...data.vector_ops import exact_similarity_search, resolve_distance_function
from ...exceptions import VectorStoreError
from .search_mapping import build_where_clause, validate_sql_identifier

# Set up logging
logger = logging.getLogger(__name__)

ScoredRows = List[Tuple[Dict[str, Any], Optional[float]]]


class SQLVectorStoreQueryProvider:
    """
    Dialect-neutral SQL for vector store collections.

    Args:
        engine: SQLAlchemy engine
        collections_table: Name of the catalog table listing collections
        prefix_for_collection_tables: Prefix of the per-collection tables
    """

    DEFAULT_DISTANCE_FUNCTION = DistanceFunction.EUCLIDEAN_DISTANCE

    supported_key_types: Dict[Any, str] = {str: "VARCHAR(255)"}
    supported_data_types: Dict[Any, str] = {
        str: "TEXT",
        int: "INTEGER",
        float: "REAL",
        bool: "BOOLEAN",
        datetime.datetime: "TIMESTAMPTZ",
        list: "TEXT",
    }
    supported_vector_types: Dict[Any, str] = {list: "TEXT", str: "TEXT"}

    def __init__(
        self,
        engine: Engine,
        collections_table: str = DEFAULT_COLLECTIONS_TABLE,
        prefix_for_collection_tables: str = DEFAULT_COLLECTION_TABLE_PREFIX,
    ):
        self.engine = engine
        self.collections_table = validate_sql_identifier(collections_table)
        self.prefix_for_collection_tables = validate_sql_identifier(
            prefix_for_collection_tables
        )
        self._metadata = MetaData()
        self._catalog = Table(
            self.collections_table,
            self._metadata,
            Column(DEFAULT_COLLECTION_ID_COLUMN, String(255), primary_key=True),
        )

    # Naming and types

    def table_name(self, collection_name: str) -> str:
        return validate_sql_identifier(
            f"{self.prefix_for_collection_tables}{collection_name}"
        )

    def validate_supported_types(self, definition: RecordDefinition) -> None:
        validate_supported_types([definition.key_field], self.supported_key_types)
        validate_supported_types(definition.data_fields, self.supported_data_types)
        validate_supported_types(definition.vector_fields, self.supported_vector_types)

    def column_type(self, field: Any, type_map: Mapping[Any, str]) -> str:
        return type_map[normalize_type(field.field_type)]

    def vector_column_type(self, field: VectorField) -> str:
        return self.column_type(field, self.supported_vector_types)

    def column_definitions(self, definition: RecordDefinition) -> List[str]:
        key = definition.key_field
        columns = [
            f"{validate_sql_identifier(key.effective_storage_name)} "
            f"{self.column_type(key, self.supported_key_types)} PRIMARY KEY"
        ]
        for field in definition.data_fields:
            columns.append(
                f"{validate_sql_identifier(field.effective_storage_name)} "
                f"{self.column_type(field, self.supported_data_types)}"
            )
        for field in definition.vector_fields:
            columns.append(
                f"{validate_sql_identifier(field.effective_storage_name)} "
                f"{self.vector_column_type(field)}"
            )
        return columns

    # Value encoding

    def encode_value(self, value: Any) -> Any:
        return value

    def encode_vector(self, vector: Optional[Sequence[float]]) -> Optional[str]:
        if vector is None:
            return None
        return json.dumps([float(v) for v in vector])

    def encode_storage_model(
        self, storage_model: Mapping[str, Any], definition: RecordDefinition
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for field in definition.non_vector_fields:
            value = storage_model.get(field.effective_storage_name)
            if isinstance(value, (list, tuple)):
                value = json.dumps(list(value))
            elif value is not None:
                value = self.encode_value(value)
            params[field.effective_storage_name] = value
        for field in definition.vector_fields:
            params[field.effective_storage_name] = self.encode_vector(
                storage_model.get(field.effective_storage_name)
            )
        return params

    def decode_row(
        self,
        row: Mapping[str, Any],
        definition: RecordDefinition,
        include_vectors: bool,
    ) -> Dict[str, Any]:
        """
        Convert a result row into a storage model.

        Args:
            row: Row mapping keyed by column name
            definition: The record definition
            include_vectors: Whether vector columns were selected

        Returns:
            Storage model keyed by storage name
        """
        storage_model: Dict[str, Any] = {}
        for field in definition.non_vector_fields:
            name = field.effective_storage_name
            if name not in row:
                continue
            value = row[name]
            field_type = normalize_type(field.field_type)
            if value is not None:
                if field_type is list and isinstance(value, str):
                    value = json.loads(value)
                elif field_type is bool and not isinstance(value, bool):
                    value = bool(value)
                elif field_type is datetime.datetime and isinstance(value, str):
                    value = datetime.datetime.fromisoformat(value)
            storage_model[name] = value
        if include_vectors:
            for field in definition.vector_fields:
                value = row.get(field.effective_storage_name)
                if isinstance(value, str):
                    value = json.loads(value)
                storage_model[field.effective_storage_name] = (
                    [float(v) for v in value] if value is not None else None
                )
        return storage_model

    def select_columns(
        self, definition: RecordDefinition, include_vectors: bool
    ) -> List[str]:
        fields = definition.all_fields if include_vectors else definition.non_vector_fields
        return [validate_sql_identifier(f.effective_storage_name) for f in fields]

    # Collections

    def prepare_vector_store(self) -> None:
        """Create the collections catalog table if it does not exist."""
        try:
            self._metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to prepare vector store: {e}") from e

    def _catalog_column(self):
        return self._catalog.c[DEFAULT_COLLECTION_ID_COLUMN]

    def collection_exists(self, collection_name: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(self._catalog_column()).where(
                    self._catalog_column() == collection_name
                )
            ).first()
        return row is not None

    def get_collection_names(self) -> List[str]:
        with self.engine.connect() as conn:
            return [row[0] for row in conn.execute(select(self._catalog_column()))]

    def build_create_table_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> str:
        columns = ", ".join(self.column_definitions(definition))
        return f"CREATE TABLE IF NOT EXISTS {self.table_name(collection_name)} ({columns})"

    def build_index_statements(
        self, collection_name: str, definition: RecordDefinition
    ) -> List[str]:
        for field in definition.vector_fields:
            if field.index_kind != IndexKind.UNDEFINED:
                logger.warning(
                    f"Index kind {field.index_kind.value} on {field.name} is not supported "
                    f"by {type(self).__name__} and will be ignored"
                )
        return []

    def prepare_collection(self, conn: Connection) -> None:
        """Hook for dialects that need setup before creating tables."""

    def create_collection(
        self, collection_name: str, definition: RecordDefinition
    ) -> None:
        self.validate_supported_types(definition)
        statements = [
            self.build_create_table_statement(collection_name, definition),
            *self.build_index_statements(collection_name, definition),
        ]
        try:
            with self.engine.begin() as conn:
                self.prepare_collection(conn)
                for statement in statements:
                    logger.debug(statement)
                    conn.execute(text(statement))
                exists = conn.execute(
                    select(self._catalog_column()).where(
                        self._catalog_column() == collection_name
                    )
                ).first()
                if exists is None:
                    conn.execute(
                        insert(self._catalog).values(
                            {DEFAULT_COLLECTION_ID_COLUMN: collection_name}
                        )
                    )
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to create collection {collection_name}: {e}"
            ) from e

    def delete_collection(self, collection_name: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text(f"DROP TABLE IF EXISTS {self.table_name(collection_name)}")
                )
                conn.execute(
                    delete(self._catalog).where(
                        self._catalog_column() == collection_name
                    )
                )
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to delete collection {collection_name}: {e}"
            ) from e

    # Records

    def _key_params(self, keys: Sequence[str]) -> Tuple[str, Dict[str, Any]]:
        params = {f"k{i}": key for i, key in enumerate(keys)}
        return ", ".join(f":{name}" for name in params), params

    def get_records(
        self,
        collection_name: str,
        keys: Sequence[str],
        definition: RecordDefinition,
        options: Optional[GetRecordOptions] = None,
    ) -> List[Dict[str, Any]]:
        options = options or GetRecordOptions()
        if not keys:
            return []
        key_column = validate_sql_identifier(definition.key_field.effective_storage_name)
        placeholders, params = self._key_params(keys)
        columns = ", ".join(self.select_columns(definition, options.include_vectors))
        sql = (
            f"SELECT {columns} FROM {self.table_name(collection_name)} "
            f"WHERE {key_column} IN ({placeholders})"
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to get records: {e}") from e

        by_key = {
            row[key_column]: self.decode_row(row, definition, options.include_vectors)
            for row in rows
        }
        return [by_key[key] for key in keys if key in by_key]

    def build_insert_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> str:
        columns = [validate_sql_identifier(f.effective_storage_name) for f in definition.all_fields]
        values = ", ".join(self.value_placeholder(f) for f in definition.all_fields)
        return (
            f"INSERT INTO {self.table_name(collection_name)} "
            f"({', '.join(columns)}) VALUES ({values})"
        )

    def value_placeholder(self, field: Any) -> str:
        return f":{field.effective_storage_name}"

    def build_upsert_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> Optional[str]:
        """Dialect upsert statement, or None when the dialect has none."""
        return None

    def upsert_records(
        self,
        collection_name: str,
        records: Sequence[Mapping[str, Any]],
        definition: RecordDefinition,
        options: Optional[UpsertRecordOptions] = None,
    ) -> None:
        """
        Insert or replace records.

        Without a dialect upsert statement each record is deleted and
        re-inserted inside one transaction.
        """
        if not records:
            return
        params = [self.encode_storage_model(r, definition) for r in records]
        upsert_sql = self.build_upsert_statement(collection_name, definition)
        try:
            with self.engine.begin() as conn:
                if upsert_sql is not None:
                    conn.execute(text(upsert_sql), params)
                    return
                key_column = validate_sql_identifier(
                    definition.key_field.effective_storage_name
                )
                conn.execute(
                    text(
                        f"DELETE FROM {self.table_name(collection_name)} "
                        f"WHERE {key_column} = :{key_column}"
                    ),
                    [{key_column: p[key_column]} for p in params],
                )
                conn.execute(
                    text(self.build_insert_statement(collection_name, definition)),
                    params,
                )
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to upsert records: {e}") from e

    def delete_records(
        self,
        collection_name: str,
        keys: Sequence[str],
        definition: RecordDefinition,
        options: Optional[DeleteRecordOptions] = None,
    ) -> None:
        if not keys:
            return
        key_column = validate_sql_identifier(definition.key_field.effective_storage_name)
        placeholders, params = self._key_params(keys)
        sql = (
            f"DELETE FROM {self.table_name(collection_name)} "
            f"WHERE {key_column} IN ({placeholders})"
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(text(sql), params)
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to delete records: {e}") from e

    # Search

    def any_tag_condition(self, column: str, param: str, tag: str) -> Tuple[str, Any]:
        """Match a tag inside a list column stored as JSON text."""
        pattern = json.dumps(tag).replace("\\", "\\\\")
        pattern = pattern.replace("%", "\\%").replace("_", "\\_")
        return f"{column} LIKE :{param} ESCAPE '\\'", f"%{pattern}%"

    def _where(
        self, options: VectorSearchOptions, definition: RecordDefinition
    ) -> Tuple[str, Dict[str, Any]]:
        where, params = build_where_clause(
            options.filter, definition, self.encode_value, self.any_tag_condition
        )
        return (f" WHERE {where}" if where else ""), params

    def search(
        self,
        collection_name: str,
        vector: Sequence[float],
        options: VectorSearchOptions,
        definition: RecordDefinition,
    ) -> Tuple[ScoredRows, Optional[int]]:
        """
        Filter in SQL, then rank the candidates in Python.

        Args:
            collection_name: The collection
            vector: The query vector
            options: Search options
            definition: The record definition

        Returns:
            The ranked (storage model, score) pairs and, when requested, the
            number of records that matched the filter
        """
        vector_field = definition.get_vector_field(options.vector_field_name)
        where, params = self._where(options, definition)
        columns = ", ".join(self.select_columns(definition, include_vectors=True))
        sql = f"SELECT {columns} FROM {self.table_name(collection_name)}{where}"
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to search collection: {e}") from e

        candidates = [self.decode_row(row, definition, True) for row in rows]
        ranked = exact_similarity_search(
            candidates,
            vector,
            vector_field,
            resolve_distance_function(vector_field, self.DEFAULT_DISTANCE_FUNCTION),
            options,
        )
        total_count = len(candidates) if options.include_total_count else None
        return list(ranked), total_count

    def count(
        self,
        collection_name: str,
        options: VectorSearchOptions,
        definition: RecordDefinition,
    ) -> int:
        where, params = self._where(options, definition)
        sql = f"SELECT COUNT(*) FROM {self.table_name(collection_name)}{where}"
        with self.engine.connect() as conn:
            return int(conn.execute(text(sql), params).scalar_one())
