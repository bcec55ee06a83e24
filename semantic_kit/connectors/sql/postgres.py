"""
PostgreSQL query provider backed by the pgvector extension.

Vectors live in ``VECTOR(n)`` columns, can be indexed with HNSW or IVFFlat
and are ranked in SQL with the pgvector distance operators.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ...data.definition import (
    DistanceFunction,
    IndexKind,
    RecordDefinition,
    VectorField,
)
from ...data.options import VectorSearchOptions
from ...data.vector_ops import resolve_distance_function
from ...exceptions import RecordDefinitionError, VectorStoreError
from .query_provider import ScoredRows, SQLVectorStoreQueryProvider
from .search_mapping import validate_sql_identifier

# Set up logging
logger = logging.getLogger(__name__)

# distance function -> (operator class, operator)
_OPERATORS: Dict[DistanceFunction, Tuple[str, str]] = {
    DistanceFunction.EUCLIDEAN_DISTANCE: ("vector_l2_ops", "<->"),
    DistanceFunction.COSINE_DISTANCE: ("vector_cosine_ops", "<=>"),
    DistanceFunction.COSINE_SIMILARITY: ("vector_cosine_ops", "<=>"),
    DistanceFunction.DOT_PRODUCT: ("vector_ip_ops", "<#>"),
}

_INDEX_METHODS = {IndexKind.HNSW: "hnsw", IndexKind.FLAT: "ivfflat"}


def distance_to_score(distance_function: DistanceFunction, distance: float) -> float:
    """
    Convert a pgvector operator result into a score.

    ``<=>`` returns cosine distance and ``<#>`` the negated inner product.
    """
    if distance_function == DistanceFunction.COSINE_SIMILARITY:
        return 1.0 - distance
    if distance_function == DistanceFunction.DOT_PRODUCT:
        return -distance
    return distance


class PostgreSQLVectorStoreQueryProvider(SQLVectorStoreQueryProvider):
    DEFAULT_DISTANCE_FUNCTION = DistanceFunction.COSINE_DISTANCE

    supported_data_types: Dict[Any, str] = {
        str: "TEXT",
        int: "INTEGER",
        float: "DOUBLE PRECISION",
        bool: "BOOLEAN",
        datetime.datetime: "TIMESTAMPTZ",
        list: "TEXT",
    }

    def vector_column_type(self, field: VectorField) -> str:
        if not field.dimensions or field.dimensions < 1:
            raise RecordDefinitionError(
                f"Vector field {field.name} needs dimensions for a VECTOR column"
            )
        return f"VECTOR({field.dimensions})"

    def value_placeholder(self, field: Any) -> str:
        if isinstance(field, VectorField):
            return f"CAST(:{field.effective_storage_name} AS vector)"
        return super().value_placeholder(field)

    def prepare_collection(self, conn: Connection) -> None:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))

    def build_index_statements(
        self, collection_name: str, definition: RecordDefinition
    ) -> List[str]:
        table = self.table_name(collection_name)
        statements = []
        for field in definition.vector_fields:
            if field.index_kind == IndexKind.UNDEFINED:
                continue
            column = validate_sql_identifier(field.effective_storage_name)
            distance_function = resolve_distance_function(
                field, self.DEFAULT_DISTANCE_FUNCTION
            )
            op_class, _ = _OPERATORS[distance_function]
            statements.append(
                f"CREATE INDEX IF NOT EXISTS {table}_{column}_idx ON {table} "
                f"USING {_INDEX_METHODS[field.index_kind]} ({column} {op_class})"
            )
        return statements

    def any_tag_condition(self, column: str, param: str, tag: str) -> Tuple[str, Any]:
        return f"CAST({column} AS jsonb) @> CAST(:{param} AS jsonb)", json.dumps([tag])

    def build_upsert_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> str:
        key = validate_sql_identifier(definition.key_field.effective_storage_name)
        insert = self.build_insert_statement(collection_name, definition)
        updates = ", ".join(
            f"{column} = EXCLUDED.{column}"
            for column in (
                validate_sql_identifier(f.effective_storage_name)
                for f in definition.all_fields
                if f is not definition.key_field
            )
        )
        if not updates:
            return f"{insert} ON CONFLICT ({key}) DO NOTHING"
        return f"{insert} ON CONFLICT ({key}) DO UPDATE SET {updates}"

    def build_search_statement(
        self,
        collection_name: str,
        vector_field: VectorField,
        distance_function: DistanceFunction,
        options: VectorSearchOptions,
        definition: RecordDefinition,
    ) -> Tuple[str, Dict[str, Any]]:
        where, params = self._where(options, definition)
        column = validate_sql_identifier(vector_field.effective_storage_name)
        not_null = f"{column} IS NOT NULL"
        where = f"{where} AND {not_null}" if where else f" WHERE {not_null}"
        _, operator = _OPERATORS[distance_function]
        columns = ", ".join(self.select_columns(definition, options.include_vectors))
        sql = (
            f"SELECT {columns}, {column} {operator} CAST(:query_vector AS vector) AS distance "
            f"FROM {self.table_name(collection_name)}{where} "
            f"ORDER BY distance LIMIT :limit OFFSET :offset"
        )
        params.update(limit=options.limit, offset=options.offset)
        return sql, params

    def search(
        self,
        collection_name: str,
        vector: Sequence[float],
        options: VectorSearchOptions,
        definition: RecordDefinition,
    ) -> Tuple[ScoredRows, Optional[int]]:
        vector_field = definition.get_vector_field(options.vector_field_name)
        distance_function = resolve_distance_function(
            vector_field, self.DEFAULT_DISTANCE_FUNCTION
        )
        sql, params = self.build_search_statement(
            collection_name, vector_field, distance_function, options, definition
        )
        params["query_vector"] = json.dumps([float(v) for v in vector])
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to search collection: {e}") from e

        ranked = [
            (
                self.decode_row(row, definition, options.include_vectors),
                distance_to_score(distance_function, float(row["distance"])),
            )
            for row in rows
        ]
        total_count = (
            self.count(collection_name, options, definition)
            if options.include_total_count
            else None
        )
        return ranked, total_count
