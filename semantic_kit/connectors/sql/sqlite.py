"""
SQLite query provider.

Upserts use ``INSERT OR REPLACE``. When ``use_vec_extension`` is set, the
``sqlite-vec`` extension is loaded on every new connection and cosine and
L2 distances are computed in SQL.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Optional, Sequence, Tuple

import sqlite_vec
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...data.definition import DistanceFunction, RecordDefinition
from ...data.options import VectorSearchOptions
from ...data.vector_ops import resolve_distance_function
from ...exceptions import VectorStoreError
from .query_provider import ScoredRows, SQLVectorStoreQueryProvider
from .search_mapping import validate_sql_identifier

# Set up logging
logger = logging.getLogger(__name__)

_VEC_DISTANCES = {
    DistanceFunction.COSINE_SIMILARITY: "vec_distance_cosine",
    DistanceFunction.COSINE_DISTANCE: "vec_distance_cosine",
    DistanceFunction.EUCLIDEAN_DISTANCE: "vec_distance_l2",
}


def load_vec_extension(dbapi_connection: Any, connection_record: Any = None) -> None:
    """Load sqlite-vec into a raw sqlite3 connection."""
    dbapi_connection.enable_load_extension(True)
    sqlite_vec.load(dbapi_connection)
    dbapi_connection.enable_load_extension(False)
    logger.debug("Loaded sqlite-vec extension")


class SQLiteVectorStoreQueryProvider(SQLVectorStoreQueryProvider):
    """
    Query provider for SQLite.

    Args:
        engine: SQLAlchemy engine for a ``sqlite://`` URL
        use_vec_extension: Rank with sqlite-vec instead of in Python. The
            extension is loaded on connections opened after construction.
        **kwargs: Passed to SQLVectorStoreQueryProvider
    """

    def __init__(self, engine: Engine, use_vec_extension: bool = False, **kwargs):
        super().__init__(engine, **kwargs)
        self.use_vec_extension = use_vec_extension
        if use_vec_extension:
            event.listen(engine, "connect", load_vec_extension)

    def encode_value(self, value: Any) -> Any:
        if isinstance(value, datetime.datetime):
            return value.isoformat()
        return value

    def any_tag_condition(self, column: str, param: str, tag: str) -> Tuple[str, Any]:
        return (
            f"EXISTS (SELECT 1 FROM json_each({column}) WHERE json_each.value = :{param})",
            tag,
        )

    def build_upsert_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> str:
        return self.build_insert_statement(collection_name, definition).replace(
            "INSERT INTO", "INSERT OR REPLACE INTO", 1
        )

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
        if not self.use_vec_extension or distance_function not in _VEC_DISTANCES:
            return super().search(collection_name, vector, options, definition)

        where, params = self._where(options, definition)
        vector_column = validate_sql_identifier(vector_field.effective_storage_name)
        not_null = f"{vector_column} IS NOT NULL"
        where = f"{where} AND {not_null}" if where else f" WHERE {not_null}"
        columns = ", ".join(self.select_columns(definition, options.include_vectors))
        sql = (
            f"SELECT {columns}, "
            f"{_VEC_DISTANCES[distance_function]}({vector_column}, :query_vector) AS distance "
            f"FROM {self.table_name(collection_name)}{where} "
            f"ORDER BY distance LIMIT :limit OFFSET :offset"
        )
        params.update(
            query_vector=json.dumps([float(v) for v in vector]),
            limit=options.limit,
            offset=options.offset,
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to search collection: {e}") from e

        ranked = []
        for row in rows:
            distance = float(row["distance"])
            score = (
                1.0 - distance
                if distance_function == DistanceFunction.COSINE_SIMILARITY
                else distance
            )
            ranked.append(
                (self.decode_row(row, definition, options.include_vectors), score)
            )
        total_count = (
            self.count(collection_name, options, definition)
            if options.include_total_count
            else None
        )
        return ranked, total_count
