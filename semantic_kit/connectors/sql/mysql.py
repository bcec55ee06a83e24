"""
MySQL query provider.
"""

from __future__ import annotations

import datetime
import json
from typing import Any, Dict, Tuple

from ...data.definition import RecordDefinition
from .query_provider import SQLVectorStoreQueryProvider
from .search_mapping import validate_sql_identifier


class MySQLVectorStoreQueryProvider(SQLVectorStoreQueryProvider):
    """Upserts with ``INSERT ... ON DUPLICATE KEY UPDATE``."""

    supported_data_types: Dict[Any, str] = {
        str: "TEXT",
        int: "INTEGER",
        float: "DOUBLE",
        bool: "BOOLEAN",
        datetime.datetime: "DATETIME",
        list: "TEXT",
    }

    def any_tag_condition(self, column: str, param: str, tag: str) -> Tuple[str, Any]:
        return f"JSON_CONTAINS({column}, :{param})", json.dumps(tag)

    def build_upsert_statement(
        self, collection_name: str, definition: RecordDefinition
    ) -> str:
        key = definition.key_field.name
        updates = ", ".join(
            f"{column} = VALUES({column})"
            for column in (
                validate_sql_identifier(f.effective_storage_name)
                for f in definition.all_fields
                if f.name != key
            )
        )
        insert = self.build_insert_statement(collection_name, definition)
        if not updates:
            # Key-only records: nothing to update on conflict
            return insert.replace("INSERT INTO", "INSERT IGNORE INTO", 1)
        return f"{insert} ON DUPLICATE KEY UPDATE {updates}"
