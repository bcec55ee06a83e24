"""
Translation of search filters and vector searches into RediSearch queries.
"""

from __future__ import annotations

import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from redis.commands.search.query import Query

from ...constants import VECTOR_SCORE_FIELD
from ...data.definition import RecordDefinition, VectorField
from ...data.filters import (
    AnyTagEqualToFilterClause,
    EqualToFilterClause,
    VectorSearchFilter,
    clauses_of,
)
from ...data.options import VectorSearchOptions
from ...exceptions import FilterError
from ...utils.embedding import embedding_to_bytes


def _escape_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _escape_tag(value: str) -> str:
    special = ",.<>{}[]\"':;!@#$%^&*()-+=~| /\\"
    return "".join(f"\\{c}" if c in special else c for c in value)


def build_filter(
    search_filter: Optional[VectorSearchFilter], definition: RecordDefinition
) -> str:
    """
    Build the pre-filter part of a RediSearch query.

    Args:
        search_filter: The filter, or None
        definition: Record definition used to resolve storage names

    Returns:
        ``*`` when there is nothing to filter on, otherwise the clauses
        joined by spaces inside parentheses
    """
    clauses = clauses_of(search_filter)
    if not clauses:
        return "*"

    parts = []
    for clause in clauses:
        field = definition.storage_name_of(clause.field_name)
        value = clause.value
        if isinstance(clause, AnyTagEqualToFilterClause):
            if not isinstance(value, str):
                raise FilterError(
                    f"Unsupported tag value type {type(value).__name__} for {field}"
                )
            parts.append(f"@{field}:{{{_escape_tag(value)}}}")
        elif isinstance(clause, EqualToFilterClause):
            if isinstance(value, bool):
                parts.append(f"@{field}:{{{str(value).lower()}}}")
            elif isinstance(value, (int, float)):
                parts.append(f"@{field}:[{value} {value}]")
            elif isinstance(value, str):
                parts.append(f'@{field}:"{_escape_text(value)}"')
            elif isinstance(value, datetime.datetime):
                parts.append(f'@{field}:"{_escape_text(value.isoformat())}"')
            else:
                raise FilterError(
                    f"Unsupported filter value type {type(value).__name__} for {field}"
                )
        else:
            raise FilterError(f"Unsupported filter clause type {type(clause).__name__}")
    return "(" + " ".join(parts) + ")"


def build_query(
    vector: Sequence[float],
    options: VectorSearchOptions,
    definition: RecordDefinition,
    vector_field: VectorField,
    return_fields: Sequence[Tuple[str, Optional[str]]],
) -> Tuple[Query, Dict[str, Any]]:
    """
    Build a KNN query and its parameters.

    ``K`` is ``limit + offset`` so that paging past the first results still
    has enough neighbours to page through.

    Args:
        vector: The query vector
        options: Search options
        definition: The record definition
        vector_field: The vector field to search
        return_fields: (field or JSON path, alias) pairs to return

    Returns:
        The query and its ``query_params``
    """
    query_string = (
        f"{build_filter(options.filter, definition)}"
        f"=>[KNN $K @{vector_field.effective_storage_name} $BLOB AS {VECTOR_SCORE_FIELD}]"
    )
    query = Query(query_string)
    for field, alias in return_fields:
        query = query.return_field(field, as_field=alias)
    query = (
        query.return_field(VECTOR_SCORE_FIELD)
        .sort_by(VECTOR_SCORE_FIELD)
        .paging(options.offset, options.limit)
        .dialect(2)
    )
    params = {"K": options.limit + options.offset, "BLOB": embedding_to_bytes(vector)}
    return query, params
