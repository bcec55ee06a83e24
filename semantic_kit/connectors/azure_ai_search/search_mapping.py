"""
Translation of search filters into Azure AI Search OData expressions.
"""

from __future__ import annotations

import datetime
from typing import Any, Optional

from ...data.definition import RecordDefinition
from ...data.filters import (
    AnyTagEqualToFilterClause,
    EqualToFilterClause,
    VectorSearchFilter,
    clauses_of,
)
from ...exceptions import FilterError


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def odata_literal(value: Any) -> str:
    """
    Render a value as an OData literal.

    Raises:
        FilterError: For unsupported value types
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.isoformat().replace("+00:00", "Z")
    raise FilterError(f"Unsupported filter value type {type(value).__name__}")


def build_filter(
    search_filter: Optional[VectorSearchFilter], definition: RecordDefinition
) -> Optional[str]:
    """
    Build an OData ``$filter`` expression.

    Args:
        search_filter: The filter, or None
        definition: Record definition used to resolve storage names

    Returns:
        The expression, or None when there is nothing to filter on
    """
    parts = []
    for clause in clauses_of(search_filter):
        field = definition.storage_name_of(clause.field_name)
        if isinstance(clause, AnyTagEqualToFilterClause):
            if not isinstance(clause.value, str):
                raise FilterError(
                    f"Unsupported tag value type {type(clause.value).__name__}"
                )
            parts.append(f"{field}/any(t: t eq {_quote(clause.value)})")
        elif isinstance(clause, EqualToFilterClause):
            parts.append(f"{field} eq {odata_literal(clause.value)}")
        else:
            raise FilterError(f"Unsupported filter clause type {type(clause).__name__}")
    return " and ".join(parts) if parts else None
