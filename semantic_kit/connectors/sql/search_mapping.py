"""
Translation of search filters into SQL WHERE clauses.
"""

from __future__ import annotations

import datetime
import re
from typing import Any, Callable, Dict, Optional, Tuple

from ...data.definition import RecordDefinition
from ...data.filters import (
    AnyTagEqualToFilterClause,
    EqualToFilterClause,
    VectorSearchFilter,
    clauses_of,
)
from ...exceptions import FilterError

_IDENTIFIER = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")

_FILTERABLE_VALUE_TYPES = (str, bool, int, float, datetime.datetime)

# (column, parameter name, tag) -> (condition, parameter value)
AnyTagCondition = Callable[[str, str, str], Tuple[str, Any]]


def validate_sql_identifier(identifier: str) -> str:
    """
    Check that a table or column name is a plain SQL identifier.

    Args:
        identifier: The identifier

    Returns:
        The identifier, unchanged

    Raises:
        ValueError: If it is not a valid identifier
    """
    if not isinstance(identifier, str) or not _IDENTIFIER.fullmatch(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return identifier


def build_where_clause(
    search_filter: Optional[VectorSearchFilter],
    definition: RecordDefinition,
    encode_value: Callable[[Any], Any] = lambda v: v,
    any_tag_condition: Optional[AnyTagCondition] = None,
) -> Tuple[str, Dict[str, Any]]:
    """
    Build a WHERE clause body and its bind parameters.

    Args:
        search_filter: The filter, or None
        definition: Record definition used to resolve storage names
        encode_value: Converts a filter value into a driver parameter
        any_tag_condition: Builds the condition and parameter value for an
            AnyTagEqualTo clause from (column, parameter name, tag); such
            clauses are rejected when omitted

    Returns:
        ("col = :p0 AND col2 = :p1", {"p0": ..., "p1": ...}); an empty
        string when there is nothing to filter on
    """
    conditions = []
    params: Dict[str, Any] = {}
    for i, clause in enumerate(clauses_of(search_filter)):
        column = validate_sql_identifier(
            definition.storage_name_of(clause.field_name)
        )
        param = f"p{i}"

        if isinstance(clause, AnyTagEqualToFilterClause):
            if any_tag_condition is None:
                raise FilterError(
                    "AnyTagEqualTo filter clauses are not supported by this SQL dialect"
                )
            if not isinstance(clause.value, str):
                raise FilterError(
                    f"Unsupported tag value type {type(clause.value).__name__}"
                )
            condition, params[param] = any_tag_condition(column, param, clause.value)
            conditions.append(condition)
            continue
        if not isinstance(clause, EqualToFilterClause):
            raise FilterError(f"Unsupported filter clause type {type(clause).__name__}")

        if clause.value is None:
            conditions.append(f"{column} IS NULL")
            continue
        if not isinstance(clause.value, _FILTERABLE_VALUE_TYPES):
            raise FilterError(
                f"Unsupported filter value type {type(clause.value).__name__}"
            )
        conditions.append(f"{column} = :{param}")
        params[param] = encode_value(clause.value)

    return " AND ".join(conditions), params
