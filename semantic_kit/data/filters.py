"""
Search filters for Semantic Kit vector stores.

Filters are backend-neutral lists of clauses combined with AND. Each
connector translates them into its own query language.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel


class FilterClause(BaseModel):
    field_name: str
    value: Any = None


class EqualToFilterClause(FilterClause):
    """Matches records whose field equals the value."""


class AnyTagEqualToFilterClause(FilterClause):
    """Matches records whose list field contains the value."""


class VectorSearchFilter(BaseModel):
    clauses: List[FilterClause] = []

    @classmethod
    def create_default(cls) -> VectorSearchFilter:
        return cls()

    def equal_to(self, field_name: str, value: Any) -> VectorSearchFilter:
        self.clauses.append(EqualToFilterClause(field_name=field_name, value=value))
        return self

    def any_tag_equal_to(self, field_name: str, value: Any) -> VectorSearchFilter:
        self.clauses.append(
            AnyTagEqualToFilterClause(field_name=field_name, value=value)
        )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.clauses


def clauses_of(search_filter: Optional[VectorSearchFilter]) -> List[FilterClause]:
    return list(search_filter.clauses) if search_filter is not None else []
