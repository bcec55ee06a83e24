"""
Options accepted by vector store record collections.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator

from ..constants import DEFAULT_SEARCH_LIMIT
from .filters import VectorSearchFilter


class GetRecordOptions(BaseModel):
    include_vectors: bool = False


class UpsertRecordOptions(BaseModel):
    pass


class DeleteRecordOptions(BaseModel):
    pass


class VectorSearchOptions(BaseModel):
    """
    Options for a vector search.

    ``limit`` is clamped to at least 1 and ``offset`` to at least 0.
    """

    filter: Optional[VectorSearchFilter] = None
    vector_field_name: Optional[str] = None
    limit: int = DEFAULT_SEARCH_LIMIT
    offset: int = 0
    include_vectors: bool = False
    include_total_count: bool = False

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, value: int) -> int:
        return max(1, value)

    @field_validator("offset")
    @classmethod
    def _clamp_offset(cls, value: int) -> int:
        return max(0, value)
