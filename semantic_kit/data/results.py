"""
Search result containers.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

TRecord = TypeVar("TRecord")


class VectorSearchResult(BaseModel, Generic[TRecord]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    record: TRecord
    score: Optional[float] = None


class VectorSearchResults(BaseModel, Generic[TRecord]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    results: List[VectorSearchResult[TRecord]] = []
    total_count: Optional[int] = None
    metadata: Dict[str, Any] = {}

    def __iter__(self) -> Iterator[VectorSearchResult[TRecord]]:  # type: ignore[override]
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)
