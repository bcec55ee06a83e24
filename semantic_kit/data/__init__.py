"""
Vector store data model for Semantic Kit.

This package defines record definitions, search filters and options, the
record collection and vector store base classes, the in-memory store and
text search.
"""

from .collection import VectorStore, VectorStoreRecordCollection
from .definition import (
    DataField,
    DistanceFunction,
    IndexKind,
    KeyField,
    RecordDefinition,
    VectorField,
    VectorStoreRecordData,
    VectorStoreRecordKey,
    VectorStoreRecordVector,
)
from .filters import (
    AnyTagEqualToFilterClause,
    EqualToFilterClause,
    FilterClause,
    VectorSearchFilter,
)
from .in_memory import InMemoryVectorStore, InMemoryVectorStoreRecordCollection
from .options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from .results import VectorSearchResult, VectorSearchResults
from .text_search import (
    KernelSearchResults,
    TextSearchOptions,
    TextSearchResult,
    VectorStoreTextSearch,
)

__all__ = [
    "AnyTagEqualToFilterClause",
    "DataField",
    "DeleteRecordOptions",
    "DistanceFunction",
    "EqualToFilterClause",
    "FilterClause",
    "GetRecordOptions",
    "InMemoryVectorStore",
    "InMemoryVectorStoreRecordCollection",
    "IndexKind",
    "KernelSearchResults",
    "KeyField",
    "RecordDefinition",
    "TextSearchOptions",
    "TextSearchResult",
    "UpsertRecordOptions",
    "VectorField",
    "VectorSearchFilter",
    "VectorSearchOptions",
    "VectorSearchResult",
    "VectorSearchResults",
    "VectorStore",
    "VectorStoreRecordCollection",
    "VectorStoreRecordData",
    "VectorStoreRecordKey",
    "VectorStoreRecordVector",
    "VectorStoreTextSearch",
]
