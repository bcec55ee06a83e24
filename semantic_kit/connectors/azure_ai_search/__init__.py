from .collection import (
    AzureAISearchVectorStore,
    AzureAISearchVectorStoreRecordCollection,
)
from .create_mapping import build_index
from .search_mapping import build_filter

__all__ = [
    "AzureAISearchVectorStore",
    "AzureAISearchVectorStoreRecordCollection",
    "build_filter",
    "build_index",
]
