from .collection import (
    RedisHashSetVectorStoreRecordCollection,
    RedisJsonVectorStoreRecordCollection,
    RedisVectorStoreRecordCollection,
)
from .create_mapping import RedisStorageType, build_schema
from .search_mapping import build_filter, build_query
from .store import RedisVectorStore

__all__ = [
    "RedisHashSetVectorStoreRecordCollection",
    "RedisJsonVectorStoreRecordCollection",
    "RedisStorageType",
    "RedisVectorStore",
    "RedisVectorStoreRecordCollection",
    "build_filter",
    "build_query",
    "build_schema",
]
