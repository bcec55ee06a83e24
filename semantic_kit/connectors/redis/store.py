"""
Redis vector store.
"""

from __future__ import annotations

from typing import Any, List, Optional, Type, Union

from redis import Redis

from ...data.collection import VectorStore
from ...data.definition import RecordDefinition
from .collection import (
    RedisHashSetVectorStoreRecordCollection,
    RedisJsonVectorStoreRecordCollection,
    RedisVectorStoreRecordCollection,
)
from .create_mapping import RedisStorageType

_COLLECTIONS = {
    RedisStorageType.HASH_SET: RedisHashSetVectorStoreRecordCollection,
    RedisStorageType.JSON: RedisJsonVectorStoreRecordCollection,
}


class RedisVectorStore(VectorStore):
    """
    Vector store over Redis with the RediSearch module.

    Args:
        client: Redis client created with ``decode_responses=False``
        storage_type: Default storage for collections handed out
        prefix_collection_name: Default key prefixing for collections
    """

    def __init__(
        self,
        client: Redis,
        storage_type: Union[RedisStorageType, str] = RedisStorageType.HASH_SET,
        prefix_collection_name: bool = True,
    ):
        self.client = client
        self.storage_type = RedisStorageType(storage_type)
        self.prefix_collection_name = prefix_collection_name

    @classmethod
    def from_url(cls, redis_url: str, **kwargs: Any) -> RedisVectorStore:
        return cls(Redis.from_url(redis_url, decode_responses=False), **kwargs)

    @classmethod
    def from_settings(cls, settings: Any) -> RedisVectorStore:
        return cls.from_url(settings.redis_url)

    def get_collection(
        self,
        collection_name: str,
        record_type: Optional[Type[Any]] = None,
        record_definition: Optional[RecordDefinition] = None,
        storage_type: Optional[Union[RedisStorageType, str]] = None,
        **kwargs: Any,
    ) -> RedisVectorStoreRecordCollection[Any]:
        collection_class = _COLLECTIONS[
            RedisStorageType(storage_type) if storage_type else self.storage_type
        ]
        kwargs.setdefault("prefix_collection_name", self.prefix_collection_name)
        return collection_class(
            collection_name, self.client, record_type, record_definition, **kwargs
        )

    def list_collection_names(self) -> List[str]:
        names = self.client.execute_command("FT._LIST")
        return [n.decode("utf-8") if isinstance(n, bytes) else n for n in names]
