"""
Redis record collections.

Records are stored either as hash sets or as JSON documents and indexed
with RediSearch. Each collection is one index; record keys can be prefixed
with the collection name so that several collections share a database.
"""

from __future__ import annotations

import datetime
import json
import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from redis import Redis
from redis.commands.search.field import Field
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.exceptions import RedisError, ResponseError

from ...constants import DEFAULT_REDIS_KEY_PREFIX_SEPARATOR, VECTOR_SCORE_FIELD
from ...data.collection import TRecord, VectorStoreRecordCollection
from ...data.definition import (
    DistanceFunction,
    RecordDefinition,
    RecordField,
    normalize_type,
)
from ...data.options import (
    DeleteRecordOptions,
    GetRecordOptions,
    UpsertRecordOptions,
    VectorSearchOptions,
)
from ...data.results import VectorSearchResult, VectorSearchResults
from ...data.vector_ops import resolve_distance_function
from ...exceptions import VectorStoreError
from ...utils.embedding import bytes_to_embedding, embedding_to_bytes
from .create_mapping import RedisStorageType, build_schema
from .search_mapping import build_query

# Set up logging
logger = logging.getLogger(__name__)


def decode_value(field: RecordField, raw: Any) -> Any:
    """
    Decode a stored data value.

    Strings are stored as-is, datetimes as ISO-8601, lists of tags as a
    comma separated string and anything else as JSON text.
    """
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    field_type = normalize_type(field.field_type)
    if not isinstance(raw, str) or field_type is str:
        return raw
    if field_type is datetime.datetime:
        return datetime.datetime.fromisoformat(raw)
    if field_type is list:
        return [tag for tag in raw.split(",") if tag]
    return json.loads(raw)


def encode_value(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return json.dumps(value)


def score_from_distance(distance_function: DistanceFunction, distance: float) -> float:
    """RediSearch reports distances; similarities are reported as 1 - distance."""
    if distance_function in (
        DistanceFunction.COSINE_SIMILARITY,
        DistanceFunction.DOT_PRODUCT,
    ):
        return 1.0 - distance
    return distance


class RedisVectorStoreRecordCollection(VectorStoreRecordCollection[TRecord]):
    """
    Base class for Redis collections.

    Args:
        collection_name: Name of the collection, used as the index name
        client: Redis client created with ``decode_responses=False``
        record_type: Pydantic model class of the records
        record_definition: Explicit definition for dict records
        prefix_collection_name: Store records under ``<collection>:<key>``
        **kwargs: Custom mapper callables, see VectorStoreRecordCollection
    """

    # Indexes are created with the COSINE metric when no distance function is set
    DEFAULT_DISTANCE_FUNCTION = DistanceFunction.COSINE_SIMILARITY

    storage_type: RedisStorageType

    def __init__(
        self,
        collection_name: str,
        client: Redis,
        record_type: Optional[Type[TRecord]] = None,
        record_definition: Optional[RecordDefinition] = None,
        prefix_collection_name: bool = True,
        **kwargs: Any,
    ):
        super().__init__(collection_name, record_type, record_definition, **kwargs)
        self.client = client
        self.prefix_collection_name = prefix_collection_name

    # Keys

    @property
    def key_prefix(self) -> str:
        if not self.prefix_collection_name:
            return ""
        return f"{self.collection_name}{DEFAULT_REDIS_KEY_PREFIX_SEPARATOR}"

    def redis_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def record_key(self, redis_key: str) -> str:
        prefix = self.key_prefix
        if prefix and redis_key.startswith(prefix):
            return redis_key[len(prefix):]
        return redis_key

    # Collection lifecycle

    def collection_exists(self) -> bool:
        try:
            self.client.ft(self.collection_name).info()
            return True
        except ResponseError:
            return False

    def create_collection(self) -> None:
        schema: List[Field] = build_schema(self.definition, self.storage_type)
        index_type = (
            IndexType.JSON if self.storage_type == RedisStorageType.JSON else IndexType.HASH
        )
        prefix = [self.key_prefix] if self.key_prefix else None
        try:
            self.client.ft(self.collection_name).create_index(
                schema, definition=IndexDefinition(prefix=prefix, index_type=index_type)
            )
        except RedisError as e:
            raise VectorStoreError(
                f"Failed to create index {self.collection_name}: {e}"
            ) from e

    def delete_collection(self) -> None:
        try:
            self.client.ft(self.collection_name).dropindex(delete_documents=True)
        except ResponseError:
            logger.debug(f"Index {self.collection_name} does not exist")

    def delete_batch(
        self, keys: Sequence[str], options: Optional[DeleteRecordOptions] = None
    ) -> None:
        if keys:
            self.client.delete(*[self.redis_key(k) for k in keys])

    # Storage specifics

    @abstractmethod
    def _read(self, redis_key: str, include_vectors: bool) -> Optional[Dict[str, Any]]:
        """Storage model for one key, or None when it does not exist."""

    @abstractmethod
    def _write(self, redis_key: str, storage_model: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def _return_fields(self, include_vectors: bool) -> List[Tuple[str, Optional[str]]]:
        ...

    @abstractmethod
    def _decode_document(self, document: Any, include_vectors: bool) -> Dict[str, Any]:
        ...

    def get_batch(
        self, keys: Sequence[str], options: Optional[GetRecordOptions] = None
    ) -> List[TRecord]:
        options = options or GetRecordOptions()
        records = []
        for key in keys:
            storage_model = self._read(self.redis_key(key), options.include_vectors)
            if storage_model is None:
                continue
            storage_model[self.definition.key_field.effective_storage_name] = key
            records.append(self.mapper.to_record(storage_model, options.include_vectors))
        return records

    def upsert_batch(
        self, records: Sequence[TRecord], options: Optional[UpsertRecordOptions] = None
    ) -> List[str]:
        keys = []
        for record in records:
            key = self.mapper.key_of(record)
            storage_model = self.mapper.to_storage_model(record)
            storage_model.pop(self.definition.key_field.effective_storage_name, None)
            self._write(self.redis_key(key), storage_model)
            keys.append(key)
        return keys

    def search(
        self, vector: Sequence[float], options: Optional[VectorSearchOptions] = None
    ) -> VectorSearchResults[TRecord]:
        options = options or VectorSearchOptions()
        vector_field = self.definition.get_vector_field(options.vector_field_name)
        distance_function = resolve_distance_function(
            vector_field, self.DEFAULT_DISTANCE_FUNCTION
        )
        query, params = build_query(
            vector,
            options,
            self.definition,
            vector_field,
            self._return_fields(options.include_vectors),
        )
        try:
            result = self.client.ft(self.collection_name).search(
                query, query_params=params
            )
        except RedisError as e:
            raise VectorStoreError(f"Failed to search {self.collection_name}: {e}") from e

        results = []
        for document in result.docs:
            storage_model = self._decode_document(document, options.include_vectors)
            storage_model[self.definition.key_field.effective_storage_name] = (
                self.record_key(document.id)
            )
            raw_score = getattr(document, VECTOR_SCORE_FIELD, None)
            results.append(
                VectorSearchResult(
                    record=self.mapper.to_record(storage_model, options.include_vectors),
                    score=(
                        score_from_distance(distance_function, float(raw_score))
                        if raw_score is not None
                        else None
                    ),
                )
            )
        return VectorSearchResults(
            results=results,
            total_count=result.total if options.include_total_count else None,
        )


class RedisHashSetVectorStoreRecordCollection(RedisVectorStoreRecordCollection[TRecord]):
    """
    Records stored as hash sets.

    Vectors are stored as float32 blobs; other non-string values as text.
    """

    storage_type = RedisStorageType.HASH_SET

    def _read(self, redis_key: str, include_vectors: bool) -> Optional[Dict[str, Any]]:
        data_fields = self.definition.data_fields
        if include_vectors or not data_fields:
            raw = self.client.hgetall(redis_key)
            if not raw:
                return None
            stored = {
                (k.decode("utf-8") if isinstance(k, bytes) else k): v
                for k, v in raw.items()
            }
        else:
            names = [f.effective_storage_name for f in data_fields]
            values = self.client.hmget(redis_key, names)
            if all(v is None for v in values) and not self.client.exists(redis_key):
                return None
            stored = dict(zip(names, values))

        storage_model: Dict[str, Any] = {
            f.effective_storage_name: decode_value(f, stored.get(f.effective_storage_name))
            for f in data_fields
        }
        if include_vectors:
            for f in self.definition.vector_fields:
                blob = stored.get(f.effective_storage_name)
                storage_model[f.effective_storage_name] = (
                    bytes_to_embedding(blob) if blob is not None else None
                )
        return storage_model

    def _write(self, redis_key: str, storage_model: Dict[str, Any]) -> None:
        vector_names = {f.effective_storage_name for f in self.definition.vector_fields}
        mapping = {}
        for name, value in storage_model.items():
            if value is None:
                continue
            mapping[name] = (
                embedding_to_bytes(value) if name in vector_names else encode_value(value)
            )
        if mapping:
            self.client.hset(redis_key, mapping=mapping)

    def _return_fields(self, include_vectors: bool) -> List[Tuple[str, Optional[str]]]:
        # Vector blobs do not survive the text decoding of search replies;
        # they are fetched separately
        return [(f.effective_storage_name, None) for f in self.definition.data_fields]

    def _decode_document(self, document: Any, include_vectors: bool) -> Dict[str, Any]:
        storage_model = {
            f.effective_storage_name: decode_value(
                f, getattr(document, f.effective_storage_name, None)
            )
            for f in self.definition.data_fields
        }
        if include_vectors:
            names = [f.effective_storage_name for f in self.definition.vector_fields]
            blobs = self.client.hmget(document.id, names)
            for name, blob in zip(names, blobs):
                storage_model[name] = bytes_to_embedding(blob) if blob is not None else None
        return storage_model


class RedisJsonVectorStoreRecordCollection(RedisVectorStoreRecordCollection[TRecord]):
    """Records stored as JSON documents with vectors as float arrays."""

    storage_type = RedisStorageType.JSON

    def _from_document(self, document: Dict[str, Any], include_vectors: bool) -> Dict[str, Any]:
        storage_model = {}
        for f in self.definition.data_fields:
            value = document.get(f.effective_storage_name)
            if normalize_type(f.field_type) is datetime.datetime and isinstance(value, str):
                value = datetime.datetime.fromisoformat(value)
            storage_model[f.effective_storage_name] = value
        if include_vectors:
            for f in self.definition.vector_fields:
                storage_model[f.effective_storage_name] = document.get(f.effective_storage_name)
        return storage_model

    def _read(self, redis_key: str, include_vectors: bool) -> Optional[Dict[str, Any]]:
        document = self.client.json().get(redis_key)
        if document is None:
            return None
        return self._from_document(document, include_vectors)

    def _write(self, redis_key: str, storage_model: Dict[str, Any]) -> None:
        document = {
            name: value.isoformat() if isinstance(value, datetime.datetime) else value
            for name, value in storage_model.items()
        }
        self.client.json().set(redis_key, "$", document)

    def _return_fields(self, include_vectors: bool) -> List[Tuple[str, Optional[str]]]:
        fields = self.definition.all_fields if include_vectors else self.definition.data_fields
        return [
            (f"$.{f.effective_storage_name}", f.effective_storage_name)
            for f in fields
            if f is not self.definition.key_field
        ]

    def _decode_document(self, document: Any, include_vectors: bool) -> Dict[str, Any]:
        decoded: Dict[str, Any] = {}
        for f in self.definition.data_fields:
            raw = getattr(document, f.effective_storage_name, None)
            if isinstance(raw, str) and normalize_type(f.field_type) in (list, int, float, bool):
                raw = json.loads(raw)
            decoded[f.effective_storage_name] = raw
        if include_vectors:
            for f in self.definition.vector_fields:
                raw = getattr(document, f.effective_storage_name, None)
                decoded[f.effective_storage_name] = json.loads(raw) if isinstance(raw, str) else raw
        return self._from_document(decoded, include_vectors)
