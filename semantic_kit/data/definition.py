"""
Record definitions for Semantic Kit vector stores.

This module describes how a record type maps onto storage: exactly one key
field, any number of data fields and any number of vector fields. A
definition can be built from explicit field descriptors or read from the
``typing.Annotated`` markers on a pydantic model.
"""

from __future__ import annotations

import collections.abc
import datetime
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Type, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import RecordDefinitionError


class _FromStringEnum(str, Enum):
    @classmethod
    def from_string(cls, text: Optional[str]):
        """
        Parse a value case-insensitively; empty input maps to ``undefined``.

        Args:
            text: The value to parse

        Returns:
            The enum member
        """
        if not text:
            return cls("undefined")
        for member in cls:
            if member.value == text.strip().lower():
                return member
        raise ValueError(f"Unknown {cls.__name__}: {text}")


class DistanceFunction(_FromStringEnum):
    COSINE_SIMILARITY = "cosine_similarity"
    COSINE_DISTANCE = "cosine_distance"
    DOT_PRODUCT = "dot_product"
    EUCLIDEAN_DISTANCE = "euclidean_distance"
    UNDEFINED = "undefined"


class IndexKind(_FromStringEnum):
    HNSW = "hnsw"
    FLAT = "flat"
    UNDEFINED = "undefined"


def normalize_type(tp: Any) -> Any:
    """
    Reduce an annotation to the type used for storage mapping.

    ``Optional[X]`` becomes ``X`` and any list-like generic becomes ``list``.
    """
    origin = typing.get_origin(tp)
    if origin is typing.Annotated:
        return normalize_type(typing.get_args(tp)[0])
    if origin is Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return normalize_type(args[0])
        return tp
    if tp is list or origin in (list, tuple, collections.abc.Sequence):
        return list
    return tp


def type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


class RecordField(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    storage_name: Optional[str] = None
    field_type: Any = str

    @property
    def effective_storage_name(self) -> str:
        return self.storage_name or self.name


class KeyField(RecordField):
    pass


class DataField(RecordField):
    is_filterable: bool = False


class VectorField(RecordField):
    field_type: Any = list
    dimensions: Optional[int] = None
    index_kind: IndexKind = IndexKind.UNDEFINED
    distance_function: DistanceFunction = DistanceFunction.UNDEFINED


# Markers placed in typing.Annotated metadata. Plain dataclasses, so pydantic
# keeps them as opaque field metadata.


@dataclass(frozen=True)
class VectorStoreRecordKey:
    storage_name: Optional[str] = None


@dataclass(frozen=True)
class VectorStoreRecordData:
    storage_name: Optional[str] = None
    is_filterable: bool = False


@dataclass(frozen=True)
class VectorStoreRecordVector:
    dimensions: Optional[int] = None
    storage_name: Optional[str] = None
    index_kind: IndexKind = IndexKind.UNDEFINED
    distance_function: DistanceFunction = DistanceFunction.UNDEFINED


class RecordDefinition:
    """
    The key, data and vector fields of a record type.

    Fields keep their declaration order.
    """

    def __init__(self, fields: Sequence[RecordField]):
        key_fields = [f for f in fields if isinstance(f, KeyField)]
        if len(key_fields) != 1:
            raise RecordDefinitionError(
                f"Record definition must contain exactly one key field, found {len(key_fields)}"
            )
        seen: Set[str] = set()
        for f in fields:
            if f.name in seen:
                raise RecordDefinitionError(f"Duplicate field name: {f.name}")
            seen.add(f.name)

        self._key_field = key_fields[0]
        self._data_fields = [f for f in fields if isinstance(f, DataField)]
        self._vector_fields = [f for f in fields if isinstance(f, VectorField)]

    @classmethod
    def from_fields(cls, fields: Iterable[RecordField]) -> RecordDefinition:
        return cls(list(fields))

    @classmethod
    def from_record_class(cls, record_class: Type[BaseModel]) -> RecordDefinition:
        """
        Build a definition from the Annotated markers on a pydantic model.

        A field's pydantic ``alias`` is used as its storage name when the
        marker does not set one. Fields without a marker are ignored.

        Args:
            record_class: The pydantic model class

        Returns:
            The record definition
        """
        if not (isinstance(record_class, type) and issubclass(record_class, BaseModel)):
            raise RecordDefinitionError(
                f"{record_class!r} is not a pydantic model; pass a record definition"
            )

        fields: List[RecordField] = []
        for name, info in record_class.model_fields.items():
            field_type = normalize_type(info.annotation)
            for marker in info.metadata:
                if isinstance(marker, VectorStoreRecordKey):
                    fields.append(
                        KeyField(
                            name=name,
                            storage_name=marker.storage_name or info.alias,
                            field_type=field_type,
                        )
                    )
                elif isinstance(marker, VectorStoreRecordData):
                    fields.append(
                        DataField(
                            name=name,
                            storage_name=marker.storage_name or info.alias,
                            field_type=field_type,
                            is_filterable=marker.is_filterable,
                        )
                    )
                elif isinstance(marker, VectorStoreRecordVector):
                    fields.append(
                        VectorField(
                            name=name,
                            storage_name=marker.storage_name or info.alias,
                            field_type=field_type,
                            dimensions=marker.dimensions,
                            index_kind=marker.index_kind,
                            distance_function=marker.distance_function,
                        )
                    )
        return cls(fields)

    @property
    def key_field(self) -> KeyField:
        return self._key_field

    @property
    def data_fields(self) -> List[DataField]:
        return list(self._data_fields)

    @property
    def vector_fields(self) -> List[VectorField]:
        return list(self._vector_fields)

    @property
    def non_vector_fields(self) -> List[RecordField]:
        return [self._key_field, *self._data_fields]

    @property
    def all_fields(self) -> List[RecordField]:
        return [self._key_field, *self._data_fields, *self._vector_fields]

    def contains_field(self, name: str) -> bool:
        return any(f.name == name for f in self.all_fields)

    def get_field(self, name: str) -> RecordField:
        for f in self.all_fields:
            if f.name == name:
                return f
        raise RecordDefinitionError(f"Field not found: {name}")

    def storage_name_of(self, name: str) -> str:
        return self.get_field(name).effective_storage_name

    def get_vector_field(self, name: Optional[str] = None) -> VectorField:
        """
        Resolve the vector field to search on.

        Args:
            name: Field name; the first vector field when omitted

        Returns:
            The vector field
        """
        if name is None:
            if not self._vector_fields:
                raise RecordDefinitionError("Record definition has no vector fields")
            return self._vector_fields[0]
        field = self.get_field(name)
        if not isinstance(field, VectorField):
            raise RecordDefinitionError(f"Field {name} is not a vector field")
        return field

    def __repr__(self) -> str:
        names = ", ".join(f.name for f in self.all_fields)
        return f"RecordDefinition({names})"


SUPPORTED_DATA_TYPES_DEFAULT: Set[Any] = {
    str,
    int,
    float,
    bool,
    datetime.datetime,
    list,
}


def validate_supported_types(
    fields: Iterable[RecordField], supported: Union[Set[Any], Dict[Any, Any]]
) -> None:
    """
    Check every field type against a backend's supported types.

    Args:
        fields: The fields to check
        supported: Supported Python types (a set, or a type map keyed by type)

    Raises:
        RecordDefinitionError: Listing all unsupported types and the supported set
    """
    supported_types = set(supported)
    unsupported = []
    for field in fields:
        tp = normalize_type(field.field_type)
        if tp not in supported_types:
            unsupported.append(type_name(tp))
    if unsupported:
        supported_names = ", ".join(sorted(type_name(t) for t in supported_types))
        raise RecordDefinitionError(
            f"Unsupported field types found in record definition: {', '.join(unsupported)}. "
            f"Supported types are: {supported_names}"
        )
