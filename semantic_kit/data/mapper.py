"""
Mapping between records and storage models.

A storage model is a plain dict keyed by each field's effective storage
name. Records are pydantic models, or plain dicts keyed by field name when
the collection is given an explicit record definition.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import VectorStoreError
from .definition import RecordDefinition

TRecord = TypeVar("TRecord")


class RecordMapper(Generic[TRecord]):
    """
    Converts records to and from storage models.

    Custom conversions can be supplied with ``to_storage_fn`` and
    ``from_storage_fn``; they receive and return the same shapes as the
    default implementation.
    """

    def __init__(
        self,
        record_type: Optional[Type[TRecord]],
        definition: RecordDefinition,
        to_storage_fn: Optional[Callable[[TRecord], Dict[str, Any]]] = None,
        from_storage_fn: Optional[Callable[[Dict[str, Any], bool], TRecord]] = None,
    ):
        self.record_type = record_type
        self.definition = definition
        self._to_storage_fn = to_storage_fn
        self._from_storage_fn = from_storage_fn

    @property
    def _is_model(self) -> bool:
        return isinstance(self.record_type, type) and issubclass(
            self.record_type, BaseModel
        )

    def _field_values(self, record: TRecord) -> Dict[str, Any]:
        if isinstance(record, BaseModel):
            return {
                f.name: getattr(record, f.name, None) for f in self.definition.all_fields
            }
        if isinstance(record, dict):
            return dict(record)
        raise VectorStoreError(
            f"Records must be pydantic models or dicts, got {type(record).__name__}"
        )

    def key_of(self, record: TRecord) -> str:
        key = self._field_values(record).get(self.definition.key_field.name)
        if key is None:
            raise VectorStoreError(
                f"Record is missing its key field {self.definition.key_field.name}"
            )
        return key

    def to_storage_model(self, record: TRecord) -> Dict[str, Any]:
        """
        Convert a record to a storage model.

        Args:
            record: The record

        Returns:
            Dict keyed by storage name
        """
        if self._to_storage_fn is not None:
            return self._to_storage_fn(record)
        values = self._field_values(record)
        return {
            f.effective_storage_name: values.get(f.name)
            for f in self.definition.all_fields
        }

    def to_record(
        self, storage_model: Dict[str, Any], include_vectors: bool = False
    ) -> TRecord:
        """
        Convert a storage model back into a record.

        Vector fields are left out unless requested; pydantic records then
        fall back to the field default.

        Args:
            storage_model: Dict keyed by storage name
            include_vectors: Whether to populate vector fields

        Returns:
            The record
        """
        if self._from_storage_fn is not None:
            return self._from_storage_fn(storage_model, include_vectors)

        fields = (
            self.definition.all_fields
            if include_vectors
            else self.definition.non_vector_fields
        )
        values = {
            f.name: storage_model[f.effective_storage_name]
            for f in fields
            if f.effective_storage_name in storage_model
        }
        if not self._is_model:
            return values  # type: ignore[return-value]
        model_fields = self.record_type.model_fields  # type: ignore[union-attr]
        # Validation input goes by alias where the model declares one
        by_alias = {
            (model_fields[name].alias if name in model_fields else None) or name: value
            for name, value in values.items()
        }
        try:
            return self.record_type.model_validate(by_alias)  # type: ignore[union-attr]
        except ValidationError as e:
            raise VectorStoreError(
                f"Could not map storage model to {self.record_type.__name__}: {e}"  # type: ignore[union-attr]
            ) from e
