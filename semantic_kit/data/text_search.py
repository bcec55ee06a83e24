"""
Text search over a vector store record collection.

The query text is embedded with a TextEmbeddingService and the resulting
vector is searched in the collection. Records are turned into strings or
TextSearchResult objects with pluggable mappers.
"""

from __future__ import annotations

import logging
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    TypeVar,
)

from pydantic import BaseModel, ConfigDict

from .collection import VectorStoreRecordCollection
from .definition import RecordDefinition, normalize_type
from .filters import VectorSearchFilter
from .options import VectorSearchOptions
from .results import VectorSearchResults

if TYPE_CHECKING:
    from ..kernel.plugin import KernelPlugin
    from ..services.embedding import TextEmbeddingService

# Set up logging
logger = logging.getLogger(__name__)

T = TypeVar("T")


class TextSearchOptions(BaseModel):
    top: int = 3
    skip: int = 0
    filter: Optional[VectorSearchFilter] = None
    include_total_count: bool = False


class TextSearchResult(BaseModel):
    name: Optional[str] = None
    value: str
    link: Optional[str] = None


class KernelSearchResults(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    results: List[T] = []
    total_count: Optional[int] = None
    metadata: Dict[str, Any] = {}

    def __iter__(self):  # type: ignore[override]
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)


def _field_value(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _first_text_field(definition: RecordDefinition) -> Optional[str]:
    for field in definition.data_fields:
        if normalize_type(field.field_type) is str:
            return field.name
    return None


class VectorStoreTextSearch:
    """
    Text search backed by a record collection.

    Args:
        collection: Collection to search
        embedding_service: Service that embeds the query text
        string_mapper: record -> str; defaults to the first string data field
        result_mapper: record -> TextSearchResult; defaults to the key as the
            name, the string mapper's text as the value and a ``link`` field
            when the record has one
    """

    def __init__(
        self,
        collection: VectorStoreRecordCollection[Any],
        embedding_service: TextEmbeddingService,
        string_mapper: Optional[Callable[[Any], str]] = None,
        result_mapper: Optional[Callable[[Any], TextSearchResult]] = None,
    ):
        self.collection = collection
        self.embedding_service = embedding_service
        self._text_field = _first_text_field(collection.definition)
        self.string_mapper = string_mapper or self._default_string_mapper
        self.result_mapper = result_mapper or self._default_result_mapper

    def _default_string_mapper(self, record: Any) -> str:
        if self._text_field is None:
            return str(record)
        value = _field_value(record, self._text_field)
        return "" if value is None else str(value)

    def _default_result_mapper(self, record: Any) -> TextSearchResult:
        key = _field_value(record, self.collection.definition.key_field.name)
        return TextSearchResult(
            name=None if key is None else str(key),
            value=self.string_mapper(record),
            link=_field_value(record, "link"),
        )

    def _search(
        self, query: str, options: Optional[TextSearchOptions]
    ) -> VectorSearchResults[Any]:
        options = options or TextSearchOptions()
        vector = self.embedding_service.generate_embedding(query)
        logger.debug(f"Searching {self.collection.collection_name} for {query!r}")
        return self.collection.search(
            vector,
            VectorSearchOptions(
                filter=options.filter,
                limit=options.top,
                offset=options.skip,
                include_total_count=options.include_total_count,
            ),
        )

    def search(
        self, query: str, options: Optional[TextSearchOptions] = None
    ) -> KernelSearchResults[str]:
        results = self._search(query, options)
        return KernelSearchResults(
            results=[self.string_mapper(r.record) for r in results],
            total_count=results.total_count,
            metadata=results.metadata,
        )

    def get_text_search_results(
        self, query: str, options: Optional[TextSearchOptions] = None
    ) -> KernelSearchResults[TextSearchResult]:
        results = self._search(query, options)
        return KernelSearchResults(
            results=[self.result_mapper(r.record) for r in results],
            total_count=results.total_count,
            metadata=results.metadata,
        )

    def get_search_results(
        self, query: str, options: Optional[TextSearchOptions] = None
    ) -> KernelSearchResults[Any]:
        results = self._search(query, options)
        return KernelSearchResults(
            results=[r.record for r in results],
            total_count=results.total_count,
            metadata=results.metadata,
        )

    def create_plugin(
        self, plugin_name: str = "memory", description: Optional[str] = None
    ) -> KernelPlugin:
        """
        A kernel plugin with a single ``search`` function over this collection.

        Args:
            plugin_name: Name of the plugin
            description: Description of the search function

        Returns:
            The plugin, ready for ``Kernel.add_plugin``
        """
        from ..kernel.functions import KernelFunction, kernel_function
        from ..kernel.plugin import KernelPlugin

        @kernel_function(
            name="search",
            description=description
            or f"Search {self.collection.collection_name} for text relevant to a query",
        )
        def search(
            query: Annotated[str, "What to search for"],
            count: Annotated[int, "Number of results"] = 3,
        ) -> str:
            results = self.search(query, TextSearchOptions(top=count))
            return "\n".join(results.results)

        return KernelPlugin(plugin_name, functions=[KernelFunction.from_method(search)])
