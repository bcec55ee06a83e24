"""
Exception types raised by Semantic Kit.
"""


class SemanticKitError(Exception):
    """Base class for all Semantic Kit errors."""


class VectorStoreError(SemanticKitError):
    """A vector store operation failed."""


class RecordDefinitionError(SemanticKitError, ValueError):
    """A record definition is invalid or references an unknown field."""


class FilterError(VectorStoreError):
    """A search filter cannot be translated for a backend."""


class CollectionNotFoundError(VectorStoreError):
    """The requested collection does not exist."""


class KernelFunctionError(SemanticKitError):
    """A kernel function could not be found or invoked."""


class TemplateSyntaxError(SemanticKitError, ValueError):
    """A prompt template is malformed."""


class ServiceNotFoundError(SemanticKitError):
    """No AI service is configured for the requested operation."""
