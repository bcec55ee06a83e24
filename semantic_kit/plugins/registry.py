"""
Plugin registry for Semantic Kit.

The registry maps names (and aliases) to embedding functions, completion
functions and vector store factories, and keeps lists of hook functions.
Registration checks protocol conformance up front.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Type, get_type_hints

from ..protocols.base import (
    CompletionFunction,
    EmbeddingFunction,
    VectorStoreProtocol,
)

# Set up logging
logger = logging.getLogger(__name__)


def check_signature_compatibility(
    fn: Callable, protocol_class: Type[Protocol]
) -> tuple[bool, str]:
    """
    Check if a function's signature is compatible with a protocol.

    Args:
        fn: The function to check
        protocol_class: The protocol class to check against

    Returns:
        A tuple of (is_compatible, error_message)
    """
    try:
        protocol_hints = get_type_hints(protocol_class.__call__)
        function_hints = get_type_hints(fn)
    except (NameError, TypeError) as e:
        return False, f"Error checking signature compatibility: {e}"

    protocol_hints.pop("self", None)

    for param_name, param_type in protocol_hints.items():
        if param_name == "return":
            continue
        if param_name not in function_hints:
            return False, f"Function missing required parameter: {param_name}"
        if function_hints[param_name] != param_type:
            return (
                False,
                f"Parameter '{param_name}' has type {function_hints[param_name]}, "
                f"but protocol expects {param_type}",
            )

    if "return" in protocol_hints and "return" in function_hints:
        if protocol_hints["return"] != function_hints["return"]:
            return (
                False,
                f"Return type {function_hints['return']} is not compatible with "
                f"protocol return type {protocol_hints['return']}",
            )

    return True, ""


def _check_protocol_conformance(
    obj: Any, protocol_class: Type[Protocol], obj_name: Optional[str] = None
) -> None:
    """
    Check if an object conforms to a protocol.

    Args:
        obj: The object to check
        protocol_class: The protocol class to check against
        obj_name: Optional name to use in error messages

    Raises:
        TypeError: If the object does not conform to the protocol
    """
    name = obj_name or getattr(obj, "__name__", str(obj))

    is_compatible, error_msg = check_signature_compatibility(obj, protocol_class)
    if not is_compatible:
        raise TypeError(
            f"Function {name} does not conform to {protocol_class.__name__} protocol: {error_msg}"
        )

    if not isinstance(obj, protocol_class):
        raise TypeError(
            f"Function {name} does not conform to {protocol_class.__name__} protocol at runtime"
        )


class PluginRegistry:
    """Registry for Semantic Kit plugins."""

    def __init__(self):
        self._embedding_fns: Dict[str, EmbeddingFunction] = {}
        self._completion_fns: Dict[str, CompletionFunction] = {}
        self._vector_stores: Dict[str, Any] = {}
        self._hooks: Dict[str, List[Callable[..., Any]]] = {}

    @staticmethod
    def _register(
        table: Dict[str, Any], obj: Any, name: str, aliases: Optional[List[str]]
    ) -> None:
        table[name] = obj
        for alias in aliases or []:
            table[alias] = obj

    def register_embedding_fn(
        self,
        embedding_fn: EmbeddingFunction,
        name: str,
        aliases: Optional[List[str]] = None,
    ) -> None:
        """
        Register an embedding function.

        Args:
            embedding_fn: The embedding function to register
            name: The name of the embedding function
            aliases: Optional list of aliases for the function

        Raises:
            TypeError: If embedding_fn does not conform to EmbeddingFunction protocol
        """
        _check_protocol_conformance(embedding_fn, EmbeddingFunction)
        self._register(self._embedding_fns, embedding_fn, name, aliases)

    def get_embedding_fn(self, name: str) -> Optional[EmbeddingFunction]:
        return self._embedding_fns.get(name)

    def register_completion_fn(
        self,
        completion_fn: CompletionFunction,
        name: str,
        aliases: Optional[List[str]] = None,
    ) -> None:
        """
        Register a completion function.

        Args:
            completion_fn: The completion function to register
            name: The name of the completion function
            aliases: Optional list of aliases for the function

        Raises:
            TypeError: If completion_fn does not conform to CompletionFunction protocol
        """
        _check_protocol_conformance(completion_fn, CompletionFunction)
        self._register(self._completion_fns, completion_fn, name, aliases)

    def get_completion_fn(self, name: str) -> Optional[CompletionFunction]:
        return self._completion_fns.get(name)

    def register_vector_store(
        self,
        store_class: Type[VectorStoreProtocol],
        name: str,
        aliases: Optional[List[str]] = None,
    ) -> None:
        """
        Register a vector store class.

        Args:
            store_class: The vector store class to register
            name: The name of the vector store
            aliases: Optional list of aliases for the store

        Raises:
            TypeError: If store_class does not conform to VectorStoreProtocol
        """
        if not isinstance(store_class, VectorStoreProtocol):
            raise TypeError(
                f"{getattr(store_class, '__name__', store_class)} does not conform to VectorStoreProtocol"
            )
        self._register(self._vector_stores, store_class, name, aliases)

    def get_vector_store(self, name: str) -> Optional[Type[VectorStoreProtocol]]:
        return self._vector_stores.get(name)

    def list_vector_stores(self) -> List[str]:
        return sorted(self._vector_stores)

    def register_hook(self, hook_name: str, hook_func: Callable[..., Any]) -> None:
        """
        Register a hook function.

        Args:
            hook_name: The name of the hook
            hook_func: The hook function to register
        """
        self._hooks.setdefault(hook_name, []).append(hook_func)

    def get_hooks(self, hook_name: str) -> List[Callable[..., Any]]:
        return self._hooks.get(hook_name, [])

    def call_hooks(self, hook_name: str, *args, **kwargs) -> List[Any]:
        """
        Call all hook functions for a hook name.

        Args:
            hook_name: The name of the hook
            *args: Positional arguments to pass to the hook functions
            **kwargs: Keyword arguments to pass to the hook functions

        Returns:
            List of results from the hook functions
        """
        return [hook_func(*args, **kwargs) for hook_func in self.get_hooks(hook_name)]


# Global plugin registry
registry = PluginRegistry()


def hookimpl(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator for marking a function as a hook implementation.

    The function name is the hook name, e.g. ``function_invoked``.
    """
    func._is_hookimpl = True  # type: ignore[attr-defined]
    return func
