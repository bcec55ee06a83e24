"""
Plugin system for Semantic Kit.

This module provides a plugin system for extending Semantic Kit, including
named embedding/completion functions, vector stores and hooks.
"""

from __future__ import annotations

from typing import Any, List, Optional, Type

from ..protocols.base import CompletionFunction, EmbeddingFunction, VectorStoreProtocol
from .discovery import discover_plugins, register_module_hooks
from .registry import PluginRegistry, hookimpl, registry


def register_embedding_fn(
    fn: EmbeddingFunction, name: str, aliases: Optional[List[str]] = None
) -> None:
    registry.register_embedding_fn(fn, name, aliases)


def get_embedding_fn(name: str) -> Optional[EmbeddingFunction]:
    return registry.get_embedding_fn(name)


def register_completion_fn(
    completion_fn: CompletionFunction, name: str, aliases: Optional[List[str]] = None
) -> None:
    registry.register_completion_fn(completion_fn, name, aliases)


def get_completion_fn(name: str) -> Optional[CompletionFunction]:
    return registry.get_completion_fn(name)


def register_vector_store(
    store_class: Type[VectorStoreProtocol],
    name: str,
    aliases: Optional[List[str]] = None,
) -> None:
    registry.register_vector_store(store_class, name, aliases)


def get_vector_store(name: str) -> Optional[Type[VectorStoreProtocol]]:
    return registry.get_vector_store(name)


def list_vector_stores() -> List[str]:
    return registry.list_vector_stores()


def call_hooks(hook_name: str, *args, **kwargs) -> List[Any]:
    """
    Call all hook functions for a hook name.

    Args:
        hook_name: The name of the hook
        *args: Positional arguments to pass to the hook functions
        **kwargs: Keyword arguments to pass to the hook functions

    Returns:
        List of results from the hook functions
    """
    return registry.call_hooks(hook_name, *args, **kwargs)


__all__ = [
    "PluginRegistry",
    "call_hooks",
    "discover_plugins",
    "get_completion_fn",
    "get_embedding_fn",
    "get_vector_store",
    "hookimpl",
    "list_vector_stores",
    "register_completion_fn",
    "register_embedding_fn",
    "register_module_hooks",
    "register_vector_store",
    "registry",
]

# Initialize the plugin system
discover_plugins()
