"""
Plugin discovery for Semantic Kit.

Installed top-level modules whose name starts with the plugin namespace are
imported, and their ``@hookimpl`` functions are registered as hooks.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType

from .registry import registry

# Set up logging
logger = logging.getLogger(__name__)


def discover_plugins(namespace: str = "semantic_kit_plugins") -> None:
    """
    Discover and load plugins from a namespace.

    Args:
        namespace: Prefix of the plugin module names
    """
    for _, name, _ in pkgutil.iter_modules():
        if not name.startswith(namespace):
            continue
        try:
            module = importlib.import_module(name)
        except ImportError as e:
            logger.warning(f"Could not load plugin {name}: {e}")
            continue
        logger.debug(f"Loaded plugin {name}")
        register_module_hooks(module)


def register_module_hooks(module: ModuleType) -> None:
    """
    Register hooks from a module.

    Args:
        module: The module to register hooks from
    """
    for name, obj in inspect.getmembers(module):
        if inspect.isfunction(obj) and getattr(obj, "_is_hookimpl", False):
            registry.register_hook(name, obj)
