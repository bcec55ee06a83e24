"""
Kernel plugins: named groups of kernel functions.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from ..exceptions import KernelFunctionError
from .functions import KernelFunction, KernelFunctionMetadata, validate_function_name

# Set up logging
logger = logging.getLogger(__name__)


class KernelPlugin:
    """
    A named collection of kernel functions.

    Args:
        name: Plugin name, letters, digits and underscores only
        description: Optional description
        functions: Functions to include; their plugin name is set to ``name``
    """

    def __init__(
        self,
        name: str,
        description: Optional[str] = None,
        functions: Optional[Union[Iterable[KernelFunction], Dict[str, KernelFunction]]] = None,
    ):
        self.name = validate_function_name(name)
        self.description = description
        self.functions: Dict[str, KernelFunction] = {}
        if isinstance(functions, dict):
            functions = functions.values()
        for function in functions or []:
            self.add(function)

    def add(self, function: KernelFunction) -> None:
        if function.name in self.functions:
            raise KernelFunctionError(
                f"Function {function.name} already exists in plugin {self.name}"
            )
        self.functions[function.name] = function.with_plugin_name(self.name)

    @classmethod
    def from_object(
        cls, plugin_name: str, obj: Any, description: Optional[str] = None
    ) -> KernelPlugin:
        """
        Build a plugin from every ``@kernel_function`` member of an object.

        Args:
            plugin_name: Name of the plugin
            obj: Instance, class or module holding decorated callables
            description: Optional description, defaults to the object's docstring

        Returns:
            The plugin
        """
        functions = []
        for _, member in inspect.getmembers(obj, callable):
            if getattr(member, "__kernel_function__", False):
                functions.append(KernelFunction.from_method(member, plugin_name))
        if not functions:
            logger.warning(f"No kernel functions found on {obj!r} for plugin {plugin_name}")
        return cls(
            plugin_name,
            description=description if description is not None else inspect.getdoc(obj),
            functions=functions,
        )

    def get_functions_metadata(self) -> List[KernelFunctionMetadata]:
        return [f.metadata for f in self.functions.values()]

    def __getitem__(self, function_name: str) -> KernelFunction:
        try:
            return self.functions[function_name]
        except KeyError as e:
            raise KernelFunctionError(
                f"Function {function_name} not found in plugin {self.name}"
            ) from e

    def __contains__(self, function_name: object) -> bool:
        return function_name in self.functions

    def __iter__(self) -> Iterator[KernelFunction]:
        return iter(self.functions.values())

    def __len__(self) -> int:
        return len(self.functions)

    def __repr__(self) -> str:
        return f"KernelPlugin({self.name}, functions={list(self.functions)})"
