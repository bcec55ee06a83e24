"""
Function choice behavior: which kernel functions a model may call and
whether the calls are invoked automatically.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel

from ..constants import (
    DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS,
    FUNCTION_NAME_SEPARATOR,
    TOOL_CHOICE,
    TOOLS,
)

if TYPE_CHECKING:
    from .functions import KernelFunction
    from .kernel import Kernel


class FunctionChoiceType(str, Enum):
    AUTO = "auto"
    REQUIRED = "required"
    NONE = "none"


def full_function_name(plugin_name: Optional[str], function_name: str) -> str:
    if not plugin_name:
        return function_name
    return f"{plugin_name}{FUNCTION_NAME_SEPARATOR}{function_name}"


class FunctionChoiceBehavior(BaseModel):
    """
    Controls tool calling for a chat completion.

    ``functions`` holds full function names (``plugin-function``); when it
    is empty every kernel function is offered.
    """

    type: FunctionChoiceType = FunctionChoiceType.AUTO
    auto_invoke_kernel_functions: bool = True
    maximum_auto_invoke_attempts: int = DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS
    functions: Optional[List[str]] = None

    @classmethod
    def auto(
        cls, auto_invoke: bool = True, functions: Optional[List[str]] = None
    ) -> FunctionChoiceBehavior:
        return cls(
            type=FunctionChoiceType.AUTO,
            auto_invoke_kernel_functions=auto_invoke,
            functions=functions,
        )

    @classmethod
    def required(
        cls, auto_invoke: bool = True, functions: Optional[List[str]] = None
    ) -> FunctionChoiceBehavior:
        # One forced round; later requests are sent without tools
        return cls(
            type=FunctionChoiceType.REQUIRED,
            auto_invoke_kernel_functions=auto_invoke,
            maximum_auto_invoke_attempts=1,
            functions=functions,
        )

    @classmethod
    def none(cls, functions: Optional[List[str]] = None) -> FunctionChoiceBehavior:
        return cls(
            type=FunctionChoiceType.NONE,
            auto_invoke_kernel_functions=False,
            functions=functions,
        )

    def is_function_allowed(self, plugin_name: Optional[str], function_name: str) -> bool:
        if not self.functions:
            return True
        return full_function_name(plugin_name, function_name) in self.functions

    def get_functions(self, kernel: Kernel) -> List[KernelFunction]:
        return [
            function
            for function in kernel.get_all_functions()
            if self.is_function_allowed(function.plugin_name, function.name)
        ]

    def configure(self, kernel: Kernel) -> Dict[str, Any]:
        """
        Request parameters (``tools`` and ``tool_choice``) for this behavior.

        Args:
            kernel: Kernel whose functions are offered

        Returns:
            Parameters to merge into the completion request; empty when the
            kernel has no allowed functions
        """
        tools = [f.metadata.to_tool_definition() for f in self.get_functions(kernel)]
        if not tools:
            return {}
        return {TOOLS: tools, TOOL_CHOICE: self.type.value}
