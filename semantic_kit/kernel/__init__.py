"""
Kernel package for Semantic Kit.
"""

from .chat_history import ChatHistory
from .events import (
    FunctionInvokedEvent,
    FunctionInvokingEvent,
    PromptRenderedEvent,
    PromptRenderingEvent,
)
from .function_choice import FunctionChoiceBehavior, FunctionChoiceType
from .functions import (
    FunctionResult,
    KernelArguments,
    KernelFunction,
    KernelFunctionMetadata,
    KernelParameterMetadata,
    kernel_function,
)
from .kernel import Kernel
from .plugin import KernelPlugin
from .settings import PromptExecutionSettings
from .template import PromptTemplate

__all__ = [
    "ChatHistory",
    "FunctionChoiceBehavior",
    "FunctionChoiceType",
    "FunctionInvokedEvent",
    "FunctionInvokingEvent",
    "FunctionResult",
    "Kernel",
    "KernelArguments",
    "KernelFunction",
    "KernelFunctionMetadata",
    "KernelParameterMetadata",
    "KernelPlugin",
    "PromptExecutionSettings",
    "PromptRenderedEvent",
    "PromptRenderingEvent",
    "PromptTemplate",
    "kernel_function",
]
