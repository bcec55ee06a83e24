"""
Semantic Kit: vector stores, kernel functions and chat for LLM apps.

This package provides record collections over in-memory, SQL, Redis and
Azure AI Search vector stores, a kernel of callable functions with prompt
templates, and chat completions that invoke those functions as tools.
"""

import warnings

import litellm

# Upstream warnings from litellm
warnings.filterwarnings(
    "ignore", message="Support for class-based `config` is deprecated"
)
warnings.filterwarnings(
    "ignore", message="There is no current event loop", category=DeprecationWarning
)

from semantic_kit.version import __version__

from .plugins import default
from .core import SemanticKit
from .kernel import ChatHistory, Kernel, KernelArguments, KernelPlugin, kernel_function

litellm.suppress_debug_info = True

__all__ = [
    "ChatHistory",
    "Kernel",
    "KernelArguments",
    "KernelPlugin",
    "SemanticKit",
    "__version__",
    "kernel_function",
]
