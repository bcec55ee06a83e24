"""
The Kernel for Semantic Kit.

The kernel holds plugins of kernel functions and the AI services they use,
invokes functions by name, and runs hooks around function invocation and
prompt rendering.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Union

from ..constants import FUNCTION_NAME_SEPARATOR
from ..exceptions import KernelFunctionError, ServiceNotFoundError
from ..plugins import registry
from .events import (
    EVENT_NAMES,
    FUNCTION_INVOKED,
    FUNCTION_INVOKING,
    FunctionInvokedEvent,
    FunctionInvokingEvent,
)
from .functions import FunctionResult, KernelArguments, KernelFunction, KernelFunctionMetadata
from .plugin import KernelPlugin
from .settings import PromptExecutionSettings

if TYPE_CHECKING:
    from ..config import KitSettings
    from ..services.chat_completion import ChatCompletionService
    from ..services.embedding import TextEmbeddingService

# Set up logging
logger = logging.getLogger(__name__)


class Kernel:
    """
    Container for plugins and AI services.

    Args:
        chat_service: Service used by prompt functions and chat
        embedding_service: Service used for text embeddings
        plugins: Plugins to add
    """

    def __init__(
        self,
        chat_service: Optional[ChatCompletionService] = None,
        embedding_service: Optional[TextEmbeddingService] = None,
        plugins: Optional[Iterable[KernelPlugin]] = None,
    ):
        self.chat_service = chat_service
        self.embedding_service = embedding_service
        self.plugins: Dict[str, KernelPlugin] = {}
        self._hooks: Dict[str, List[Callable[..., Any]]] = {}
        for plugin in plugins or []:
            self.add_plugin(plugin)

    @classmethod
    def from_settings(cls, settings: Optional[KitSettings] = None) -> Kernel:
        """Build a kernel with the default chat and embedding services."""
        from ..config import get_settings
        from ..services.chat_completion import ChatCompletionService
        from ..services.embedding import TextEmbeddingService

        settings = settings or get_settings()
        return cls(
            chat_service=ChatCompletionService(
                settings.completion_model,
                max_auto_invoke_attempts=settings.max_auto_invoke_attempts,
            ),
            embedding_service=TextEmbeddingService(settings.embedding_model),
        )

    # Services

    def get_chat_service(self) -> ChatCompletionService:
        if self.chat_service is None:
            raise ServiceNotFoundError("No chat completion service is configured")
        return self.chat_service

    def get_embedding_service(self) -> TextEmbeddingService:
        if self.embedding_service is None:
            raise ServiceNotFoundError("No embedding service is configured")
        return self.embedding_service

    # Plugins and functions

    def add_plugin(
        self,
        plugin: Union[KernelPlugin, Any],
        plugin_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> KernelPlugin:
        """
        Add a plugin.

        Args:
            plugin: A KernelPlugin, or an object with ``@kernel_function`` members
            plugin_name: Name for the plugin, required for objects
            description: Optional description for objects

        Returns:
            The added plugin
        """
        if not isinstance(plugin, KernelPlugin):
            if not plugin_name:
                raise KernelFunctionError("plugin_name is required when adding an object")
            plugin = KernelPlugin.from_object(plugin_name, plugin, description)
        elif plugin_name and plugin_name != plugin.name:
            raise KernelFunctionError(
                f"Plugin name {plugin_name} does not match plugin {plugin.name}"
            )
        self.plugins[plugin.name] = plugin
        logger.debug(f"Added plugin {plugin.name} with {len(plugin)} functions")
        return plugin

    def add_function(
        self,
        plugin_name: str,
        function: Union[KernelFunction, Callable[..., Any]],
    ) -> KernelFunction:
        """
        Add a function to a plugin, creating the plugin if needed.

        Args:
            plugin_name: Plugin to add the function to
            function: A KernelFunction or a plain callable

        Returns:
            The added function
        """
        if not isinstance(function, KernelFunction):
            function = KernelFunction.from_method(function, plugin_name)
        plugin = self.plugins.get(plugin_name) or self.add_plugin(KernelPlugin(plugin_name))
        plugin.add(function)
        return plugin[function.name]

    def get_plugin(self, plugin_name: str) -> KernelPlugin:
        try:
            return self.plugins[plugin_name]
        except KeyError as e:
            raise KernelFunctionError(f"Plugin not found: {plugin_name}") from e

    def get_function(self, plugin_name: Optional[str], function_name: str) -> KernelFunction:
        """
        Look up a function.

        Args:
            plugin_name: Plugin name, or None to search every plugin
            function_name: Function name

        Raises:
            KernelFunctionError: If no function (or more than one, without a
                plugin name) matches
        """
        if plugin_name:
            return self.get_plugin(plugin_name)[function_name]

        matches = [p[function_name] for p in self.plugins.values() if function_name in p]
        if not matches:
            raise KernelFunctionError(f"Function not found: {function_name}")
        if len(matches) > 1:
            raise KernelFunctionError(
                f"Function {function_name} is ambiguous, found in plugins "
                f"{', '.join(m.plugin_name or '' for m in matches)}"
            )
        return matches[0]

    def get_function_from_fully_qualified_name(self, name: str) -> KernelFunction:
        """Look up ``plugin-function`` (or ``plugin.function``)."""
        for separator in (FUNCTION_NAME_SEPARATOR, "."):
            if separator in name:
                plugin_name, function_name = name.split(separator, 1)
                return self.get_function(plugin_name, function_name)
        return self.get_function(None, name)

    def get_all_functions(self) -> List[KernelFunction]:
        return [f for plugin in self.plugins.values() for f in plugin]

    def get_list_of_function_metadata(self) -> List[KernelFunctionMetadata]:
        return [f.metadata for f in self.get_all_functions()]

    # Hooks

    def add_hook(self, event_name: str, hook_func: Callable[..., Any]) -> None:
        """
        Register a hook on this kernel.

        Hooks are called with the event object. Hooks registered in the
        global plugin registry under the same name run after the kernel's.
        """
        if event_name not in EVENT_NAMES:
            raise ValueError(
                f"Unknown event {event_name}, expected one of {', '.join(EVENT_NAMES)}"
            )
        self._hooks.setdefault(event_name, []).append(hook_func)

    def call_hooks(self, event_name: str, event: Any) -> None:
        for hook_func in self._hooks.get(event_name, []):
            hook_func(event)
        registry.call_hooks(event_name, event)

    # Invocation

    def invoke(
        self,
        function: Optional[KernelFunction] = None,
        arguments: Optional[Dict[str, Any]] = None,
        plugin_name: Optional[str] = None,
        function_name: Optional[str] = None,
        **kwargs: Any,
    ) -> FunctionResult:
        """
        Invoke a kernel function.

        Args:
            function: The function, or None to look it up by name
            arguments: Arguments for the function
            plugin_name: Plugin of the function to look up
            function_name: Name of the function to look up
            **kwargs: Extra arguments, merged over ``arguments``

        Returns:
            The function result, possibly replaced by a ``function_invoked`` hook
        """
        if function is None:
            if not function_name:
                raise KernelFunctionError("Either function or function_name must be given")
            function = self.get_function(plugin_name, function_name)

        if not isinstance(arguments, KernelArguments):
            arguments = KernelArguments(arguments or {})
        arguments = arguments.merged(kwargs)

        self.call_hooks(
            FUNCTION_INVOKING, FunctionInvokingEvent(function=function, arguments=arguments)
        )
        logger.info(f"Invoking kernel function {function.fully_qualified_name}")

        invoked = FunctionInvokedEvent(function=function, arguments=arguments)
        try:
            invoked.result = function.invoke(self, arguments)
        except Exception as e:
            logger.error(f"Kernel function {function.fully_qualified_name} failed: {e}")
            invoked.exception = e
            self.call_hooks(FUNCTION_INVOKED, invoked)
            raise
        self.call_hooks(FUNCTION_INVOKED, invoked)
        return invoked.result

    def invoke_prompt(
        self,
        prompt: str,
        arguments: Optional[Dict[str, Any]] = None,
        settings: Optional[PromptExecutionSettings] = None,
        function_name: Optional[str] = None,
        plugin_name: Optional[str] = None,
    ) -> FunctionResult:
        """
        Render a prompt template and send it to the chat service.

        Args:
            prompt: Template text
            arguments: Template arguments
            settings: Execution settings for the request
            function_name: Name for the temporary prompt function
            plugin_name: Plugin name for the temporary prompt function

        Returns:
            The function result holding the assistant message
        """
        function = KernelFunction.from_prompt(
            prompt,
            function_name or f"prompt_{uuid.uuid4().hex}",
            plugin_name=plugin_name,
            execution_settings=settings,
        )
        return self.invoke(function, arguments)
