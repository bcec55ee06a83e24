"""
Chat completion service for Semantic Kit.

This module sends chat histories to a completion function and, when the
settings allow it, invokes the kernel functions the model asks for and
feeds their results back until the model answers in plain text.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..constants import (
    CONTENT,
    DEFAULT_COMPLETION_MODEL,
    DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS,
    MESSAGES,
    MODEL,
)
from ..exceptions import ServiceNotFoundError
from ..kernel.chat_history import ChatHistory
from ..kernel.function_choice import FunctionChoiceBehavior, FunctionChoiceType
from ..kernel.functions import KernelArguments
from ..kernel.kernel import Kernel
from ..kernel.settings import PromptExecutionSettings
from ..plugins import registry
from ..protocols.base import CompletionFunction
from ..utils.completion import (
    extract_content_from_response,
    extract_tool_calls,
    parse_tool_arguments,
)

# Set up logging
logger = logging.getLogger(__name__)


class ChatCompletionService:
    """
    Chat completions with automatic kernel function invocation.

    Args:
        model: Default model name, overridden by ``settings.model``
        completion_fn: Completion function; looked up in the plugin registry
            by model name, then ``default``
        max_auto_invoke_attempts: Upper bound on tool-calling rounds
    """

    def __init__(
        self,
        model: str = DEFAULT_COMPLETION_MODEL,
        completion_fn: Optional[CompletionFunction] = None,
        max_auto_invoke_attempts: int = DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS,
    ):
        completion_fn = (
            completion_fn
            or registry.get_completion_fn(model)
            or registry.get_completion_fn("default")
        )
        if completion_fn is None:
            raise ServiceNotFoundError(f"No completion function registered for {model}")
        self.model = model
        self.completion_fn = completion_fn
        self.max_auto_invoke_attempts = max_auto_invoke_attempts

    def _complete(
        self,
        chat_history: ChatHistory,
        settings: PromptExecutionSettings,
        tool_params: Dict[str, Any],
    ) -> Any:
        request: Dict[str, Any] = {MODEL: self.model, **settings.prepare_request()}
        request[MESSAGES] = chat_history.to_messages()
        request.update(tool_params)
        return self.completion_fn(**request)

    def _invoke_tool_call(
        self,
        kernel: Kernel,
        tool_call: Dict[str, Any],
        behavior: FunctionChoiceBehavior,
        arguments: Optional[KernelArguments],
    ) -> str:
        name = tool_call["function"]["name"]
        try:
            function = kernel.get_function_from_fully_qualified_name(name)
            if not behavior.is_function_allowed(function.plugin_name, function.name):
                raise ValueError(f"Function {name} is not allowed")
            call_arguments = (arguments or KernelArguments()).merged(
                parse_tool_arguments(tool_call["function"]["arguments"])
            )
            return str(kernel.invoke(function, call_arguments))
        except Exception as e:  # reported back to the model as the tool result
            logger.warning(f"Tool call {name} failed: {e}")
            return f"Error: {e}"

    def get_chat_message_contents(
        self,
        chat_history: ChatHistory,
        settings: Optional[PromptExecutionSettings] = None,
        kernel: Optional[Kernel] = None,
        arguments: Optional[KernelArguments] = None,
    ) -> List[Dict[str, Any]]:
        """
        Complete a chat history.

        Assistant and tool messages are appended to ``chat_history`` as they
        are produced. With an ``auto`` or ``required`` function choice and a
        kernel, tool calls are invoked for up to the configured number of
        rounds; the request after the last round is sent without tools so
        the model has to answer.

        Args:
            chat_history: The conversation so far
            settings: Execution settings, including the function choice behavior
            kernel: Kernel whose functions may be called
            arguments: Base arguments for invoked functions

        Returns:
            The messages appended to the history, the final assistant message last
        """
        settings = settings or PromptExecutionSettings()
        behavior = settings.function_choice_behavior
        start = len(chat_history)

        if kernel is None or behavior is None:
            response = self._complete(chat_history, settings, {})
            chat_history.add_assistant_message(extract_content_from_response(response))
            return chat_history.messages[start:]

        auto_invoke = (
            behavior.type != FunctionChoiceType.NONE
            and behavior.auto_invoke_kernel_functions
        )
        attempts = (
            min(behavior.maximum_auto_invoke_attempts, self.max_auto_invoke_attempts)
            if auto_invoke
            else 1
        )

        for attempt in range(attempts + 1):
            tool_params = behavior.configure(kernel) if attempt < attempts else {}
            response = self._complete(chat_history, settings, tool_params)
            content = extract_content_from_response(response)
            tool_calls = extract_tool_calls(response) if tool_params else []

            if not tool_calls:
                chat_history.add_assistant_message(content)
                break

            chat_history.add_assistant_message(content or None, tool_calls)
            if not auto_invoke:
                break

            logger.info(f"Invoking {len(tool_calls)} tool calls, round {attempt + 1}")
            for tool_call in tool_calls:
                chat_history.add_tool_message(
                    self._invoke_tool_call(kernel, tool_call, behavior, arguments),
                    tool_call_id=tool_call["id"],
                    name=tool_call["function"]["name"],
                )

        return chat_history.messages[start:]

    def get_chat_message_content(
        self,
        chat_history: ChatHistory,
        settings: Optional[PromptExecutionSettings] = None,
        kernel: Optional[Kernel] = None,
        arguments: Optional[KernelArguments] = None,
    ) -> Dict[str, Any]:
        """The final assistant message of get_chat_message_contents."""
        return self.get_chat_message_contents(chat_history, settings, kernel, arguments)[-1]

    def complete(
        self,
        prompt: str,
        settings: Optional[PromptExecutionSettings] = None,
        kernel: Optional[Kernel] = None,
        arguments: Optional[KernelArguments] = None,
    ) -> str:
        """
        Send a single user prompt.

        Returns:
            The assistant's text answer
        """
        chat_history = ChatHistory()
        chat_history.add_user_message(prompt)
        message = self.get_chat_message_content(chat_history, settings, kernel, arguments)
        return message.get(CONTENT) or ""
