"""
Kernel functions.

A kernel function is either a Python callable marked with
``@kernel_function`` or a prompt template sent to the chat service. Both
expose metadata that describes their parameters as JSON schema, which is
what the model sees as a tool definition.
"""

from __future__ import annotations

import copy
import inspect
import logging
import re
import typing
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..exceptions import KernelFunctionError
from .function_choice import full_function_name
from .settings import PromptExecutionSettings

if TYPE_CHECKING:
    from .kernel import Kernel

# Set up logging
logger = logging.getLogger(__name__)

FUNCTION_NAME_PATTERN = re.compile(r"^[0-9A-Za-z_]+$")

# Parameters filled by the kernel rather than by arguments
_INJECTED_PARAMETERS = {"kernel", "arguments"}


def validate_function_name(name: str) -> str:
    if not FUNCTION_NAME_PATTERN.match(name or ""):
        raise KernelFunctionError(
            f"Invalid name {name!r}: only letters, digits and underscores are allowed"
        )
    return name


def kernel_function(
    func: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
):
    """
    Mark a function or method as a kernel function.

    Can be used bare (``@kernel_function``) or with arguments
    (``@kernel_function(name="lookup", description="...")``). The
    description defaults to the docstring.
    """

    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        f.__kernel_function__ = True  # type: ignore[attr-defined]
        f.__kernel_function_name__ = name or f.__name__  # type: ignore[attr-defined]
        f.__kernel_function_description__ = (  # type: ignore[attr-defined]
            description if description is not None else inspect.getdoc(f)
        )
        return f

    if func is not None:
        return decorator(func)
    return decorator


class KernelArguments(dict):
    """Arguments for a kernel function invocation, plus optional execution settings."""

    def __init__(
        self,
        *args: Any,
        execution_settings: Optional[PromptExecutionSettings] = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.execution_settings = execution_settings

    def merged(self, other: Optional[Dict[str, Any]]) -> KernelArguments:
        """A copy with ``other`` layered on top."""
        result = KernelArguments(self, execution_settings=self.execution_settings)
        if other:
            result.update(other)
        return result


class KernelParameterMetadata(BaseModel):
    name: str
    description: Optional[str] = None
    default_value: Any = None
    type_: Optional[str] = None
    is_required: bool = True
    schema_data: Dict[str, Any] = {}


class KernelFunctionMetadata(BaseModel):
    name: str
    plugin_name: Optional[str] = None
    description: Optional[str] = None
    parameters: List[KernelParameterMetadata] = []
    is_prompt: bool = False

    @property
    def fully_qualified_name(self) -> str:
        return full_function_name(self.plugin_name, self.name)

    def to_tool_definition(self) -> Dict[str, Any]:
        """The function as an OpenAI-style tool definition."""
        properties = {}
        for parameter in self.parameters:
            schema = dict(parameter.schema_data)
            if parameter.description:
                schema["description"] = parameter.description
            properties[parameter.name] = schema
        return {
            "type": "function",
            "function": {
                "name": self.fully_qualified_name,
                "description": self.description or "",
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": [p.name for p in self.parameters if p.is_required],
                },
            },
        }


class FunctionResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    function: KernelFunctionMetadata
    value: Any = None
    metadata: Dict[str, Any] = {}

    def __str__(self) -> str:
        return "" if self.value is None else str(self.value)


class KernelFunction(ABC):
    """Base class of kernel functions."""

    def __init__(self, metadata: KernelFunctionMetadata):
        self.metadata = metadata

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def plugin_name(self) -> Optional[str]:
        return self.metadata.plugin_name

    @property
    def description(self) -> Optional[str]:
        return self.metadata.description

    @property
    def fully_qualified_name(self) -> str:
        return self.metadata.fully_qualified_name

    def with_plugin_name(self, plugin_name: str) -> KernelFunction:
        """A shallow copy of this function that belongs to ``plugin_name``."""
        function = copy.copy(self)
        function.metadata = self.metadata.model_copy(update={"plugin_name": plugin_name})
        return function

    @abstractmethod
    def invoke(self, kernel: Kernel, arguments: KernelArguments) -> FunctionResult:
        ...

    @classmethod
    def from_method(
        cls, method: Callable[..., Any], plugin_name: Optional[str] = None
    ) -> KernelFunctionFromMethod:
        return KernelFunctionFromMethod(method, plugin_name)

    @classmethod
    def from_prompt(
        cls,
        prompt: str,
        function_name: str,
        plugin_name: Optional[str] = None,
        description: Optional[str] = None,
        execution_settings: Optional[PromptExecutionSettings] = None,
    ) -> KernelFunctionFromPrompt:
        return KernelFunctionFromPrompt(
            prompt, function_name, plugin_name, description, execution_settings
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.fully_qualified_name})"


def _parameter_metadata(method: Callable[..., Any]) -> List[KernelParameterMetadata]:
    try:
        hints = typing.get_type_hints(method, include_extras=True)
    except (NameError, TypeError):
        hints = {}

    parameters = []
    for param in inspect.signature(method).parameters.values():
        if param.name in _INJECTED_PARAMETERS or param.kind in (
            param.VAR_POSITIONAL,
            param.VAR_KEYWORD,
        ):
            continue
        annotation = hints.get(param.name, str)
        description = None
        if typing.get_origin(annotation) is typing.Annotated:
            annotation, *extras = typing.get_args(annotation)
            description = next((e for e in extras if isinstance(e, str)), None)
        try:
            schema = TypeAdapter(annotation).json_schema()
        except Exception as e:  # pydantic raises several error types for unsupported annotations
            logger.debug(f"No JSON schema for parameter {param.name}: {e}")
            schema = {}
        has_default = param.default is not inspect.Parameter.empty
        parameters.append(
            KernelParameterMetadata(
                name=param.name,
                description=description,
                default_value=param.default if has_default else None,
                type_=getattr(annotation, "__name__", str(annotation)),
                is_required=not has_default,
                schema_data=schema,
            )
        )
    return parameters


class KernelFunctionFromMethod(KernelFunction):
    """
    Kernel function wrapping a Python callable.

    Arguments are matched to parameters by name and validated against the
    parameter annotations, so ``"5"`` from a template becomes ``5`` for an
    ``int`` parameter. Parameters named ``kernel`` and ``arguments`` receive
    the kernel and the full argument set.
    """

    def __init__(self, method: Callable[..., Any], plugin_name: Optional[str] = None):
        name = getattr(method, "__kernel_function_name__", None) or method.__name__
        description = getattr(method, "__kernel_function_description__", None)
        if description is None:
            description = inspect.getdoc(method)
        super().__init__(
            KernelFunctionMetadata(
                name=validate_function_name(name),
                plugin_name=plugin_name,
                description=description,
                parameters=_parameter_metadata(method),
            )
        )
        self.method = method
        try:
            self._hints = typing.get_type_hints(method)
        except (NameError, TypeError):
            self._hints = {}

    def _bind(self, kernel: Kernel, arguments: KernelArguments) -> Dict[str, Any]:
        call_args: Dict[str, Any] = {}
        for param in inspect.signature(self.method).parameters.values():
            if param.name == "kernel":
                call_args["kernel"] = kernel
            elif param.name == "arguments":
                call_args["arguments"] = arguments
            elif param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            elif param.name in arguments:
                value = arguments[param.name]
                if param.name in self._hints and value is not None:
                    try:
                        value = TypeAdapter(self._hints[param.name]).validate_python(value)
                    except ValidationError as e:
                        raise KernelFunctionError(
                            f"Invalid value for parameter {param.name} of "
                            f"{self.fully_qualified_name}: {e}"
                        ) from e
                call_args[param.name] = value
            elif param.default is inspect.Parameter.empty:
                raise KernelFunctionError(
                    f"Missing required argument {param.name} for {self.fully_qualified_name}"
                )
        return call_args

    def invoke(self, kernel: Kernel, arguments: KernelArguments) -> FunctionResult:
        value = self.method(**self._bind(kernel, arguments))
        return FunctionResult(function=self.metadata, value=value)


class KernelFunctionFromPrompt(KernelFunction):
    """Kernel function that renders a prompt template and sends it to the chat service."""

    def __init__(
        self,
        prompt: str,
        function_name: str,
        plugin_name: Optional[str] = None,
        description: Optional[str] = None,
        execution_settings: Optional[PromptExecutionSettings] = None,
    ):
        from .template import PromptTemplate

        self.template = PromptTemplate(prompt)
        super().__init__(
            KernelFunctionMetadata(
                name=validate_function_name(function_name),
                plugin_name=plugin_name,
                description=description,
                parameters=[
                    KernelParameterMetadata(
                        name=variable, type_="str", schema_data={"type": "string"}
                    )
                    for variable in self.template.variable_names
                ],
                is_prompt=True,
            )
        )
        self.execution_settings = execution_settings

    def invoke(self, kernel: Kernel, arguments: KernelArguments) -> FunctionResult:
        from .events import PromptRenderedEvent, PromptRenderingEvent

        kernel.call_hooks(
            "prompt_rendering", PromptRenderingEvent(function=self, arguments=arguments)
        )
        rendered = PromptRenderedEvent(
            function=self,
            arguments=arguments,
            rendered_prompt=self.template.render(kernel, arguments),
        )
        kernel.call_hooks("prompt_rendered", rendered)

        settings = arguments.execution_settings or self.execution_settings
        service = kernel.get_chat_service()
        message = service.complete(
            rendered.rendered_prompt, settings=settings, kernel=kernel, arguments=arguments
        )
        return FunctionResult(
            function=self.metadata,
            value=message,
            metadata={"rendered_prompt": rendered.rendered_prompt},
        )
