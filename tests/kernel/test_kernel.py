"""
Tests for kernel functions, plugins, invocation and hooks.
"""

from typing import Annotated, List

import pytest

from semantic_kit.exceptions import KernelFunctionError, ServiceNotFoundError
from semantic_kit.kernel import (
    FunctionResult,
    Kernel,
    KernelArguments,
    KernelFunction,
    KernelPlugin,
    kernel_function,
)
from semantic_kit.plugins import registry


class MathPlugin:
    """Arithmetic helpers."""

    @kernel_function(description="Add two numbers")
    def add(self, a: Annotated[int, "The first number"], b: int = 2) -> int:
        return a + b

    @kernel_function(name="total")
    def sum_all(self, values: List[float]) -> float:
        """Sum a list of numbers."""
        return sum(values)

    @kernel_function
    def fail(self) -> str:
        raise RuntimeError("boom")

    def helper(self) -> int:
        return 0


@kernel_function
def whoami(kernel: Kernel, arguments: KernelArguments, name: str = "nobody") -> str:
    """Report what was injected."""
    return f"{name} {type(kernel).__name__} {sorted(arguments)}"


@pytest.fixture
def kernel() -> Kernel:
    kernel = Kernel()
    kernel.add_plugin(MathPlugin(), plugin_name="math")
    return kernel


def test_plugin_from_object():
    """Test that only decorated members become functions."""
    plugin = KernelPlugin.from_object("math", MathPlugin())

    assert sorted(f.name for f in plugin) == ["add", "fail", "total"]
    assert "helper" not in plugin
    assert plugin.description == "Arithmetic helpers."
    assert plugin["total"].description == "Sum a list of numbers."
    assert plugin["add"].plugin_name == "math"
    assert len(plugin) == 3

    with pytest.raises(KernelFunctionError):
        plugin["missing"]


def test_plugin_rejects_duplicates_and_bad_names():
    function = KernelFunction.from_method(whoami)
    plugin = KernelPlugin("tools", functions=[function])

    with pytest.raises(KernelFunctionError, match="already exists"):
        plugin.add(KernelFunction.from_method(whoami))

    with pytest.raises(KernelFunctionError, match="Invalid name"):
        KernelPlugin("my-tools")


def test_function_shared_between_plugins():
    function = KernelFunction.from_method(whoami)

    first = KernelPlugin("first", functions=[function])
    second = KernelPlugin("second", functions=[function])

    assert first["whoami"].plugin_name == "first"
    assert second["whoami"].plugin_name == "second"
    assert function.plugin_name is None


def test_function_metadata():
    """Test the parameter metadata and the tool definition."""
    add = KernelPlugin.from_object("math", MathPlugin())["add"]
    a, b = add.metadata.parameters

    assert a.name == "a"
    assert a.description == "The first number"
    assert a.is_required
    assert a.schema_data == {"type": "integer"}
    assert not b.is_required
    assert b.default_value == 2

    assert add.metadata.to_tool_definition() == {
        "type": "function",
        "function": {
            "name": "math-add",
            "description": "Add two numbers",
            "parameters": {
                "type": "object",
                "properties": {
                    "a": {"type": "integer", "description": "The first number"},
                    "b": {"type": "integer"},
                },
                "required": ["a"],
            },
        },
    }


def test_injected_parameters_are_not_metadata():
    function = KernelFunction.from_method(whoami)

    assert [p.name for p in function.metadata.parameters] == ["name"]


def test_invoke_coerces_arguments(kernel):
    result = kernel.invoke(plugin_name="math", function_name="add", a="3")

    assert isinstance(result, FunctionResult)
    assert result.value == 5
    assert str(result) == "5"

    result = kernel.invoke(kernel.get_function("math", "total"), {"values": ["1.5", 2]})
    assert result.value == 3.5


def test_invoke_errors(kernel):
    with pytest.raises(KernelFunctionError, match="Missing required argument a"):
        kernel.invoke(plugin_name="math", function_name="add")

    with pytest.raises(KernelFunctionError, match="Invalid value for parameter a"):
        kernel.invoke(plugin_name="math", function_name="add", a="three")

    with pytest.raises(KernelFunctionError):
        kernel.invoke()


def test_invoke_injects_kernel_and_arguments():
    kernel = Kernel()
    kernel.add_function("people", whoami)

    result = kernel.invoke(plugin_name="people", function_name="whoami", name="ada", x=1)

    assert result.value == "ada Kernel ['name', 'x']"


def test_get_function(kernel):
    """Test looking functions up with and without a plugin name."""
    assert kernel.get_function(None, "add").fully_qualified_name == "math-add"
    assert kernel.get_function_from_fully_qualified_name("math-add").name == "add"
    assert kernel.get_function_from_fully_qualified_name("math.total").name == "total"

    with pytest.raises(KernelFunctionError, match="Plugin not found"):
        kernel.get_function("nope", "add")

    with pytest.raises(KernelFunctionError, match="Function not found"):
        kernel.get_function(None, "nope")

    kernel.add_function("more", KernelFunction.from_method(whoami))
    kernel.add_plugin(KernelPlugin.from_object("math2", MathPlugin()))
    with pytest.raises(KernelFunctionError, match="ambiguous"):
        kernel.get_function(None, "add")


def test_add_plugin_validation(kernel):
    with pytest.raises(KernelFunctionError, match="plugin_name is required"):
        kernel.add_plugin(MathPlugin())

    with pytest.raises(KernelFunctionError, match="does not match"):
        kernel.add_plugin(KernelPlugin("a"), plugin_name="b")


def test_function_listing(kernel):
    names = [m.fully_qualified_name for m in kernel.get_list_of_function_metadata()]

    assert sorted(names) == ["math-add", "math-fail", "math-total"]
    assert len(kernel.get_all_functions()) == 3


def test_missing_services():
    kernel = Kernel()

    with pytest.raises(ServiceNotFoundError):
        kernel.get_chat_service()

    with pytest.raises(ServiceNotFoundError):
        kernel.get_embedding_service()


def test_invocation_hooks(kernel):
    """Test that hooks see invocations and can replace the result."""
    seen = []

    def on_invoking(event):
        seen.append(("invoking", event.function.name, dict(event.arguments)))

    def on_invoked(event):
        seen.append(("invoked", event.result.value, event.exception))
        event.result = FunctionResult(function=event.result.function, value=42)

    kernel.add_hook("function_invoking", on_invoking)
    kernel.add_hook("function_invoked", on_invoked)

    result = kernel.invoke(plugin_name="math", function_name="add", a=1)

    assert result.value == 42
    assert seen == [("invoking", "add", {"a": 1}), ("invoked", 3, None)]


def test_invoked_hook_sees_exceptions(kernel):
    exceptions = []
    kernel.add_hook("function_invoked", lambda event: exceptions.append(event.exception))

    with pytest.raises(RuntimeError, match="boom"):
        kernel.invoke(plugin_name="math", function_name="fail")

    assert len(exceptions) == 1
    assert isinstance(exceptions[0], RuntimeError)


def test_unknown_hook_name(kernel):
    with pytest.raises(ValueError, match="Unknown event"):
        kernel.add_hook("on_everything", lambda event: None)


def test_registry_hooks_run_after_kernel_hooks(kernel, monkeypatch):
    monkeypatch.setattr(registry, "_hooks", {})
    order = []
    kernel.add_hook("function_invoking", lambda event: order.append("kernel"))
    registry.register_hook("function_invoking", lambda event: order.append("registry"))

    kernel.invoke(plugin_name="math", function_name="add", a=1)

    assert order == ["kernel", "registry"]


def test_kernel_arguments_merged():
    arguments = KernelArguments({"a": 1}, execution_settings=None)
    merged = arguments.merged({"b": 2})

    assert merged == {"a": 1, "b": 2}
    assert arguments == {"a": 1}
    assert isinstance(merged, KernelArguments)
