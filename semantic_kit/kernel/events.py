"""
Events passed to kernel hooks.

Hooks registered for ``function_invoking``, ``function_invoked``,
``prompt_rendering`` and ``prompt_rendered`` receive one of these. The
invoked and rendered events are mutable: a hook may replace ``result`` or
``rendered_prompt`` and the kernel uses the new value.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

FUNCTION_INVOKING = "function_invoking"
FUNCTION_INVOKED = "function_invoked"
PROMPT_RENDERING = "prompt_rendering"
PROMPT_RENDERED = "prompt_rendered"

EVENT_NAMES = (FUNCTION_INVOKING, FUNCTION_INVOKED, PROMPT_RENDERING, PROMPT_RENDERED)


class KernelEvent(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=False)

    function: Any
    arguments: Any = None


class FunctionInvokingEvent(KernelEvent):
    pass


class FunctionInvokedEvent(KernelEvent):
    result: Any = None
    exception: Optional[BaseException] = None


class PromptRenderingEvent(KernelEvent):
    pass


class PromptRenderedEvent(KernelEvent):
    rendered_prompt: str = ""
