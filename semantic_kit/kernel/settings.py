"""
Prompt execution settings.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .function_choice import FunctionChoiceBehavior


class PromptExecutionSettings(BaseModel):
    """
    Settings for one completion request.

    Unknown litellm parameters go in ``extension_data`` and are passed
    through unchanged.
    """

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    function_choice_behavior: Optional[FunctionChoiceBehavior] = None
    extension_data: Dict[str, Any] = {}

    def prepare_request(self) -> Dict[str, Any]:
        request = self.model_dump(
            exclude={"function_choice_behavior", "extension_data"}, exclude_none=True
        )
        request.update(self.extension_data)
        return request
