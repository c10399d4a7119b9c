"""
Module: sentinel.tools.base

Common shape shared by every tool exposed to a tool-calling model.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of a tool call.

    for_llm is fed back into the model's context, for_user is shown to the operator.
    They currently carry the same text but are kept apart so either can be redacted later.
    """

    for_llm: str
    for_user: str
    is_error: bool = False


def text_result(text: str, is_error: bool = False) -> ToolResult:
    return ToolResult(for_llm=text, for_user=text, is_error=is_error)


def error_result(message: str) -> ToolResult:
    return text_result(message, is_error=True)


class Tool:
    """Base class for tools registered with the ToolRegistry."""

    name: str = ""
    description: str = ""

    @property
    def parameters(self) -> Dict[str, Any]:
        raise NotImplementedError

    def definition(self) -> Dict[str, Any]:
        """Discovery schema in the chat-completions `tools` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def execute(self, args: Dict[str, Any], **kwargs: Any) -> ToolResult:
        raise NotImplementedError
