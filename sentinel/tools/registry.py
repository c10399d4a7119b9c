"""
Module: sentinel.tools.registry
"""

import json
from logging import Logger
from typing import Any, Dict, Iterable, List, Optional

from sentinel.config import config
from sentinel.tools.base import Tool, ToolResult, error_result
from sentinel.tools.shell import ExecTool
from sentinel.tools.weather import WeatherTool


class ToolRegistry:
    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools if tools is not None else (ExecTool.from_config(), WeatherTool()):
            self.register(tool)

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)
        self.logger.debug(f"Initialized ToolRegistry with {list(self._tools)}")

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def register(self, tool: Tool):
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def definitions(self) -> List[Dict[str, Any]]:
        """Schemas for the `tools` field of a chat completion request."""
        return [tool.definition() for tool in self._tools.values()]

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return error_result(f"Error: Tool '{name}' not found.")
        if arguments is None:
            arguments = {}
        if isinstance(arguments, str):  # raw tool_call arguments from the model
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as e:
                return error_result(f"Error: Invalid arguments for '{name}': {e}")
        if not isinstance(arguments, dict):
            return error_result(f"Error: Tool '{name}' expects an object of arguments.")
        try:
            return tool.execute(arguments)
        except Exception as e:
            self.logger.exception(f"Tool '{name}' raised")
            return error_result(f"Error: Tool raised exception: {e}")

    def request(self, event: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = event["tool_call"]["name"]
        tool_args = event["tool_call"].get("arguments", {})
        return {
            "role": "assistant",
            "tool_calls": [
                {
                    "type": "function",
                    "function": {
                        "name": tool_name,
                        "arguments": json.dumps(tool_args),
                    },
                }
            ],
        }

    def dispatch(self, event: Dict[str, Any]) -> Dict[str, str]:
        tool_name = event["tool_call"]["name"]
        tool_args = event["tool_call"].get("arguments", {})
        result = self.call(tool_name, tool_args)
        return {
            "role": "tool",
            "name": tool_name,
            "content": result.for_llm,
        }
