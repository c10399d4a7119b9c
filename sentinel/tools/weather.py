"""
sentinel.tools.weather
"""

from logging import Logger
from typing import Any, Dict, Optional

import requests

from sentinel.backend.wttr import UNITS, Weather, WeatherError
from sentinel.config import config
from sentinel.tools.base import Tool, ToolResult, error_result, text_result


class WeatherTool(Tool):
    name = "weather"
    description = (
        "Get current weather for a location. "
        "Defaults to the configured home location if not specified."
    )

    def __init__(
        self,
        location: Optional[str] = None,
        units: Optional[str] = None,
        backend: Optional[Weather] = None,
    ):
        self.location = location if location is not None else config.get_value("weather.location", "")
        self.units = units if units else config.get_value("weather.units", "metric")
        self.backend = backend if backend else Weather(timeout=config.get_value("weather.timeout", 8.0))

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)
        self.logger.debug("Initialized WeatherTool instance.")

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "The city and state, e.g. San Francisco, CA. Optional - defaults to home.",
                },
                "units": {
                    "type": "string",
                    "enum": ["metric", "uscs"],
                    "description": "The unit system. Default is 'metric'.",
                },
            },
            "required": [],
        }

    def execute(self, args: Dict[str, Any], **kwargs: Any) -> ToolResult:
        location = args.get("location")
        if not isinstance(location, str) or not location:
            location = self.location

        units = args.get("units") or self.units
        if units not in UNITS:
            return error_result(f"unsupported units {units!r}")

        try:
            text = self.backend.get_text(location, units=units)
        except WeatherError as e:
            return error_result(str(e))
        except requests.RequestException as e:
            self.logger.error(f"Weather request failed: {e}")
            return error_result(f"weather request failed: {e}")

        return text_result(text)
