"""
sentinel.backend.wttr
"""

from typing import Any, Dict, Optional, Union

import requests

UNITS = {
    "metric": "m",
    "uscs": "u",
    "m/s": "M",
}


class WeatherError(Exception):
    def __init__(self, location: Optional[str], status: Union[int, str]):
        self.location = location
        self.status = status
        super().__init__(
            f"Could not get weather for '{location or 'current location'}': {status}"
        )


class Weather:
    """
    Minimal wttr.in API wrapper. LLM/tool and REST-friendly.
    """

    BASE_URL = "https://wttr.in"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 8.0,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def normalize(location: Optional[str]) -> str:
        """
        Prepares a location string for wttr.in path usage.
        - 'Paris, France' -> 'Paris_-France'
        - 'New York City, New York' -> 'New-York-City_-New-York'
        """
        return location.replace(" ", "-").replace(",", "_") if location else ""

    def url(
        self,
        location: Optional[str] = None,
        format: Optional[str] = "3",
        units: Optional[str] = "metric",
        lang: Optional[str] = None,
    ) -> str:
        params = []
        # wttr.in takes units as bare flags, e.g. ?m or ?u
        if units and units.lower() in UNITS:
            params.append(UNITS[units.lower()])
        if format:
            params.append(f"format={format}")
        if lang:
            params.append(f"lang={lang}")

        url = f"{self.BASE_URL}/{Weather.normalize(location)}"
        if params:
            url += "?" + "&".join(params)
        return url

    def get(
        self,
        location: Optional[str] = None,
        format: Optional[str] = "3",
        units: Optional[str] = "metric",
        lang: Optional[str] = None,
    ) -> Union[str, Dict[str, Any]]:
        """
        Query wttr.in for weather.

        Parameters:
            location (str): City, address, or special string (e.g., 'London', 'JFK', '~Eiffel+Tower').
            format (str): Output format (e.g., 'j1', '3', custom percent notation).
            units (str): 'metric', 'uscs', 'm/s' or None for geo default.
            lang (str): Language code.

        Returns:
            str | dict

        Raises:
            WeatherError: The service answered with a non-200 status.
            requests.RequestException: The service could not be reached.
        """
        resp = self.session.get(
            self.url(location, format, units, lang),
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise WeatherError(location, resp.status_code)
        if format == "j1":
            return resp.json()
        return resp.text

    def get_text(self, location: Optional[str] = None, **kwargs) -> str:
        """
        Return plain-text, single-line, or formatted weather string.
        """
        kwargs.setdefault("format", "3")  # Prettiest one-liner by default
        return str(self.get(location, **kwargs)).strip()
