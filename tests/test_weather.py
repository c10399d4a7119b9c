"""
Tests for the wttr.in backend and the weather tool, using a fake HTTP session.
"""

import pytest
import requests

from sentinel.backend.wttr import Weather, WeatherError
from sentinel.tools.weather import WeatherTool


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text
        self.payload = payload

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(text="Paris: ⛅️ +12°C\n")
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


class TestWeather:
    @pytest.mark.parametrize(
        "location, expected",
        [
            ("Paris, France", "Paris_-France"),
            ("New York City, New York", "New-York-City_-New-York"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize(self, location, expected):
        assert Weather.normalize(location) == expected

    def test_url(self):
        wx = Weather(session=FakeSession())
        assert wx.url("Paris, France", format="3", units="uscs") == "https://wttr.in/Paris_-France?u&format=3"
        assert wx.url("", format=None, units=None) == "https://wttr.in/"

    def test_get_text(self):
        session = FakeSession()
        wx = Weather(session=session)
        assert wx.get_text("Paris") == "Paris: ⛅️ +12°C"
        assert session.urls == ["https://wttr.in/Paris?m&format=3"]

    def test_get_json(self):
        session = FakeSession(FakeResponse(payload={"current_condition": []}))
        assert Weather(session=session).get("Paris", format="j1") == {"current_condition": []}

    def test_non_200(self):
        session = FakeSession(FakeResponse(status_code=404))
        with pytest.raises(WeatherError, match="404"):
            Weather(session=session).get_text("Atlantis")


class TestWeatherTool:
    def test_definition(self):
        tool = WeatherTool(backend=Weather(session=FakeSession()))
        params = tool.definition()["function"]["parameters"]
        assert params["required"] == []
        assert set(params["properties"]) == {"location", "units"}

    def test_execute(self):
        session = FakeSession()
        tool = WeatherTool(location="Tampa, FL", backend=Weather(session=session))
        result = tool.execute({"location": "Paris"})
        assert not result.is_error
        assert result.for_llm == "Paris: ⛅️ +12°C"
        assert result.for_user == result.for_llm

    def test_default_location(self):
        session = FakeSession()
        tool = WeatherTool(location="Tampa, FL", units="uscs", backend=Weather(session=session))
        tool.execute({})
        assert session.urls == ["https://wttr.in/Tampa_-FL?u&format=3"]

    def test_bad_units(self):
        tool = WeatherTool(backend=Weather(session=FakeSession()))
        result = tool.execute({"units": "kelvin"})
        assert result.is_error

    def test_service_error(self):
        session = FakeSession(FakeResponse(status_code=503))
        result = WeatherTool(backend=Weather(session=session)).execute({"location": "Paris"})
        assert result.is_error
        assert "503" in result.for_llm

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        result = WeatherTool(backend=Weather(session=session)).execute({"location": "Paris"})
        assert result.is_error
        assert result.for_llm.startswith("weather request failed")
