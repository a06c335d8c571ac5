"""Pytest config: PYTHONPATH, env for tests, and fakes for the weather client."""
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))
os.environ.setdefault("OPENWEATHERMAP_API_KEY", "test-key")

from tools.base import ApiResponse  # noqa: E402


def weather_body(name="Ankara", temp=21.5, **overrides):
    body = {
        "weather": [{"description": "açık", "icon": "01d"}],
        "main": {"temp": temp, "feels_like": 20.9, "humidity": 40},
        "wind": {"speed": 3.1},
        "name": name,
    }
    body.update(overrides)
    return body


def geo_item(name, country="TR", lat=39.93, lon=32.86):
    return {"name": name, "country": country, "lat": lat, "lon": lon}


@pytest.fixture
def fake_client():
    """WeatherClient stand-in: weather lookups return 200 with weather_body(), city search returns 200 with no matches."""
    client = AsyncMock()
    client.fetch_by_city.return_value = ApiResponse(200, weather_body())
    client.fetch_by_coordinates.return_value = ApiResponse(200, weather_body())
    client.search_cities.return_value = ApiResponse(200, [])
    return client
