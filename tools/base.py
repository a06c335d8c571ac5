"""Shared types for the weather client: snapshots, suggestions, raw replies, client error."""

from dataclasses import dataclass
from typing import Any, Optional

ICON_BASE_URL = "https://openweathermap.org/img/wn"


class WeatherClientError(Exception):
    """Transport-level failure (timeout, DNS, connection reset). No HTTP status available."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class MalformedPayloadError(ValueError):
    """A 2xx reply whose body does not have the expected shape."""


@dataclass(frozen=True)
class ApiResponse:
    """One HTTP reply: status code plus decoded JSON body (None when absent or not JSON)."""
    status_code: int
    body: Any = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class WeatherSnapshot:
    """Point-in-time weather reading for one location."""
    location_name: str
    temperature_c: float
    feels_like_c: float
    humidity_pct: int
    wind_speed_ms: float
    condition_description: str
    condition_icon_id: str

    @classmethod
    def from_api(cls, data: Any) -> "WeatherSnapshot":
        """
        Build from a /weather JSON body. Uses weather[0].description, weather[0].icon,
        main.temp, main.feels_like, main.humidity, wind.speed and name.
        Raises MalformedPayloadError when a required field is missing.
        """
        if not isinstance(data, dict):
            raise MalformedPayloadError("weather body is not an object")
        try:
            main = data["main"]
            condition = (data.get("weather") or [{}])[0]
            return cls(
                location_name=str(data["name"]),
                temperature_c=float(main["temp"]),
                feels_like_c=float(main["feels_like"]),
                humidity_pct=int(main["humidity"]),
                wind_speed_ms=float(data["wind"]["speed"]),
                condition_description=str(condition.get("description", "")),
                condition_icon_id=str(condition.get("icon", "")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedPayloadError(f"unexpected weather body: {e}") from e

    @property
    def icon_url(self) -> Optional[str]:
        if not self.condition_icon_id:
            return None
        return f"{ICON_BASE_URL}/{self.condition_icon_id}@2x.png"

    def to_dict(self) -> dict[str, Any]:
        return {
            "location_name": self.location_name,
            "temperature_c": self.temperature_c,
            "feels_like_c": self.feels_like_c,
            "humidity_pct": self.humidity_pct,
            "wind_speed_ms": self.wind_speed_ms,
            "condition_description": self.condition_description,
            "condition_icon_id": self.condition_icon_id,
            "icon_url": self.icon_url,
        }


@dataclass(frozen=True)
class CitySuggestion:
    """One geocoding match."""
    name: str
    country: str
    latitude: float
    longitude: float

    @classmethod
    def from_api(cls, item: Any) -> "CitySuggestion":
        try:
            return cls(
                name=str(item["name"]),
                country=str(item.get("country", "")),
                latitude=float(item["lat"]),
                longitude=float(item["lon"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedPayloadError(f"unexpected geocoding item: {e}") from e

    @property
    def label(self) -> str:
        return f"{self.name}, {self.country}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "label": self.label,
        }
