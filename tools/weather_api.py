"""
Weather client: async HTTP client for OpenWeatherMap.
Uses /weather for current conditions (by city or coordinates) and the geocoding
/direct endpoint for city suggestions. No retry: every reply is handed back as-is,
transport failures surface as WeatherClientError.
"""
import logging
from typing import Any, Optional

import httpx

from app.config import Settings
from tools.base import ApiResponse, WeatherClientError

logger = logging.getLogger(__name__)


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
        if isinstance(body, dict):
            return str(body.get("message", r.text))
    except ValueError:
        pass
    return r.text


class WeatherClient:
    """
    Three read-only operations: fetch_by_city, fetch_by_coordinates, search_cities.
    Credential, units and language are fixed at construction time.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        geo_url: str = "https://api.openweathermap.org/geo/1.0",
        units: str = "metric",
        lang: str = "tr",
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.geo_url = geo_url.rstrip("/")
        self.units = units
        self.lang = lang
        self.timeout = timeout_seconds
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "WeatherClient":
        return cls(
            api_key=settings.openweathermap_api_key,
            base_url=settings.openweathermap_base_url,
            geo_url=settings.openweathermap_geo_url,
            units=settings.openweathermap_units,
            lang=settings.openweathermap_lang,
            timeout_seconds=settings.http_timeout_sec,
            http_client=http_client,
        )

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, params: dict[str, Any]) -> ApiResponse:
        """HTTP GET. Returns status + parsed JSON (None if not JSON); raises WeatherClientError on transport failure."""
        try:
            r = await self._http().get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Weather API timeout: %s", e)
            raise WeatherClientError(str(e) or "request timed out") from e
        except httpx.RequestError as e:
            logger.warning("Weather API request error: %s", e)
            raise WeatherClientError(str(e) or e.__class__.__name__) from e
        except (httpx.InvalidURL, ValueError) as e:
            # URL or query text that cannot be encoded (e.g. lone surrogates)
            logger.warning("Weather API invalid request: %s", e)
            raise WeatherClientError(str(e) or e.__class__.__name__) from e

        if not r.is_success:
            logger.warning("Weather API %s error %s: %s", url, r.status_code, _error_message(r))
        try:
            body = r.json() if r.content else None
        except ValueError:
            body = None
        return ApiResponse(status_code=r.status_code, body=body)

    def _weather_params(self, **query: Any) -> dict[str, Any]:
        return {**query, "appid": self.api_key, "units": self.units, "lang": self.lang}

    async def fetch_by_city(self, city: str) -> ApiResponse:
        return await self._get(f"{self.base_url}/weather", self._weather_params(q=city))

    async def fetch_by_coordinates(self, lat: float, lon: float) -> ApiResponse:
        return await self._get(f"{self.base_url}/weather", self._weather_params(lat=lat, lon=lon))

    async def search_cities(self, query: str, limit: int = 5) -> ApiResponse:
        params = {"q": query, "limit": limit, "appid": self.api_key}
        return await self._get(f"{self.geo_url}/direct", params)
