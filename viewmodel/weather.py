"""
WeatherController: weather lookups by city or coordinates, each moving the result state
through Loading to Success or Error.

Requests already in flight are not cancelled when a new one starts, so the last reply to
arrive wins.
"""
import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from tools.base import ApiResponse, CitySuggestion, MalformedPayloadError, WeatherClientError, WeatherSnapshot
from tools.weather_api import WeatherClient
from viewmodel.state import Error, Idle, Loading, ObservableState, ReadOnlyState, ResultState, Success

log = structlog.get_logger()

INVALID_CREDENTIAL_MESSAGE = "invalid API credential"


def city_error_message(city: str, status_code: int) -> str:
    if status_code == 401:
        return INVALID_CREDENTIAL_MESSAGE
    if status_code == 404:
        return f"city '{city}' not found"
    return f"request failed: code {status_code}"


def location_error_message(status_code: int) -> str:
    return f"could not retrieve weather for location: code {status_code}"


def network_error_message(detail: str) -> str:
    return f"network error: {detail}"


class WeatherController:
    def __init__(self, client: WeatherClient, clear_suggestions: Optional[Callable[[], None]] = None):
        self.client = client
        self._clear_suggestions = clear_suggestions or (lambda: None)
        self._state: ObservableState[ResultState] = ObservableState(Idle())
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ReadOnlyState[ResultState]:
        return self._state.read_only()

    def fetch_by_city(self, city: str) -> asyncio.Task:
        """Clear suggestions and start a lookup by city name. Returns the request task."""
        self._clear_suggestions()
        return self._launch(
            lambda: self.client.fetch_by_city(city),
            lambda code: city_error_message(city, code),
            request="city",
            city=city,
        )

    def fetch_by_location(self, lat: float, lon: float) -> asyncio.Task:
        """Clear suggestions and start a lookup by coordinates. Returns the request task."""
        self._clear_suggestions()
        return self._launch(
            lambda: self.client.fetch_by_coordinates(lat, lon),
            location_error_message,
            request="location",
            lat=lat,
            lon=lon,
        )

    def select_suggestion(self, suggestion: CitySuggestion) -> asyncio.Task:
        return self.fetch_by_location(suggestion.latitude, suggestion.longitude)

    async def aclose(self) -> None:
        """Wait for requests still in flight."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _launch(
        self,
        call: Callable[[], Awaitable[ApiResponse]],
        on_status: Callable[[int], str],
        **context,
    ) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        self._state.set(Loading())
        log.info("weather_request", **context)
        task = loop.create_task(self._request(call, on_status, context))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _request(
        self,
        call: Callable[[], Awaitable[ApiResponse]],
        on_status: Callable[[int], str],
        context: dict,
    ) -> None:
        try:
            response = await call()
        except WeatherClientError as e:
            log.warning("weather_request_failed", error=e.detail, **context)
            self._state.set(Error(network_error_message(e.detail)))
            return
        except Exception as e:
            log.exception("weather_request_failed", error=str(e), **context)
            self._state.set(Error(network_error_message(str(e) or e.__class__.__name__)))
            return

        if response.is_success and response.body:
            try:
                snapshot = WeatherSnapshot.from_api(response.body)
            except MalformedPayloadError as e:
                log.warning("weather_payload_invalid", error=str(e), **context)
            else:
                self._state.set(Success(snapshot))
                log.info("weather_loaded", location=snapshot.location_name, **context)
                return

        log.warning("weather_request_failed", status_code=response.status_code, **context)
        self._state.set(Error(on_status(response.status_code)))
