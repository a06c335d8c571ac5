"""
WeatherViewModel: the user intents of the weather screen (typing, search click, suggestion
click, location click) wired to the search and weather controllers.
Exposes two independent read-only state slots: result and suggestions.
"""
import asyncio
import enum
from typing import Optional

import structlog

from app.config import Settings, get_settings
from tools.base import CitySuggestion
from tools.location import FixedLocationProvider, LocationProvider
from tools.weather_api import WeatherClient
from viewmodel.search import SearchController
from viewmodel.state import ReadOnlyState, ResultState, SuggestionList
from viewmodel.weather import WeatherController

log = structlog.get_logger()

PERMISSION_DENIED_MESSAGE = "location permission is required for this feature"


class LocationOutcome(str, enum.Enum):
    FETCHING = "fetching"
    PERMISSION_REQUIRED = "permission_required"
    UNAVAILABLE = "unavailable"


class WeatherViewModel:
    def __init__(
        self,
        client: WeatherClient,
        location_provider: Optional[LocationProvider] = None,
        debounce_sec: float = 0.5,
        min_query_length: int = 3,
        suggestion_limit: int = 5,
    ):
        self.client = client
        self.location_provider = location_provider or FixedLocationProvider()
        self.search = SearchController(
            client,
            debounce_sec=debounce_sec,
            min_query_length=min_query_length,
            suggestion_limit=suggestion_limit,
        )
        self.weather = WeatherController(client, clear_suggestions=self.search.clear_suggestions)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[WeatherClient] = None,
        location_provider: Optional[LocationProvider] = None,
    ) -> "WeatherViewModel":
        return cls(
            client or WeatherClient.from_settings(settings),
            location_provider=location_provider
            or FixedLocationProvider(settings.default_latitude, settings.default_longitude),
            debounce_sec=settings.search_debounce_sec,
            min_query_length=settings.search_min_query_length,
            suggestion_limit=settings.search_suggestion_limit,
        )

    @property
    def result_state(self) -> ReadOnlyState[ResultState]:
        return self.weather.state

    @property
    def suggestions(self) -> ReadOnlyState[SuggestionList]:
        return self.search.suggestions

    def on_query_changed(self, query: str) -> Optional[asyncio.Task]:
        return self.search.on_query_changed(query)

    def clear_suggestions(self) -> None:
        self.search.clear_suggestions()

    def on_search_click(self, city: str) -> Optional[asyncio.Task]:
        """Blank input is ignored."""
        if not city.strip():
            return None
        return self.weather.fetch_by_city(city)

    def fetch_by_location(self, lat: float, lon: float) -> asyncio.Task:
        return self.weather.fetch_by_location(lat, lon)

    def on_suggestion_click(self, suggestion: CitySuggestion) -> asyncio.Task:
        log.info("suggestion_selected", name=suggestion.name, country=suggestion.country)
        self.search.clear_suggestions()
        return self.weather.select_suggestion(suggestion)

    async def on_location_click(self, permission_granted: bool) -> tuple[LocationOutcome, Optional[asyncio.Task]]:
        """
        Without permission the caller must prompt for it and call again (or show
        PERMISSION_DENIED_MESSAGE on refusal). A missing location leaves the state untouched.
        """
        if not permission_granted:
            return LocationOutcome.PERMISSION_REQUIRED, None
        try:
            coords = await self.location_provider.get_last_known_location()
        except Exception as e:
            log.warning("location_failed", error=str(e))
            return LocationOutcome.UNAVAILABLE, None
        if coords is None:
            log.info("location_unavailable")
            return LocationOutcome.UNAVAILABLE, None
        lat, lon = coords
        return LocationOutcome.FETCHING, self.weather.fetch_by_location(lat, lon)

    async def aclose(self) -> None:
        await self.search.aclose()
        await self.weather.aclose()
        await self.client.aclose()


_view_model: Optional[WeatherViewModel] = None


def get_view_model() -> WeatherViewModel:
    global _view_model
    if _view_model is None:
        _view_model = WeatherViewModel.from_settings(get_settings())
    return _view_model


async def close_view_model() -> None:
    global _view_model
    if _view_model is not None:
        await _view_model.aclose()
        _view_model = None
