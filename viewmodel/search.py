"""
SearchController: debounced city suggestions. Each keystroke cancels the pending search;
only the task of the latest query may write the suggestion list.
"""
import asyncio
from typing import Optional

import structlog

from tools.base import CitySuggestion, MalformedPayloadError, WeatherClientError
from tools.weather_api import WeatherClient
from viewmodel.state import CancellationToken, ObservableState, ReadOnlyState, SuggestionList

log = structlog.get_logger()


class SearchController:
    def __init__(
        self,
        client: WeatherClient,
        debounce_sec: float = 0.5,
        min_query_length: int = 3,
        suggestion_limit: int = 5,
    ):
        self.client = client
        self.debounce_sec = debounce_sec
        self.min_query_length = min_query_length
        self.suggestion_limit = suggestion_limit
        self._suggestions: ObservableState[SuggestionList] = ObservableState(())
        self._task: Optional[asyncio.Task] = None
        self._token: Optional[CancellationToken] = None

    @property
    def suggestions(self) -> ReadOnlyState[SuggestionList]:
        return self._suggestions.read_only()

    @property
    def pending_task(self) -> Optional[asyncio.Task]:
        """Task of the latest scheduled search, if any."""
        return self._task

    def _cancel_pending(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def on_query_changed(self, query: str) -> Optional[asyncio.Task]:
        """
        Cancel the pending search. Short queries clear suggestions right away; longer ones
        schedule a search after the debounce interval. Must be called from the event loop.
        """
        self._cancel_pending()
        if len(query) < self.min_query_length:
            self._suggestions.set(())
            log.debug("search_skipped", reason="query_too_short", length=len(query))
            return None

        token = CancellationToken()
        self._token = token
        self._task = asyncio.get_running_loop().create_task(self._search(query, token))
        log.debug("search_scheduled", query=query, debounce_sec=self.debounce_sec)
        return self._task

    def clear_suggestions(self) -> None:
        self._cancel_pending()
        self._suggestions.set(())

    async def aclose(self) -> None:
        task = self._task
        self._cancel_pending()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _search(self, query: str, token: CancellationToken) -> None:
        if token.cancelled:
            return
        await asyncio.sleep(self.debounce_sec)
        if token.cancelled:
            return

        suggestions: SuggestionList = ()
        try:
            response = await self.client.search_cities(query, limit=self.suggestion_limit)
            if response.is_success and isinstance(response.body, list):
                suggestions = tuple(CitySuggestion.from_api(item) for item in response.body)
            else:
                log.warning("search_failed", query=query, status_code=response.status_code)
        except WeatherClientError as e:
            log.warning("search_failed", query=query, error=e.detail)
        except MalformedPayloadError as e:
            log.warning("search_failed", query=query, error=str(e))
        except Exception as e:
            log.exception("search_failed", query=query, error=str(e))

        if token.cancelled:
            log.debug("search_discarded", query=query)
            return
        self._suggestions.set(suggestions)
        log.info("search_committed", query=query, count=len(suggestions))
