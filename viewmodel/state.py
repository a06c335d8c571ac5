"""
View-model state: the four result states, an observable single-writer holder,
and the cancellation token handed to every scheduled search.
"""
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

import structlog

from tools.base import CitySuggestion, WeatherSnapshot

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    """Initial state; never re-entered."""

    def to_dict(self) -> dict[str, Any]:
        return {"status": "idle"}


@dataclass(frozen=True)
class Loading:
    def to_dict(self) -> dict[str, Any]:
        return {"status": "loading"}


@dataclass(frozen=True)
class Success:
    snapshot: WeatherSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {"status": "success", "weather": self.snapshot.to_dict()}


@dataclass(frozen=True)
class Error:
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"status": "error", "message": self.message}


ResultState = Union[Idle, Loading, Success, Error]
SuggestionList = tuple[CitySuggestion, ...]

Listener = Callable[[T], None]


class ReadOnlyState(Generic[T]):
    """Reader view over an ObservableState: current value and change notifications."""

    def __init__(self, source: "ObservableState[T]"):
        self._source = source

    @property
    def value(self) -> T:
        return self._source.value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._source.subscribe(listener)


class ObservableState(Generic[T]):
    """
    Holds one value, replaced wholesale by its owner via set().
    Listeners run synchronously on every replacement; a failing listener is logged
    and does not stop the others.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._listeners: list[Listener] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                log.exception("state_listener_failed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def read_only(self) -> ReadOnlyState[T]:
        return ReadOnlyState(self)


class CancellationToken:
    """Set once by whoever supersedes the operation; checked before each side effect."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
