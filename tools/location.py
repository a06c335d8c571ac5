"""
Location source for "use my location". The permission check lives with the caller;
providers only answer with the last known coordinates or None.
"""
from typing import Optional, Protocol

Coordinates = tuple[float, float]


class LocationProvider(Protocol):
    """Contract for device location sources."""

    async def get_last_known_location(self) -> Optional[Coordinates]:
        ...


class FixedLocationProvider:
    """Returns configured coordinates; None when either one is unset."""

    def __init__(self, latitude: Optional[float] = None, longitude: Optional[float] = None):
        self.latitude = latitude
        self.longitude = longitude

    async def get_last_known_location(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)
