from __future__ import annotations


class MapCoreError(Exception):
    """Base class for failures the map core recovers from locally."""


class GeocodingUnavailable(MapCoreError):
    pass


class RoutingUnavailable(MapCoreError):
    pass


class NoRoute(MapCoreError):
    pass


class GeolocationDenied(MapCoreError):
    pass


class InvalidEvent(MapCoreError, ValueError):
    def __init__(self, event_id, reason: str):
        super().__init__(f"Event {event_id} is invalid: {reason}")
        self.event_id = event_id
        self.reason = reason
