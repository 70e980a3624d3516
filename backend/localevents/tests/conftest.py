from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from localevents.domain.errors import NoRoute, RoutingUnavailable
from localevents.domain.models import Coordinate, Event, LocationCandidate, RouteResult
from localevents.domain.geo import distance_km
from localevents.services.catalog import EventCatalog

TILES = {"url": "https://tiles.test/{z}/{x}/{y}.png", "attribution": "test tiles", "max_zoom": 19}
VIEWER = Coordinate(40.7589, -73.9851)


def make_event(event_id: int, lat: float = 40.76, lng: float = -73.98, **overrides) -> Event:
    fields = dict(
        id=event_id,
        title=f"Event {event_id}",
        date="2025-10-15",
        time="18:00",
        location=f"Venue {event_id}",
        description="Something happening",
        image=f"https://img.test/{event_id}.jpg",
        lat=lat,
        lng=lng,
        attendees=10,
        interested=20,
    )
    fields.update(overrides)
    return Event(**fields)


class FakeRouter:
    """Straight-line router; destinations can be made to fail or to wait on a gate."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail_for: Dict[tuple, Exception] = {}
        self.gates: Dict[tuple, asyncio.Event] = {}
        self.on_call = None

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        key = (destination.lat, destination.lng)
        self.calls.append((origin, destination))
        if self.on_call is not None:
            self.on_call(origin, destination)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.fail_for:
            raise self.fail_for[key]
        return RouteResult(coordinates=[origin, destination], distance_m=2345.0, duration_s=425.0)


class FakeGeocoder:
    """Returns canned candidates for any query, no debounce."""

    def __init__(self, results: Optional[List[LocationCandidate]] = None):
        self.results = results if results is not None else []
        self.last_error = None
        self.queries: List[str] = []
        self.cancelled = 0

    async def search(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        if len(query) < 3:
            return []
        return await self.search_now(query, viewer)

    async def search_now(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        self.queries.append(query)
        results = []
        for candidate in self.results:
            distance = distance_km(viewer, candidate.coordinate) if viewer is not None else None
            results.append(
                LocationCandidate(candidate.place_id, candidate.display_name, candidate.coordinate, distance)
            )
        return results

    def cancel_pending(self) -> None:
        self.cancelled += 1


@pytest.fixture()
def tiles():
    return dict(TILES)


@pytest.fixture()
def router():
    return FakeRouter()


@pytest.fixture()
def geocoder():
    return FakeGeocoder(
        [
            LocationCandidate("p1", "Bryant Park, Manhattan, New York", Coordinate(40.7536, -73.9832)),
            LocationCandidate("p2", "Union Square, Manhattan, New York", Coordinate(40.7359, -73.9911)),
        ]
    )


@pytest.fixture()
def events():
    return [
        make_event(1, 40.785091, -73.968285),
        make_event(2, 40.758896, -73.98513),
        make_event(3, 40.80208, -73.971249),
    ]


@pytest.fixture()
def catalog(events):
    return EventCatalog(events)


@pytest.fixture()
def event_factory():
    return make_event


@pytest.fixture()
def viewer():
    return VIEWER
