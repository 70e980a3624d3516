"""Host side of the explore page.

``ExploreSession`` owns what the map core only reads: the event catalog and
the viewer's interest state. It feeds both into one :class:`MapView`, reacts to
the toggle callbacks by updating the interest book and re-syncing the map, and
keeps the location search box next to the map.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from localevents.domain.errors import InvalidEvent
from localevents.domain.models import (
    Event,
    InterestStatus,
    LocationCandidate,
    RouteInfo,
    SelectedLocation,
    ViewerPosition,
)
from localevents.map.canvas import MapContainer
from localevents.map.search_box import LocationSearchBox
from localevents.map.view import MapView
from localevents.providers.geocoding.base import GeocodingProvider
from localevents.providers.geocoding.nominatim import NominatimGeocodingProvider
from localevents.providers.location.viewer import GeolocationSource, ViewerLocationProvider
from localevents.providers.routing.base import RoutingProvider
from localevents.providers.routing.osrm import OsrmRoutingProvider

from .catalog import EventCatalog
from .interests import InterestBook

logger = logging.getLogger(__name__)


class ExploreSession:
    def __init__(
        self,
        catalog: Optional[EventCatalog] = None,
        interests: Optional[InterestBook] = None,
        *,
        geocoder: Optional[GeocodingProvider] = None,
        router: Optional[RoutingProvider] = None,
        container: Optional[MapContainer] = None,
        tiles: Optional[dict] = None,
    ):
        self.catalog = catalog if catalog is not None else EventCatalog.load()
        self.interests = interests or InterestBook()
        self.geocoder = geocoder or NominatimGeocodingProvider()
        self.router = router or OsrmRoutingProvider()
        self.container = container or MapContainer()
        self.view = MapView(self.router, tiles=tiles)
        self.location: Optional[ViewerLocationProvider] = None
        self.search_box: Optional[LocationSearchBox] = None
        self.selected_location: Optional[SelectedLocation] = None
        # bound once so the view sees stable callbacks between syncs
        self._on_interest_toggle = self._handle_interest_toggle
        self._on_attended_toggle = self._handle_attended_toggle

    @property
    def started(self) -> bool:
        return self.location is not None and self.location.position is not None

    @property
    def viewer_position(self) -> Optional[ViewerPosition]:
        return self.location.position if self.location else None

    async def start(self, source: Optional[GeolocationSource] = None) -> ViewerPosition:
        """Resolve the viewer position once and bring the map live; later calls reuse it."""
        if self.location is None:
            self.location = ViewerLocationProvider(source)
        position = await self.location.resolve()
        self.sync_map()
        self.view.mount(self.container)
        self.view.set_viewer_position(position)
        if self.search_box is None:
            self.search_box = LocationSearchBox(self.geocoder, self._on_location_selected, position.coordinate)
        return position

    def sync_map(self) -> bool:
        return self.view.update(
            self.catalog.list(),
            self.interests.state,
            self._on_interest_toggle,
            self._on_attended_toggle,
        )

    # events

    def events(self) -> List[Tuple[Event, InterestStatus]]:
        return [(event, self.interests.status(event.id)) for event in self.catalog.list()]

    def get_event(self, event_id: int) -> Event:
        event = self.catalog.get(event_id)
        if event is None:
            raise KeyError(event_id)
        return event

    def toggle_interested(self, event_id: int) -> InterestStatus:
        self.get_event(event_id)
        self._handle_interest_toggle(event_id)
        return self.interests.status(event_id)

    def toggle_attended(self, event_id: int) -> InterestStatus:
        self.get_event(event_id)
        self._handle_attended_toggle(event_id)
        return self.interests.status(event_id)

    async def create_event(
        self,
        *,
        title: str,
        date: str,
        time: str,
        location: str,
        description: str = "",
        image: str = "",
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> Event:
        if lat is None or lng is None:
            viewer = self.viewer_position.coordinate if self.viewer_position else None
            candidates = await self.geocoder.search_now(location, viewer)
            if not candidates:
                raise InvalidEvent(self.catalog.next_id(), f"could not locate {location!r}")
            lat, lng = candidates[0].coordinate.lat, candidates[0].coordinate.lng
        event = self.catalog.create(
            title=title,
            date=date,
            time=time,
            location=location,
            description=description,
            image=image,
            lat=lat,
            lng=lng,
        )
        logger.info("Created event %s at (%s, %s)", event.id, lat, lng)
        self.sync_map()
        return event

    # map interactions

    async def route_to(self, event_id: int) -> Optional[RouteInfo]:
        self.get_event(event_id)
        if not self.started:
            await self.start()
        return await self.view.show_route_to(event_id)

    async def search(self, text: str) -> Tuple[List[LocationCandidate], bool]:
        if self.search_box is None:
            await self.start()
        self.search_box.set_query(text)
        return await self.search_box.wait()

    def select(self, place_id: str) -> SelectedLocation:
        candidate = self.search_box.find(place_id) if self.search_box else None
        if candidate is None:
            raise KeyError(place_id)
        return self.search_box.select(candidate)

    def render_map(self) -> str:
        return self.view.render_html()

    def close(self) -> None:
        if self.search_box is not None:
            self.search_box.dispose()
            self.search_box = None
        self.view.unmount()

    # callbacks handed to the map core

    def _handle_interest_toggle(self, event_id: int) -> None:
        self.interests.toggle_interested(event_id)
        self.sync_map()

    def _handle_attended_toggle(self, event_id: int) -> None:
        self.interests.toggle_attended(event_id)
        self.sync_map()

    def _on_location_selected(self, location: SelectedLocation) -> None:
        self.selected_location = location
        self.view.show_search_pin(location)
