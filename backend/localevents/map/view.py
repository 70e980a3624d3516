"""Lifecycle of one event map.

A view moves through ``unmounted -> awaiting_position -> live`` and back
through ``teardown``. The live transition happens at most once per episode:
only when a container is mounted, the viewer position is known and no canvas
exists yet. Everything the episode created (canvas, viewer marker, event
markers with their popups, route line, search pin, container listeners) is
released together on teardown.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import folium

from localevents.domain.errors import InvalidEvent
from localevents.domain.models import (
    Coordinate,
    Event,
    InterestState,
    RouteInfo,
    SelectedLocation,
    ViewerPosition,
)
from localevents.providers.routing.base import RoutingProvider

from .canvas import MapCanvas, MapContainer
from .markers import MarkerLayer
from .popups import PopupActions, ToggleCallback
from .route_overlay import RouteOverlay

logger = logging.getLogger(__name__)

VIEWER_KEY = "viewer"
SEARCH_PIN_KEY = "search-pin"
INITIAL_ZOOM = 12
FIT_MAX_ZOOM = 13
FIT_PADDING_PX = 50


class MapViewState(str, Enum):
    UNMOUNTED = "unmounted"
    AWAITING_POSITION = "awaiting_position"
    LIVE = "live"
    TEARDOWN = "teardown"


@dataclass
class ViewerMarker:
    position: ViewerPosition

    def to_folium(self) -> folium.CircleMarker:
        label = "Approximate location" if self.position.is_fallback else "You are here"
        return folium.CircleMarker(
            location=self.position.coordinate.as_latlng(),
            radius=9,
            color="#ffffff",
            weight=3,
            fill=True,
            fill_color="#2563eb",
            fill_opacity=1.0,
            tooltip=label,
        )


@dataclass
class SearchPin:
    location: SelectedLocation

    def to_folium(self) -> folium.Marker:
        return folium.Marker(
            location=[self.location.lat, self.location.lng],
            icon=folium.Icon(color="red", icon="search", prefix="fa"),
            tooltip=self.location.name,
        )


def _noop_toggle(event_id: int) -> None:
    logger.debug("No toggle handler for event %s", event_id)


class MapView:
    def __init__(
        self,
        router: RoutingProvider,
        *,
        tiles: Optional[dict] = None,
        actions: Optional[PopupActions] = None,
    ):
        self.router = router
        self.tiles = tiles
        self.actions = actions or PopupActions()
        self.state = MapViewState.UNMOUNTED
        self.container: Optional[MapContainer] = None
        self.viewer_position: Optional[ViewerPosition] = None
        self.canvas: Optional[MapCanvas] = None
        self.viewer_marker: Optional[ViewerMarker] = None
        self.markers: Optional[MarkerLayer] = None
        self.route_overlay: Optional[RouteOverlay] = None
        self.search_pin: Optional[SearchPin] = None
        self.route_info: Optional[RouteInfo] = None
        self.episodes = 0
        self._events: List[Event] = []
        self._interests: dict = {}
        self._on_interest_toggle: ToggleCallback = _noop_toggle
        self._on_attended_toggle: ToggleCallback = _noop_toggle

    # inputs

    def mount(self, container: MapContainer) -> None:
        if self.container is container:
            return
        if self.container is not None:
            self._teardown()
        self.container = container
        self.state = MapViewState.AWAITING_POSITION
        self._maybe_go_live()

    def set_viewer_position(self, position: ViewerPosition) -> None:
        if self.viewer_position is not None:
            logger.debug("Viewer position already latched, ignoring %s", position)
            return
        self.viewer_position = position
        self._maybe_go_live()

    def update(
        self,
        events: Sequence[Event],
        interests: InterestState,
        on_interest_toggle: Optional[ToggleCallback] = None,
        on_attended_toggle: Optional[ToggleCallback] = None,
    ) -> bool:
        """Feed host inputs; returns True when the marker layer was rebuilt."""
        on_interest_toggle = on_interest_toggle or self._on_interest_toggle
        on_attended_toggle = on_attended_toggle or self._on_attended_toggle
        changed = (
            list(events) != self._events
            or dict(interests) != self._interests
            or on_interest_toggle is not self._on_interest_toggle
            or on_attended_toggle is not self._on_attended_toggle
        )
        self._events = list(events)
        self._interests = dict(interests)
        self._on_interest_toggle = on_interest_toggle
        self._on_attended_toggle = on_attended_toggle
        if not changed or self.markers is None:
            return False
        self._rebuild_markers()
        return True

    def unmount(self) -> None:
        if self.container is None:
            return
        self._teardown()
        self.container = None
        self.state = MapViewState.UNMOUNTED

    # interactions

    async def show_route_to(self, event_id: int) -> Optional[RouteInfo]:
        """Route from the viewer to an event; None when a newer route superseded this one."""
        if self.markers is None:
            raise RuntimeError("map is not live")
        return await self.markers.click(event_id)

    def clear_route(self) -> None:
        if self.route_overlay is not None:
            self.route_overlay.clear()
        self._on_route_info(None)

    def show_search_pin(self, location: SelectedLocation) -> None:
        if self.canvas is None:
            logger.debug("Map not live, dropping search pin for %s", location.name)
            return
        self.canvas.remove_layer(SEARCH_PIN_KEY)
        self.search_pin = SearchPin(location)
        self.canvas.add_layer(SEARCH_PIN_KEY, self.search_pin)

    def render_html(self) -> str:
        if self.canvas is None:
            raise RuntimeError(f"map is not live (state={self.state.value})")
        return self.canvas.render_html()

    # lifecycle

    def _maybe_go_live(self) -> None:
        if self.container is None or self.viewer_position is None or self.canvas is not None:
            return
        center = self.viewer_position.coordinate
        canvas = MapCanvas(center, INITIAL_ZOOM, tiles=self.tiles)
        self.canvas = canvas
        self.container.canvas = canvas
        self.container.add_listener("resize", canvas.invalidate_size)
        self.viewer_marker = ViewerMarker(self.viewer_position)
        canvas.add_layer(VIEWER_KEY, self.viewer_marker)
        self.route_overlay = RouteOverlay(canvas, self.router)
        self.markers = MarkerLayer(canvas, on_marker_click=self._route_to_event, actions=self.actions)
        self.episodes += 1
        self.state = MapViewState.LIVE
        logger.info("Map episode %d live at %s", self.episodes, center)
        self._rebuild_markers()

    def _rebuild_markers(self) -> None:
        placed = self.markers.rebuild(
            self._events,
            self._interests,
            self._on_interest_toggle,
            self._on_attended_toggle,
        )
        if placed:
            points = [self.viewer_position.coordinate] + [marker.coordinate for marker in placed]
            self.canvas.fit_bounds(points, padding=FIT_PADDING_PX, max_zoom=FIT_MAX_ZOOM)

    def _teardown(self) -> None:
        if self.canvas is None:
            return
        self.state = MapViewState.TEARDOWN
        self.route_overlay.clear()
        self.markers.clear()
        self.canvas.remove_layer(SEARCH_PIN_KEY)
        self.canvas.remove_layer(VIEWER_KEY)
        self.container.remove_listener("resize", self.canvas.invalidate_size)
        self.canvas.remove()
        self.container.canvas = None
        logger.info("Map episode %d torn down", self.episodes)
        self.canvas = None
        self.viewer_marker = None
        self.markers = None
        self.route_overlay = None
        self.search_pin = None
        self.route_info = None

    # callbacks

    async def _route_to_event(self, event: Event) -> Optional[RouteInfo]:
        if self.route_overlay is None or self.viewer_position is None:
            return None
        try:
            destination = event.coordinate
        except InvalidEvent as exc:
            logger.warning("Cannot route to %s", exc)
            return None
        delivered: List[RouteInfo] = []

        def on_info(info: RouteInfo) -> None:
            delivered.append(info)
            self._on_route_info(info)

        await self.route_overlay.draw(self.viewer_position.coordinate, destination, on_info)
        return delivered[-1] if delivered else None

    def _on_route_info(self, info: Optional[RouteInfo]) -> None:
        self.route_info = info
        if self.markers is not None:
            self.markers.set_route_info(info)

    @property
    def destination(self) -> Optional[Coordinate]:
        return self.route_info.destination if self.route_info else None
