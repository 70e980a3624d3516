from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import folium

from localevents.domain.errors import InvalidEvent
from localevents.domain.models import Coordinate, Event, InterestState, RouteInfo, status_for

from .canvas import MapCanvas
from .popups import EventPopup, PopupActions, ToggleCallback

logger = logging.getLogger(__name__)

MARKER_KEY_PREFIX = "event:"
TILE_SIZE = 48
POINTER_SIZE = 8

MarkerClickHandler = Callable[[Event], Awaitable[Optional[RouteInfo]]]


def marker_key(event_id: int) -> str:
    return f"{MARKER_KEY_PREFIX}{event_id}"


def event_icon_html(event: Event) -> str:
    return (
        f'<div class="event-marker" style="position:relative;width:{TILE_SIZE}px;height:{TILE_SIZE}px;">'
        f'<div style="width:{TILE_SIZE}px;height:{TILE_SIZE}px;border-radius:12px;overflow:hidden;'
        'border:3px solid #fff;box-shadow:0 2px 6px rgba(0,0,0,.35);background:#fff;box-sizing:border-box;">'
        f'<img src="{escape(event.image)}" alt="{escape(event.title)}" '
        'style="width:100%;height:100%;object-fit:cover;display:block;"/></div>'
        f'<div style="position:absolute;left:50%;bottom:-{POINTER_SIZE}px;transform:translateX(-50%);'
        f"width:0;height:0;border-left:{POINTER_SIZE}px solid transparent;"
        f'border-right:{POINTER_SIZE}px solid transparent;border-top:{POINTER_SIZE}px solid #fff;"></div>'
        "</div>"
    )


@dataclass
class EventMarker:
    """One event pin and the popup it owns."""

    event: Event
    coordinate: Coordinate
    popup: EventPopup

    def to_folium(self) -> folium.Marker:
        height = TILE_SIZE + POINTER_SIZE
        return folium.Marker(
            location=self.coordinate.as_latlng(),
            icon=folium.DivIcon(
                html=event_icon_html(self.event),
                icon_size=(TILE_SIZE, height),
                icon_anchor=(TILE_SIZE // 2, height),
                popup_anchor=(0, -height),
                class_name="event-marker-icon",
            ),
            popup=self.popup.to_folium(),
            tooltip=self.event.title,
        )

    def release(self) -> None:
        self.popup.dispose()


class MarkerLayer:
    """Event markers of one map episode, rebuilt wholesale on input changes."""

    def __init__(
        self,
        canvas: MapCanvas,
        *,
        on_marker_click: Optional[MarkerClickHandler] = None,
        actions: Optional[PopupActions] = None,
    ):
        self.canvas = canvas
        self.on_marker_click = on_marker_click
        self.actions = actions or PopupActions()
        self.skipped: List[InvalidEvent] = []
        self._markers: Dict[int, EventMarker] = {}
        self._route_info: Optional[RouteInfo] = None

    @property
    def markers(self) -> List[EventMarker]:
        return list(self._markers.values())

    def get(self, event_id: int) -> Optional[EventMarker]:
        return self._markers.get(event_id)

    def rebuild(
        self,
        events: Sequence[Event],
        interests: InterestState,
        on_interest_toggle: ToggleCallback,
        on_attended_toggle: ToggleCallback,
    ) -> List[EventMarker]:
        self.clear()
        for event in events:
            try:
                coordinate = event.coordinate
            except InvalidEvent as exc:
                logger.warning("Skipping marker: %s", exc)
                self.skipped.append(exc)
                continue
            if event.id in self._markers:
                logger.warning("Skipping duplicate marker for event %s", event.id)
                continue
            popup = EventPopup(
                event,
                status_for(interests, event.id),
                on_interest_toggle=on_interest_toggle,
                on_attended_toggle=on_attended_toggle,
                on_show_route=self._route_callback(event),
                actions=self.actions,
            )
            if self._route_info is not None and self._route_info.destination == coordinate:
                popup.route_info = self._route_info
            marker = EventMarker(event=event, coordinate=coordinate, popup=popup)
            self.canvas.add_layer(marker_key(event.id), marker)
            self._markers[event.id] = marker
        logger.debug("Placed %d event markers (%d skipped)", len(self._markers), len(self.skipped))
        return self.markers

    def clear(self) -> None:
        for event_id, marker in self._markers.items():
            self.canvas.remove_layer(marker_key(event_id))
            marker.release()
        self._markers = {}
        self.skipped = []

    async def click(self, event_id: int) -> Optional[RouteInfo]:
        marker = self._markers.get(event_id)
        if marker is None:
            raise KeyError(f"No marker for event {event_id}")
        if self.on_marker_click is not None:
            return await self.on_marker_click(marker.event)
        return None

    def set_route_info(self, info: Optional[RouteInfo]) -> None:
        self._route_info = info
        for marker in self._markers.values():
            if info is not None and info.destination == marker.coordinate:
                marker.popup.route_info = info
            else:
                marker.popup.route_info = None

    def _route_callback(self, event: Event):
        if self.on_marker_click is None:
            return None

        async def show_route() -> None:
            await self.on_marker_click(event)

        return show_route
