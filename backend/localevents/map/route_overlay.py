from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import folium

from localevents.domain.errors import NoRoute, RoutingUnavailable
from localevents.domain.models import Coordinate, RouteInfo
from localevents.providers.routing.base import RoutingProvider

from .canvas import MapCanvas

logger = logging.getLogger(__name__)

ROUTE_KEY = "route"
FIT_PADDING_PX = 80

RouteInfoCallback = Callable[[RouteInfo], None]


@dataclass
class RouteLine:
    coordinates: List[Coordinate]
    color: str = "#7c3aed"

    def to_folium(self) -> folium.PolyLine:
        return folium.PolyLine(
            [c.as_latlng() for c in self.coordinates],
            color=self.color,
            weight=5,
            opacity=0.8,
            dash_array="8, 12",
            line_cap="round",
        )


class RouteOverlay:
    """Owns the single route polyline of a map episode.

    ``clear`` bumps a generation counter, so any ``draw`` still waiting on the
    routing service when a newer ``draw`` or ``clear`` happens is dropped on
    arrival instead of painting a stale route.
    """

    def __init__(self, canvas: MapCanvas, router: RoutingProvider):
        self.canvas = canvas
        self.router = router
        self.line: Optional[RouteLine] = None
        self._generation = 0

    def clear(self) -> None:
        self._generation += 1
        if self.line is not None:
            self.canvas.remove_layer(ROUTE_KEY)
            self.line = None

    async def draw(self, origin: Coordinate, destination: Coordinate, on_info: RouteInfoCallback) -> Optional[RouteLine]:
        self.clear()
        generation = self._generation
        try:
            result = await self.router.route(origin, destination)
        except (RoutingUnavailable, NoRoute) as exc:
            if generation != self._generation:
                return None
            logger.warning("Route to %s unavailable: %s", destination, exc)
            on_info(RouteInfo.failure(destination))
            return None
        if generation != self._generation or self.canvas.removed:
            logger.debug("Dropping stale route to %s", destination)
            return None
        line = RouteLine(result.coordinates)
        self.canvas.add_layer(ROUTE_KEY, line)
        self.line = line
        self.canvas.fit_bounds(result.coordinates, padding=FIT_PADDING_PX)
        on_info(RouteInfo.from_result(destination, result))
        return line
