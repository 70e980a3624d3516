from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from localevents.domain.errors import NoRoute, RoutingUnavailable
from localevents.domain.models import Coordinate, RouteResult
from localevents.infra.routing.osrm_client import OsrmClient

from .base import RoutingProvider

logger = logging.getLogger(__name__)


class OsrmRoutingProvider(RoutingProvider):
    def __init__(self, client: Optional[OsrmClient] = None):
        self.client = client or OsrmClient()

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        try:
            payload = await self.client.fetch_route(origin.lat, origin.lng, destination.lat, destination.lng)
        except (httpx.HTTPError, ValueError) as exc:
            raise RoutingUnavailable(f"Routing service failed: {exc}") from exc
        routes = payload.get("routes") or []
        if payload.get("code") == "NoRoute" or not routes:
            raise NoRoute(f"No route from {origin.as_latlng()} to {destination.as_latlng()}")
        try:
            result = self._map_route(routes[0])
        except (KeyError, TypeError, ValueError) as exc:
            raise RoutingUnavailable(f"Malformed route payload: {exc}") from exc
        logger.debug("Route %s -> %s: %.0f m, %.0f s", origin, destination, result.distance_m, result.duration_s)
        return result

    @staticmethod
    def _map_route(route: dict) -> RouteResult:
        coordinates: List[Coordinate] = []
        for pair in route["geometry"]["coordinates"]:
            lon, lat = pair[0], pair[1]
            coordinates.append(Coordinate(float(lat), float(lon)))
        if not coordinates:
            raise ValueError("route geometry is empty")
        return RouteResult(
            coordinates=coordinates,
            distance_m=float(route["distance"]),
            duration_s=float(route["duration"]),
        )
