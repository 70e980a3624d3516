from __future__ import annotations

from typing import Protocol

from localevents.domain.models import Coordinate, RouteResult


class RoutingProvider(Protocol):
    """Contract for driving-route lookups.

    Implementations raise ``RoutingUnavailable`` on transport or parse errors and
    ``NoRoute`` when the service finds nothing between the two points.
    """

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        raise NotImplementedError
