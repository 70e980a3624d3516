from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from localevents.config import get_fallback_position, get_geolocation_timeout_s
from localevents.domain.errors import GeolocationDenied
from localevents.domain.models import Coordinate, ViewerPosition

logger = logging.getLogger(__name__)


class GeolocationSource(Protocol):
    """Platform facility able to produce a single position fix."""

    async def current_position(self) -> Coordinate:
        raise NotImplementedError


class FixedGeolocation(GeolocationSource):
    """A position the browser already reported to us."""

    def __init__(self, coordinate: Coordinate):
        self.coordinate = coordinate

    async def current_position(self) -> Coordinate:
        return self.coordinate


class DeniedGeolocation(GeolocationSource):
    """The viewer refused to share a position."""

    async def current_position(self) -> Coordinate:
        raise GeolocationDenied("permission denied")


class ViewerLocationProvider:
    """One-shot producer of the viewer position.

    The first call to :meth:`resolve` asks the source for a fix; every later or
    concurrent call receives the same latched value. Any failure of the source
    yields the fallback coordinate instead.
    """

    def __init__(
        self,
        source: Optional[GeolocationSource] = None,
        fallback: Optional[Coordinate] = None,
        timeout_s: Optional[float] = None,
    ):
        self.source = source
        self.fallback = fallback or get_fallback_position()
        self.timeout_s = get_geolocation_timeout_s() if timeout_s is None else timeout_s
        self._position: Optional[ViewerPosition] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def position(self) -> Optional[ViewerPosition]:
        return self._position

    async def resolve(self) -> ViewerPosition:
        if self._position is not None:
            return self._position
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._acquire())
        return await asyncio.shield(self._pending)

    async def _acquire(self) -> ViewerPosition:
        if self.source is None:
            logger.info("Geolocation unavailable, using fallback %s", self.fallback)
            self._position = ViewerPosition(self.fallback, origin="fallback")
            return self._position
        try:
            coordinate = await asyncio.wait_for(self.source.current_position(), timeout=self.timeout_s)
        except GeolocationDenied:
            logger.info("Geolocation denied, using fallback %s", self.fallback)
            coordinate = None
        except asyncio.TimeoutError:
            logger.info("Geolocation timed out after %.1fs, using fallback", self.timeout_s)
            coordinate = None
        except Exception as exc:
            logger.info("Geolocation failed (%s), using fallback", exc)
            coordinate = None
        if coordinate is None:
            self._position = ViewerPosition(self.fallback, origin="fallback")
        else:
            self._position = ViewerPosition(coordinate, origin="platform")
        return self._position
