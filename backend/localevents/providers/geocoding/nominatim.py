from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from localevents.config import get_search_debounce_s
from localevents.domain.errors import GeocodingUnavailable
from localevents.domain.geo import distance_km, is_valid_coordinate
from localevents.domain.models import Coordinate, LocationCandidate
from localevents.infra.geocoding.nominatim_client import NominatimClient

from .base import MIN_QUERY_LENGTH, GeocodingProvider

logger = logging.getLogger(__name__)

BIASED_LIMIT = 10
UNBIASED_LIMIT = 5
MAX_RANKED_RESULTS = 5


class NominatimGeocodingProvider(GeocodingProvider):
    """Debounced Nominatim search with optional proximity ranking.

    Every call to :meth:`search` takes a ticket. After the quiet window only the
    holder of the newest ticket talks to the network; older callers get ``[]``.
    Requests already in flight are never aborted, callers compare the query
    they asked for with the current one before applying results.
    """

    def __init__(self, client: Optional[NominatimClient] = None, debounce_s: Optional[float] = None):
        self.client = client or NominatimClient()
        self.debounce_s = get_search_debounce_s() if debounce_s is None else debounce_s
        self.last_error: Optional[GeocodingUnavailable] = None
        self.requests_sent = 0
        self._ticket = 0

    def cancel_pending(self) -> None:
        self._ticket += 1

    async def search(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        self._ticket += 1
        if len(query) < MIN_QUERY_LENGTH:
            return []
        ticket = self._ticket
        await asyncio.sleep(self.debounce_s)
        if ticket != self._ticket:
            logger.debug("Geocoding query %r superseded before dispatch", query)
            return []
        return await self.search_now(query, viewer)

    async def search_now(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        if len(query) < MIN_QUERY_LENGTH:
            return []
        near = (viewer.lat, viewer.lng) if viewer is not None else None
        limit = BIASED_LIMIT if viewer is not None else UNBIASED_LIMIT
        self.requests_sent += 1
        try:
            payload = await self.client.search(query, limit, near)
        except (httpx.HTTPError, ValueError) as exc:
            self.last_error = GeocodingUnavailable(f"Geocoding failed for {query!r}: {exc}")
            logger.warning("%s", self.last_error)
            return []
        self.last_error = None
        candidates = self._process_results(payload, viewer)
        if viewer is not None:
            candidates.sort(key=lambda c: c.distance_km)
            candidates = candidates[:MAX_RANKED_RESULTS]
        return candidates

    def _process_results(self, items: list, viewer: Optional[Coordinate]) -> List[LocationCandidate]:
        mapped: List[LocationCandidate] = []
        for item in items:
            candidate = self._map_candidate(item, viewer)
            if candidate is None:
                continue
            mapped.append(candidate)
        return mapped

    @staticmethod
    def _map_candidate(item, viewer: Optional[Coordinate]) -> Optional[LocationCandidate]:
        if not isinstance(item, dict):
            return None
        lat, lon = item.get("lat"), item.get("lon")
        if not is_valid_coordinate(lat, lon):
            return None
        coordinate = Coordinate(float(lat), float(lon))
        return LocationCandidate(
            place_id=str(item.get("place_id", "")),
            display_name=item.get("display_name") or "",
            coordinate=coordinate,
            distance_km=distance_km(viewer, coordinate) if viewer is not None else None,
        )
