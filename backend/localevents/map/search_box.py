from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from localevents.domain.models import Coordinate, LocationCandidate, SelectedLocation
from localevents.providers.geocoding.base import MIN_QUERY_LENGTH, GeocodingProvider

logger = logging.getLogger(__name__)

SelectCallback = Callable[[SelectedLocation], None]


@dataclass(frozen=True)
class CandidateRow:
    place_id: str
    primary: str
    label: str
    pill: Optional[str] = None

    def to_dict(self) -> dict:
        return {"place_id": self.place_id, "primary": self.primary, "label": self.label, "pill": self.pill}


def format_distance(km: Optional[float]) -> Optional[str]:
    if km is None:
        return None
    if km < 1:
        return f"{km * 1000:.0f}m away"
    return f"{km:.1f}km away"


class LocationSearchBox:
    """Text input plus candidate dropdown.

    Each query of three or more characters starts a debounced lookup; a result
    is applied only when its query still equals the current text.
    """

    def __init__(
        self,
        geocoder: GeocodingProvider,
        on_select: SelectCallback,
        viewer_position: Optional[Coordinate] = None,
    ):
        self.geocoder = geocoder
        self.on_select: Optional[SelectCallback] = on_select
        self.viewer_position = viewer_position
        self.query = ""
        self.candidates: List[LocationCandidate] = []
        self.open = False
        self.disposed = False
        self._task: Optional[asyncio.Task] = None

    def set_query(self, text: str) -> None:
        """Must be called from a running event loop when text is long enough to search."""
        if self.disposed:
            return
        self.query = text
        if len(text) < MIN_QUERY_LENGTH:
            self.candidates = []
            self.open = False
            self._task = None
            self.geocoder.cancel_pending()
            return
        self._task = asyncio.ensure_future(self._lookup(text))

    async def wait(self) -> Tuple[List[LocationCandidate], bool]:
        """Await the latest lookup; returns the candidates and whether the query was superseded."""
        task = self._task
        if task is None:
            return list(self.candidates), False
        query = await task
        return list(self.candidates), query != self.query

    async def _lookup(self, text: str) -> str:
        results = await self.geocoder.search(text, self.viewer_position)
        if self.disposed or text != self.query:
            logger.debug("Discarding results for stale query %r", text)
            return text
        self.candidates = results
        self.open = bool(results)
        return text

    def focus(self) -> None:
        if self.candidates:
            self.open = True

    def handle_mousedown(self, inside: bool) -> None:
        if not inside:
            self.open = False

    def find(self, place_id: str) -> Optional[LocationCandidate]:
        for candidate in self.candidates:
            if candidate.place_id == place_id:
                return candidate
        return None

    def select(self, candidate: LocationCandidate) -> SelectedLocation:
        selected = SelectedLocation(
            name=candidate.display_name,
            lat=candidate.coordinate.lat,
            lng=candidate.coordinate.lng,
        )
        self.open = False
        # filling the input is not a keystroke, so no lookup is scheduled
        self.query = candidate.display_name
        if self.on_select is not None:
            self.on_select(selected)
        return selected

    def rows(self) -> List[CandidateRow]:
        return [
            CandidateRow(
                place_id=c.place_id,
                primary=c.primary_label,
                label=c.display_name,
                pill=format_distance(c.distance_km),
            )
            for c in self.candidates
        ]

    def dispose(self) -> None:
        self.disposed = True
        self.on_select = None
        self.candidates = []
        self.open = False
        self.geocoder.cancel_pending()
