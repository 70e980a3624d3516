from __future__ import annotations

from typing import List, Optional, Protocol

from localevents.domain.models import Coordinate, LocationCandidate

MIN_QUERY_LENGTH = 3


class GeocodingProvider(Protocol):
    """Contract for text-to-location lookups used by the search box and forms."""

    async def search(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        """Debounced lookup; superseded calls resolve to an empty list."""
        raise NotImplementedError

    async def search_now(self, query: str, viewer: Optional[Coordinate] = None) -> List[LocationCandidate]:
        """Immediate lookup, one request per call."""
        raise NotImplementedError

    def cancel_pending(self) -> None:
        raise NotImplementedError
