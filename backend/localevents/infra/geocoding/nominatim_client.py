from __future__ import annotations

from typing import List, Optional, Tuple

import httpx

from localevents.config import get_nominatim_url, get_user_agent

DEFAULT_TIMEOUT = httpx.Timeout(5.0)


class NominatimClient:
    """Raw access to a Nominatim-compatible ``/search`` endpoint."""

    VIEWBOX_HALF_WIDTH_DEG = 0.5

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        user_agent: Optional[str] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or get_nominatim_url()
        self.user_agent = user_agent or get_user_agent()
        self.timeout = timeout
        self.transport = transport

    def build_params(self, query: str, limit: int, near: Optional[Tuple[float, float]] = None) -> dict:
        params = {"format": "json", "q": query, "limit": limit}
        if near is not None:
            lat, lng = near
            half = self.VIEWBOX_HALF_WIDTH_DEG
            params["viewbox"] = f"{lng - half},{lat + half},{lng + half},{lat - half}"
            params["bounded"] = 0
        return params

    async def search(self, query: str, limit: int, near: Optional[Tuple[float, float]] = None) -> List[dict]:
        params = self.build_params(query, limit, near)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(self.base_url, params=params, headers={"User-Agent": self.user_agent})
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected geocoding payload: {type(data).__name__}")
        return data
