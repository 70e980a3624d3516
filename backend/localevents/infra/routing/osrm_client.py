from __future__ import annotations

from typing import Optional

import httpx

from localevents.config import get_osrm_url, get_user_agent

DEFAULT_TIMEOUT = httpx.Timeout(5.0)


class OsrmClient:
    PROFILE = "driving"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        user_agent: Optional[str] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or get_osrm_url()).rstrip("/")
        self.user_agent = user_agent or get_user_agent()
        self.timeout = timeout
        self.transport = transport

    def build_url(self, from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> str:
        return f"{self.base_url}/route/v1/{self.PROFILE}/{from_lng},{from_lat};{to_lng},{to_lat}"

    async def fetch_route(self, from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> dict:
        url = self.build_url(from_lat, from_lng, to_lat, to_lng)
        params = {"overview": "full", "geometries": "geojson"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(url, params=params, headers={"User-Agent": self.user_agent})
        # OSRM reports "no route" as a 400 with a JSON body
        if resp.status_code == 400:
            try:
                body = resp.json()
            except ValueError:
                resp.raise_for_status()
            if isinstance(body, dict) and body.get("code") == "NoRoute":
                return body
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected routing payload: {type(data).__name__}")
        return data
