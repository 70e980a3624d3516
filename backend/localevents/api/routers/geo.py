from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from localevents.api.deps import get_session
from localevents.map.search_box import format_distance
from localevents.services.explore_session import ExploreSession

router = APIRouter(tags=["geo"])


class LocationSelection(BaseModel):
    place_id: str


@router.get("/locations/search")
async def search_locations(
    q: str = Query(..., description="Free-text place query"),
    session: ExploreSession = Depends(get_session),
):
    candidates, superseded = await session.search(q)
    items = []
    for candidate in candidates:
        item = candidate.to_dict()
        item["pill"] = format_distance(candidate.distance_km)
        items.append(item)
    return {"query": q, "candidates": items, "superseded": superseded}


@router.post("/locations/select")
def select_location(selection: LocationSelection, session: ExploreSession = Depends(get_session)):
    try:
        selected = session.select(selection.place_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Place {selection.place_id} is not among the candidates")
    return {"name": selected.name, "lat": selected.lat, "lng": selected.lng}


@router.post("/route/{event_id}")
async def route_to_event(event_id: int, session: ExploreSession = Depends(get_session)):
    try:
        info = await session.route_to(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    if info is None:
        raise HTTPException(status_code=409, detail="Route request was superseded")
    return info.to_dict()
