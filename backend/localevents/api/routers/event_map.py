from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from localevents.api.deps import get_session
from localevents.domain.models import Coordinate
from localevents.providers.location.viewer import FixedGeolocation
from localevents.services.explore_session import ExploreSession

router = APIRouter(tags=["map"])


@router.get("/map", response_class=HTMLResponse)
async def render_map(
    lat: Optional[float] = Query(None, ge=-90, le=90, description="Browser-reported latitude"),
    lng: Optional[float] = Query(None, ge=-180, le=180, description="Browser-reported longitude"),
    session: ExploreSession = Depends(get_session),
):
    source = FixedGeolocation(Coordinate(lat, lng)) if lat is not None and lng is not None else None
    await session.start(source)
    return HTMLResponse(session.render_map())


@router.get("/map/events/{event_id}/interested")
async def popup_interested(event_id: int, session: ExploreSession = Depends(get_session)):
    _ensure_event(session, event_id)
    await session.start()
    marker = session.view.markers.get(event_id) if session.view.markers else None
    if marker is not None:
        marker.popup.click_interested()
    else:
        session.toggle_interested(event_id)
    return RedirectResponse("/map", status_code=303)


@router.get("/map/events/{event_id}/attended")
async def popup_attended(event_id: int, session: ExploreSession = Depends(get_session)):
    _ensure_event(session, event_id)
    await session.start()
    marker = session.view.markers.get(event_id) if session.view.markers else None
    if marker is not None:
        marker.popup.click_attended()
    else:
        session.toggle_attended(event_id)
    return RedirectResponse("/map", status_code=303)


@router.get("/map/events/{event_id}/route")
async def popup_route(event_id: int, session: ExploreSession = Depends(get_session)):
    _ensure_event(session, event_id)
    try:
        await session.route_to(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} has no marker on the map")
    return RedirectResponse("/map", status_code=303)


def _ensure_event(session: ExploreSession, event_id: int) -> None:
    if session.catalog.get(event_id) is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
