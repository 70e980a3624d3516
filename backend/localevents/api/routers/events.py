from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from localevents.api.deps import get_session
from localevents.domain.errors import InvalidEvent
from localevents.domain.models import Event, InterestStatus
from localevents.services.explore_session import ExploreSession

router = APIRouter(tags=["events"])


class EventForm(BaseModel):
    title: str
    date: str
    time: str
    location: str
    description: str = ""
    image: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


@router.get("/events")
def list_events(session: ExploreSession = Depends(get_session)):
    return [_event_payload(event, status) for event, status in session.events()]


@router.post("/events", status_code=201)
async def create_event(form: EventForm, session: ExploreSession = Depends(get_session)):
    missing = [name for name in ("title", "date", "time", "location") if not getattr(form, name).strip()]
    if missing:
        raise HTTPException(status_code=422, detail=f"Missing required fields: {', '.join(missing)}")
    try:
        event = await session.create_event(
            title=form.title.strip(),
            date=form.date.strip(),
            time=form.time.strip(),
            location=form.location.strip(),
            description=form.description,
            image=form.image,
            lat=form.lat,
            lng=form.lng,
        )
    except InvalidEvent as exc:
        raise HTTPException(status_code=422, detail=exc.reason)
    return _event_payload(event, InterestStatus.NONE)


@router.post("/events/{event_id}/interested")
def toggle_interested(event_id: int, session: ExploreSession = Depends(get_session)):
    try:
        status = session.toggle_interested(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return {"event_id": event_id, "status": status.value}


@router.post("/events/{event_id}/attended")
def toggle_attended(event_id: int, session: ExploreSession = Depends(get_session)):
    try:
        status = session.toggle_attended(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return {"event_id": event_id, "status": status.value}


def _event_payload(event: Event, status: InterestStatus) -> dict:
    payload = event.to_dict()
    payload["display_date"] = event.display_date()
    payload["status"] = status.value
    return payload
