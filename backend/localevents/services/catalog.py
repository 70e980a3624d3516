from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from localevents.domain.errors import InvalidEvent
from localevents.domain.models import Event

logger = logging.getLogger(__name__)

SAMPLE_EVENTS_PATH = Path(__file__).resolve().parents[1] / "data" / "sample_events.json"


class EventCatalog:
    """In-memory list of events, kept in insertion order."""

    def __init__(self, events: Optional[Iterable[Event]] = None):
        self._events: Dict[int, Event] = {}
        for event in events or []:
            self.add(event)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "EventCatalog":
        path = path or SAMPLE_EVENTS_PATH
        payload = json.loads(path.read_text(encoding="utf-8"))
        events = []
        for item in payload:
            try:
                event = Event.from_dict(item)
                # rejects out-of-range coordinates
                event.coordinate
                events.append(event)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping catalog entry %r: %s", item.get("id"), exc)
        logger.info("Loaded %d events from %s", len(events), path.name)
        return cls(events)

    def list(self) -> List[Event]:
        return list(self._events.values())

    def get(self, event_id: int) -> Optional[Event]:
        return self._events.get(event_id)

    def __contains__(self, event_id: int) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)

    def next_id(self) -> int:
        return max(self._events, default=0) + 1

    def add(self, event: Event) -> Event:
        if event.id in self._events:
            raise ValueError(f"Event {event.id} already exists")
        self._events[event.id] = event
        return event

    def create(
        self,
        *,
        title: str,
        date: str,
        time: str,
        location: str,
        lat: float,
        lng: float,
        description: str = "",
        image: str = "",
    ) -> Event:
        event = Event(
            id=self.next_id(),
            title=title,
            date=date,
            time=time,
            location=location,
            description=description,
            image=image,
            lat=lat,
            lng=lng,
        )
        # rejects out-of-range coordinates before the event is stored
        event.coordinate
        return self.add(event)
