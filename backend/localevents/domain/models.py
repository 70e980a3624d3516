from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from enum import Enum
from typing import List, Mapping, Optional

from .errors import InvalidEvent


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        if not (-90 <= self.lat <= 90):
            raise ValueError(f"latitude out of range: {self.lat}")
        if not (-180 <= self.lng <= 180):
            raise ValueError(f"longitude out of range: {self.lng}")

    def as_latlng(self) -> List[float]:
        return [self.lat, self.lng]


@dataclass(frozen=True)
class Event:
    id: int
    title: str
    date: str
    time: str
    location: str
    description: str
    image: str
    lat: float
    lng: float
    attendees: int = 0
    interested: int = 0

    def __post_init__(self):
        if self.attendees < 0 or self.interested < 0:
            raise InvalidEvent(self.id, "counts must be non-negative")

    @property
    def coordinate(self) -> Coordinate:
        try:
            return Coordinate(float(self.lat), float(self.lng))
        except (TypeError, ValueError) as exc:
            raise InvalidEvent(self.id, str(exc)) from exc

    def display_date(self) -> str:
        try:
            parsed = date_type.fromisoformat(self.date)
        except ValueError:
            return f"{self.date} at {self.time}"
        return f"{parsed.strftime('%b %d, %Y')} at {self.time}"

    @classmethod
    def from_dict(cls, item: dict) -> "Event":
        return cls(
            id=int(item["id"]),
            title=item.get("title", ""),
            date=item.get("date", ""),
            time=item.get("time", ""),
            location=item.get("location", ""),
            description=item.get("description", ""),
            image=item.get("image", ""),
            lat=float(item["lat"]),
            lng=float(item["lng"]),
            attendees=int(item.get("attendees", 0)),
            interested=int(item.get("interested", 0)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "description": self.description,
            "image": self.image,
            "lat": self.lat,
            "lng": self.lng,
            "attendees": self.attendees,
            "interested": self.interested,
        }


class InterestStatus(str, Enum):
    INTERESTED = "interested"
    ATTENDED = "attended"
    NONE = "none"


InterestState = Mapping[int, InterestStatus]


def status_for(interests: InterestState, event_id: int) -> InterestStatus:
    return interests.get(event_id) or InterestStatus.NONE


@dataclass(frozen=True)
class ViewerPosition:
    coordinate: Coordinate
    origin: str = "platform"

    @property
    def is_fallback(self) -> bool:
        return self.origin == "fallback"


@dataclass(frozen=True)
class LocationCandidate:
    place_id: str
    display_name: str
    coordinate: Coordinate
    distance_km: Optional[float] = None

    @property
    def primary_label(self) -> str:
        return self.display_name.split(",")[0].strip()

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "display_name": self.display_name,
            "primary_label": self.primary_label,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class SelectedLocation:
    name: str
    lat: float
    lng: float


@dataclass(frozen=True)
class RouteResult:
    coordinates: List[Coordinate]
    distance_m: float
    duration_s: float

    @property
    def distance_km(self) -> float:
        return round(self.distance_m / 1000.0, 1)

    @property
    def duration_min(self) -> int:
        return int(round(self.duration_s / 60.0))


ROUTE_FAILURE_MESSAGE = "Could not calculate a route to this event. Please try again."


@dataclass(frozen=True)
class RouteInfo:
    destination: Coordinate
    distance_km: Optional[float] = None
    duration_min: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_result(cls, destination: Coordinate, result: RouteResult) -> "RouteInfo":
        return cls(destination=destination, distance_km=result.distance_km, duration_min=result.duration_min)

    @classmethod
    def failure(cls, destination: Coordinate, message: str = ROUTE_FAILURE_MESSAGE) -> "RouteInfo":
        return cls(destination=destination, error=message)

    def summary(self) -> str:
        if not self.ok:
            return self.error or ROUTE_FAILURE_MESSAGE
        return f"{self.distance_km:.1f} km · {self.duration_min} min"

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "destination": self.destination.as_latlng(),
            "distance_km": self.distance_km,
            "duration_min": self.duration_min,
            "error": self.error,
            "summary": self.summary(),
        }
