"""Environment-driven settings for the map core and its host surfaces."""
from __future__ import annotations

import os

from localevents.domain.models import Coordinate

# Times Square; override per deployment, e.g. 27.7172 / 85.3240 for Kathmandu.
DEFAULT_FALLBACK_LAT = 40.7589
DEFAULT_FALLBACK_LNG = -73.9851

OSM_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'


def get_fallback_position() -> Coordinate:
    lat = float(os.getenv("LOCALEVENTS_FALLBACK_LAT", DEFAULT_FALLBACK_LAT))
    lng = float(os.getenv("LOCALEVENTS_FALLBACK_LNG", DEFAULT_FALLBACK_LNG))
    return Coordinate(lat, lng)


def get_nominatim_url() -> str:
    return os.getenv("LOCALEVENTS_NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")


def get_osrm_url() -> str:
    return os.getenv("LOCALEVENTS_OSRM_URL", "https://router.project-osrm.org").rstrip("/")


def get_tile_config() -> dict:
    return {
        "url": os.getenv("LOCALEVENTS_TILE_URL", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"),
        "attribution": OSM_ATTRIBUTION,
        "max_zoom": int(os.getenv("LOCALEVENTS_TILE_MAX_ZOOM", "19")),
    }


def get_user_agent() -> str:
    return os.getenv("LOCALEVENTS_USER_AGENT", "localevents/0.1 (event map)")


def get_search_debounce_s() -> float:
    return int(os.getenv("LOCALEVENTS_SEARCH_DEBOUNCE_MS", "500")) / 1000.0


def get_geolocation_timeout_s() -> float:
    return float(os.getenv("LOCALEVENTS_GEOLOCATION_TIMEOUT_S", "10"))


def get_frontend_origin() -> str:
    return os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
