"""Imperative map surface backed by folium.

``MapCanvas`` plays the part of the live map instance: layers are added and
removed by key, the viewport can be fitted to a set of points, and the whole
thing is rendered to a standalone Leaflet document on demand. Layers keep
their own state and build fresh folium elements at render time, so removing a
layer never leaves a dangling child on a folium tree.

``MapContainer`` stands in for the DOM element a canvas is mounted into and
tracks the listeners registered on it.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

import folium

from localevents.config import get_tile_config
from localevents.domain.geo import bounding_box
from localevents.domain.models import Coordinate

logger = logging.getLogger(__name__)


class MapLayer(Protocol):
    def to_folium(self) -> folium.MacroElement:
        raise NotImplementedError


class MapContainer:
    def __init__(self, element_id: str = "event-map"):
        self.element_id = element_id
        self.canvas: Optional["MapCanvas"] = None
        self._listeners: Dict[str, List[Callable]] = {}

    def add_listener(self, event: str, handler: Callable) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._listeners.pop(event, None)

    def dispatch(self, event: str, *args) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())


class MapCanvas:
    def __init__(
        self,
        center: Coordinate,
        zoom: int = 12,
        *,
        tiles: Optional[dict] = None,
    ):
        self.center = center
        self.zoom = zoom
        self.tiles = tiles or get_tile_config()
        self.removed = False
        self.size_invalidations = 0
        self._layers: "OrderedDict[str, MapLayer]" = OrderedDict()
        self._fit: Optional[Tuple[List[List[float]], int, Optional[int]]] = None

    # layers

    def add_layer(self, key: str, layer: MapLayer) -> None:
        self._ensure_alive()
        if key in self._layers:
            raise ValueError(f"Layer '{key}' already on the map")
        self._layers[key] = layer

    def remove_layer(self, key: str) -> Optional[MapLayer]:
        return self._layers.pop(key, None)

    def get_layer(self, key: str) -> Optional[MapLayer]:
        return self._layers.get(key)

    def has_layer(self, key: str) -> bool:
        return key in self._layers

    def layer_keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._layers if key.startswith(prefix)]

    # viewport

    def fit_bounds(self, points: Iterable[Coordinate], padding: int, max_zoom: Optional[int] = None) -> None:
        self._ensure_alive()
        self._fit = (bounding_box(points), padding, max_zoom)

    @property
    def fitted_bounds(self) -> Optional[Tuple[List[List[float]], int, Optional[int]]]:
        return self._fit

    def invalidate_size(self, *_args) -> None:
        self.size_invalidations += 1

    # lifecycle

    def remove(self) -> None:
        self._layers.clear()
        self._fit = None
        self.removed = True

    def _ensure_alive(self) -> None:
        if self.removed:
            raise RuntimeError("map canvas has been removed")

    # rendering

    def to_folium(self) -> folium.Map:
        self._ensure_alive()
        fmap = folium.Map(
            location=self.center.as_latlng(),
            zoom_start=self.zoom,
            tiles=None,
            max_zoom=self.tiles["max_zoom"],
        )
        folium.TileLayer(
            tiles=self.tiles["url"],
            attr=self.tiles["attribution"],
            name="OpenStreetMap",
            max_zoom=self.tiles["max_zoom"],
        ).add_to(fmap)
        for layer in self._layers.values():
            layer.to_folium().add_to(fmap)
        if self._fit is not None:
            bounds, padding, max_zoom = self._fit
            fmap.fit_bounds(bounds, padding=(padding, padding), max_zoom=max_zoom)
        return fmap

    def render_html(self) -> str:
        html = self.to_folium().get_root().render()
        logger.debug("Rendered map with %d layers", len(self._layers))
        return html
