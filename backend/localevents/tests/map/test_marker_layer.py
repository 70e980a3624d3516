import asyncio

import pytest

from localevents.domain.models import Coordinate, InterestStatus, RouteInfo
from localevents.map.canvas import MapCanvas
from localevents.map.markers import MARKER_KEY_PREFIX, MarkerLayer, event_icon_html, marker_key


def _noop(event_id):
    pass


def _layer(tiles, **kwargs):
    canvas = MapCanvas(Coordinate(40.7589, -73.9851), tiles=tiles)
    return canvas, MarkerLayer(canvas, **kwargs)


def test_rebuild_places_markers_in_order(tiles, events):
    canvas, layer = _layer(tiles)
    placed = layer.rebuild(events, {3: InterestStatus.ATTENDED}, _noop, _noop)
    assert [m.event.id for m in placed] == [1, 2, 3]
    assert canvas.layer_keys(MARKER_KEY_PREFIX) == ["event:1", "event:2", "event:3"]
    assert layer.get(3).popup.status == InterestStatus.ATTENDED
    assert layer.get(1).popup.status == InterestStatus.NONE


def test_rebuild_disposes_previous_popups(tiles, events):
    canvas, layer = _layer(tiles)
    old = layer.rebuild(events, {}, _noop, _noop)
    layer.rebuild(events[:1], {}, _noop, _noop)
    assert all(marker.popup.disposed for marker in old)
    assert canvas.layer_keys(MARKER_KEY_PREFIX) == [marker_key(1)]


def test_duplicate_and_invalid_events_are_skipped(tiles, events, event_factory):
    canvas, layer = _layer(tiles)
    placed = layer.rebuild(
        events + [event_factory(1, 40.0, -74.0), event_factory(8, lat=float("nan"), lng=0.0)],
        {},
        _noop,
        _noop,
    )
    assert len(placed) == 3
    assert layer.get(1).coordinate == events[0].coordinate
    assert [exc.event_id for exc in layer.skipped] == [8]


def test_click_unknown_marker_raises(tiles, events):
    _, layer = _layer(tiles)
    layer.rebuild(events, {}, _noop, _noop)
    with pytest.raises(KeyError):
        asyncio.run(layer.click(42))


def test_click_delegates_to_handler(tiles, events):
    clicked = []

    async def on_click(event):
        clicked.append(event.id)

    _, layer = _layer(tiles, on_marker_click=on_click)
    layer.rebuild(events, {}, _noop, _noop)
    asyncio.run(layer.click(2))
    asyncio.run(layer.get(3).popup.click_show_route())
    assert clicked == [2, 3]


def test_route_info_survives_rebuild(tiles, events):
    _, layer = _layer(tiles)
    layer.rebuild(events, {}, _noop, _noop)
    info = RouteInfo(destination=events[1].coordinate, distance_km=1.2, duration_min=4)
    layer.set_route_info(info)
    layer.rebuild(events, {2: InterestStatus.INTERESTED}, _noop, _noop)
    assert layer.get(2).popup.route_info == info
    assert layer.get(1).popup.route_info is None


def test_icon_html_uses_event_image(event_factory):
    html = event_icon_html(event_factory(5, image="https://img.test/a.jpg?x=1&y=2"))
    assert 'src="https://img.test/a.jpg?x=1&amp;y=2"' in html
    assert "border-radius:12px" in html
