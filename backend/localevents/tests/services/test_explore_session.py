import asyncio

import pytest

from localevents.domain.errors import InvalidEvent
from localevents.domain.models import Coordinate, InterestStatus
from localevents.map.markers import MARKER_KEY_PREFIX
from localevents.map.view import SEARCH_PIN_KEY, MapViewState
from localevents.providers.location.viewer import DeniedGeolocation, FixedGeolocation
from localevents.services.catalog import EventCatalog
from localevents.services.explore_session import ExploreSession
from localevents.services.interests import InterestBook


@pytest.fixture()
def session(catalog, geocoder, router, tiles):
    return ExploreSession(catalog, geocoder=geocoder, router=router, tiles=tiles)


def test_sample_catalog_has_six_events():
    catalog = EventCatalog.load()
    assert len(catalog) == 6
    assert catalog.get(1).title == "Summer Music Festival"
    assert catalog.next_id() == 7


def test_interest_book_set_and_clear():
    book = InterestBook()
    assert book.toggle_interested(1) == InterestStatus.INTERESTED
    assert book.toggle_attended(1) == InterestStatus.ATTENDED
    assert book.state == {1: InterestStatus.ATTENDED}
    assert book.toggle_attended(1) == InterestStatus.NONE
    assert book.state == {}


def test_start_with_denied_geolocation_uses_fallback(session, monkeypatch):
    monkeypatch.setenv("LOCALEVENTS_FALLBACK_LAT", "27.7172")
    monkeypatch.setenv("LOCALEVENTS_FALLBACK_LNG", "85.3240")
    position = asyncio.run(session.start(DeniedGeolocation()))
    assert position.coordinate == Coordinate(27.7172, 85.3240)
    assert session.view.state == MapViewState.LIVE
    assert len(session.view.canvas.layer_keys(MARKER_KEY_PREFIX)) == 3


def test_popup_toggle_updates_book_and_rebuilds_markers(session):
    asyncio.run(session.start(FixedGeolocation(Coordinate(40.75, -73.98))))
    session.view.markers.get(2).popup.click_interested()
    assert session.interests.status(2) == InterestStatus.INTERESTED
    assert session.view.markers.get(2).popup.status == InterestStatus.INTERESTED

    session.view.markers.get(2).popup.click_interested()
    assert session.interests.status(2) == InterestStatus.NONE


def test_toggle_unknown_event_raises(session):
    with pytest.raises(KeyError):
        session.toggle_interested(404)


def test_route_search_and_select(session):
    async def scenario():
        await session.start(FixedGeolocation(Coordinate(40.75, -73.98)))
        info = await session.route_to(1)
        candidates, superseded = await session.search("bryant")
        return info, candidates, superseded

    info, candidates, superseded = asyncio.run(scenario())
    assert info.ok
    assert not superseded
    assert candidates[0].place_id == "p1"

    selected = session.select("p1")
    assert session.selected_location == selected
    assert session.view.canvas.has_layer(SEARCH_PIN_KEY)
    with pytest.raises(KeyError):
        session.select("missing")


def test_create_event_geocodes_missing_coordinates(session, geocoder):
    async def scenario():
        await session.start()
        return await session.create_event(title="Picnic", date="2025-11-01", time="12:00", location="Bryant Park")

    event = asyncio.run(scenario())
    assert event.id == 4
    assert (event.lat, event.lng) == (40.7536, -73.9832)
    assert geocoder.queries == ["Bryant Park"]
    assert session.view.markers.get(4) is not None


def test_create_event_rejects_unresolvable_and_out_of_range(session, geocoder):
    geocoder.results = []
    with pytest.raises(InvalidEvent):
        asyncio.run(session.create_event(title="X", date="2025-11-01", time="12:00", location="Nowhere"))
    with pytest.raises(InvalidEvent):
        asyncio.run(
            session.create_event(title="X", date="2025-11-01", time="12:00", location="Pole", lat=120.0, lng=0.0)
        )
    assert len(session.catalog) == 3


def test_close_tears_down_map(session):
    asyncio.run(session.start())
    canvas = session.view.canvas
    session.close()
    assert canvas.removed
    assert session.container.listener_count() == 0
    assert session.search_box is None


def test_catalog_load_skips_out_of_range_events(tmp_path):
    source = tmp_path / "events.json"
    source.write_text(
        '[{"id": 1, "title": "Ok", "lat": 40.7, "lng": -73.9},'
        ' {"id": 2, "title": "Off the map", "lat": 140.0, "lng": 0.0},'
        ' {"id": 3, "title": "No coords"}]',
        encoding="utf-8",
    )
    catalog = EventCatalog.load(source)
    assert [event.id for event in catalog.list()] == [1]
