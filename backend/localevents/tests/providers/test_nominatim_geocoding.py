import asyncio

import httpx
import pytest

from localevents.domain.errors import GeocodingUnavailable
from localevents.domain.geo import distance_km
from localevents.domain.models import Coordinate
from localevents.infra.geocoding.nominatim_client import NominatimClient
from localevents.providers.geocoding.nominatim import NominatimGeocodingProvider


def _provider(handler, debounce_s=0.0):
    client = NominatimClient(
        "https://nominatim.test/search",
        user_agent="localevents-tests",
        transport=httpx.MockTransport(handler),
    )
    return NominatimGeocodingProvider(client, debounce_s=debounce_s)


def _item(place_id, name, lat, lon):
    return {"place_id": place_id, "display_name": name, "lat": str(lat), "lon": str(lon)}


def test_debounce_coalesces_typing_into_one_request():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=[_item(1, "Cafe Nero, Manhattan", 40.75, -73.98)])

    provider = _provider(handler, debounce_s=0.3)

    async def scenario():
        tasks = []
        for text in ["c", "ca", "caf", "cafe"]:
            tasks.append(asyncio.ensure_future(provider.search(text)))
            await asyncio.sleep(0.1)
        await asyncio.sleep(0.4)
        return await asyncio.gather(*tasks)

    results = asyncio.run(scenario())
    assert len(requests) == 1
    assert requests[0].url.params["q"] == "cafe"
    assert results[0] == [] and results[1] == [] and results[2] == []
    assert [c.primary_label for c in results[3]] == ["Cafe Nero"]


def test_short_query_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    provider = _provider(handler)
    assert asyncio.run(provider.search("ca")) == []
    assert asyncio.run(provider.search_now("ab")) == []
    assert calls == []
    assert provider.requests_sent == 0


def test_proximity_ranking_orders_by_distance():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["agent"] = request.headers["User-Agent"]
        return httpx.Response(
            200,
            json=[
                _item(1, "Result one", 40.76, -73.98),
                _item(2, "Result two", 41.00, -74.00),
                _item(3, "Result three", 40.759, -73.986),
            ],
        )

    viewer = Coordinate(40.7589, -73.9851)
    candidates = asyncio.run(_provider(handler).search_now("coffee", viewer))

    assert [c.place_id for c in candidates] == ["3", "1", "2"]
    distances = [c.distance_km for c in candidates]
    assert distances == sorted(distances)
    assert distances[0] == distance_km(viewer, Coordinate(40.759, -73.986))
    assert seen["params"]["limit"] == "10"
    assert seen["params"]["bounded"] == "0"
    west, north, east, south = (float(v) for v in seen["params"]["viewbox"].split(","))
    assert west == pytest.approx(-74.4851)
    assert north == pytest.approx(41.2589)
    assert east == pytest.approx(-73.4851)
    assert south == pytest.approx(40.2589)
    assert seen["agent"] == "localevents-tests"


def test_ranked_results_are_capped_at_five():
    def handler(request):
        return httpx.Response(200, json=[_item(i, f"Place {i}", 40.70 + i / 100, -73.98) for i in range(10)])

    candidates = asyncio.run(_provider(handler).search_now("place", Coordinate(40.7589, -73.9851)))
    assert len(candidates) == 5


def test_unbiased_search_keeps_service_order_without_distance():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json=[_item(7, "Far, Away", 10, 10), _item(8, "Near, Here", 40.7, -74)])

    candidates = asyncio.run(_provider(handler).search_now("somewhere"))
    assert [c.place_id for c in candidates] == ["7", "8"]
    assert all(c.distance_km is None for c in candidates)
    assert seen["limit"] == "5"
    assert "viewbox" not in seen


def test_invalid_items_are_skipped():
    def handler(request):
        return httpx.Response(
            200,
            json=[
                _item(1, "Good", 40.7, -73.9),
                {"place_id": 2, "display_name": "No coords"},
                _item(3, "Bad lat", 99, 0),
                "garbage",
            ],
        )

    candidates = asyncio.run(_provider(handler).search_now("good"))
    assert [c.place_id for c in candidates] == ["1"]


def test_transport_failure_yields_empty_list():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    provider = _provider(handler)
    assert asyncio.run(provider.search_now("museum")) == []
    assert isinstance(provider.last_error, GeocodingUnavailable)


def test_server_error_and_bad_payload_yield_empty_list():
    provider = _provider(lambda request: httpx.Response(503, text="busy"))
    assert asyncio.run(provider.search_now("museum")) == []
    assert provider.last_error is not None

    provider = _provider(lambda request: httpx.Response(200, json={"error": "nope"}))
    assert asyncio.run(provider.search_now("museum")) == []
    assert provider.last_error is not None


def test_null_display_name_becomes_empty_label():
    def handler(request):
        return httpx.Response(200, json=[{"place_id": 4, "display_name": None, "lat": "40.7", "lon": "-73.9"}])

    candidates = asyncio.run(_provider(handler).search_now("nameless"))
    assert candidates[0].display_name == ""
    assert candidates[0].primary_label == ""
