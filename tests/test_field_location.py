import asyncio
import time

import requests

from core.field_location import FieldLocationPicker
from core.latest import LatestRequestGuard
from core.models import GeoPoint
from tools import geocoding_api


def test_guard_only_honours_newest_ticket():
    guard = LatestRequestGuard()
    first = guard.begin()
    second = guard.begin()

    assert not guard.is_latest(first)
    assert guard.is_latest(second)
    assert guard.current == second


def test_guard_run_reports_staleness():
    guard = LatestRequestGuard()

    async def value(delay, result):
        await asyncio.sleep(delay)
        return result

    async def run():
        return await asyncio.gather(guard.run(value(0.05, "slow")), guard.run(value(0, "fast")))

    assert asyncio.run(run()) == [(False, "slow"), (True, "fast")]


def test_only_the_latest_reverse_lookup_sets_the_address():
    def reverse(lat, lng):
        if lat == 1:
            time.sleep(0.2)
        return f"address {lat}"

    picker = FieldLocationPicker(address="typed", reverse_lookup=reverse)

    async def run():
        await asyncio.gather(picker.pick_point(1, 1), picker.pick_point(2, 2))

    asyncio.run(run())

    assert picker.address == "address 2"
    assert picker.location == GeoPoint(lat=2, lng=2)


def test_failed_reverse_lookup_keeps_address():
    picker = FieldLocationPicker(address="typed", reverse_lookup=lambda lat, lng: None)

    asyncio.run(picker.pick_point(38.4, 27.1))

    assert picker.address == "typed"
    assert picker.location == GeoPoint(lat=38.4, lng=27.1)


def test_locate_address():
    picker = FieldLocationPicker(
        location=GeoPoint(lat=1, lng=1),
        forward_lookup=lambda q: {"latitude": 38.6, "longitude": 27.07} if q == "Menemen" else {"error": "Location not found."},
    )

    assert asyncio.run(picker.locate_address("Nowhere")) == GeoPoint(lat=1, lng=1)
    assert asyncio.run(picker.locate_address("Menemen")) == GeoPoint(lat=38.6, lng=27.07)
    assert picker.address == "Menemen"

    picker.clear_location()
    assert picker.location is None


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_geocoding_parses_nominatim_responses(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse([{"lat": "38.6", "lon": "27.07"}]))
    assert geocoding_api.get_coordinates_for_address("Menemen") == {"latitude": 38.6, "longitude": 27.07}

    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse([]))
    assert "error" in geocoding_api.get_coordinates_for_address("Nowhere")

    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse({"display_name": "Menemen, İzmir"}))
    assert geocoding_api.get_address_for_coordinates(38.6, 27.07) == "Menemen, İzmir"


def test_geocoding_request_failures(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.exceptions.ConnectionError("offline")

    monkeypatch.setattr(requests, "get", fail)

    assert geocoding_api.get_coordinates_for_address("Menemen")["error"].startswith("API request failed")
    assert geocoding_api.get_address_for_coordinates(38.6, 27.07) is None
