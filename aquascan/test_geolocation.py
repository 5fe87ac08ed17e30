import asyncio
import time

import geolocation
from geolocation import GeolocationAdapter, IpLocationProvider, StaticLocationProvider
from models import Location


def test_static_provider_location():
    adapter = GeolocationAdapter(StaticLocationProvider(28.61, 77.21, "Delhi"))

    location = asyncio.run(adapter.get_current_location())

    assert location == Location(28.61, 77.21, "Delhi")


def test_no_provider_is_unavailable():
    assert asyncio.run(GeolocationAdapter().get_current_location()) is None


def test_never_resolving_provider_times_out():
    async def hang():
        await asyncio.Event().wait()

    adapter = GeolocationAdapter(hang, timeout=0.05)

    started = time.monotonic()
    assert asyncio.run(adapter.get_current_location()) is None
    assert time.monotonic() - started < 1.0


def test_slow_sync_provider_times_out():
    def slow():
        time.sleep(0.3)
        return Location(1.0, 2.0)

    adapter = GeolocationAdapter(slow, timeout=0.05)

    assert asyncio.run(adapter.get_current_location()) is None


def test_permission_denied_is_absorbed():
    def denied():
        raise PermissionError("User denied Geolocation")

    assert asyncio.run(GeolocationAdapter(denied).get_current_location()) is None


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_ip_provider_reads_coordinates(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        seen["timeout"] = timeout
        return FakeResponse({"latitude": "19.07", "longitude": "72.87", "city": "Mumbai"})

    monkeypatch.setattr(geolocation.requests, "get", fake_get)

    location = IpLocationProvider("https://geo.example/json", timeout=2.0)()

    assert location == Location(19.07, 72.87, "Mumbai")
    assert seen == {"url": "https://geo.example/json", "timeout": 2.0}


def test_ip_provider_without_coordinates(monkeypatch):
    monkeypatch.setattr(geolocation.requests, "get", lambda url, timeout: FakeResponse({"city": "?"}))

    assert IpLocationProvider("https://geo.example/json")() is None
