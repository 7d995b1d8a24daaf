"""Tests for the HTTP-backed dispatcher and geolocation probe."""

from __future__ import annotations

import json

import httpx
import pytest

from firsthelp.config import GeolocationConfig
from firsthelp.core.errors import DispatchError
from firsthelp.core.models import AlertIntent, Coordinate
from firsthelp.dispatch.http_dispatcher import HttpAlertDispatcher
from firsthelp.geo.probes import (
    IpGeolocationProbe,
    NullGeolocationProbe,
    StaticGeolocationProbe,
    build_probe,
    parse_fix,
)

RELAY_URL = "http://relay.test/api/send-sos"
GEO_URL = "http://geo.test/json/"
INTENT = AlertIntent(emergency_contact="5551234567", user_name="Ada")


def _dispatcher(handler) -> HttpAlertDispatcher:
    return HttpAlertDispatcher(RELAY_URL, transport=httpx.MockTransport(handler))


def _probe(handler) -> IpGeolocationProbe:
    return IpGeolocationProbe(GEO_URL, transport=httpx.MockTransport(handler))


# -- dispatcher ----------------------------------------------------------


@pytest.mark.asyncio
async def test_dispatch_success():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "messageId": "SM42"})

    response = await _dispatcher(handler).dispatch(INTENT)
    assert response.success is True
    assert response.message_id == "SM42"
    assert seen == [{"emergencyContact": "5551234567", "userName": "Ada"}]


@pytest.mark.asyncio
async def test_dispatch_accepts_message_sid():
    def handler(request):
        return httpx.Response(200, json={"success": True, "messageSid": "SM43"})

    response = await _dispatcher(handler).dispatch(INTENT)
    assert response.message_id == "SM43"


@pytest.mark.asyncio
async def test_dispatch_declared_failure():
    def handler(request):
        return httpx.Response(500, json={"success": False, "error": "Twilio is not configured"})

    response = await _dispatcher(handler).dispatch(INTENT)
    assert response.success is False
    assert response.error == "Twilio is not configured"


@pytest.mark.asyncio
async def test_dispatch_non_2xx_is_failure_even_if_body_claims_success():
    def handler(request):
        return httpx.Response(502, json={"success": True})

    response = await _dispatcher(handler).dispatch(INTENT)
    assert response.success is False


@pytest.mark.asyncio
async def test_dispatch_malformed_body():
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(DispatchError):
        await _dispatcher(handler).dispatch(INTENT)


@pytest.mark.asyncio
async def test_dispatch_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DispatchError):
        await _dispatcher(handler).dispatch(INTENT)


# -- geolocation ---------------------------------------------------------


@pytest.mark.asyncio
async def test_ip_probe_success():
    def handler(request):
        return httpx.Response(200, json={"status": "success", "lat": 45.5017, "lon": -73.5673})

    assert await _probe(handler).capture() == Coordinate(45.5017, -73.5673)


@pytest.mark.asyncio
async def test_ip_probe_failure_status():
    def handler(request):
        return httpx.Response(200, json={"status": "fail", "message": "private range"})

    assert await _probe(handler).capture() is None


@pytest.mark.asyncio
async def test_ip_probe_http_error():
    def handler(request):
        return httpx.Response(503)

    assert await _probe(handler).capture() is None


@pytest.mark.asyncio
async def test_ip_probe_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    assert await _probe(handler).capture() is None


@pytest.mark.asyncio
async def test_ip_probe_non_json():
    def handler(request):
        return httpx.Response(200, content=b"nope")

    assert await _probe(handler).capture() is None


def test_parse_fix():
    assert parse_fix({"latitude": 10, "longitude": 20}) == Coordinate(10.0, 20.0)
    assert parse_fix({"lat": 91, "lon": 0}) is None
    assert parse_fix({"lat": "45", "lon": "3"}) is None
    assert parse_fix({"lat": True, "lon": 3}) is None
    assert parse_fix({}) is None


@pytest.mark.asyncio
async def test_static_and_null_probes():
    assert await StaticGeolocationProbe(Coordinate(1.5, 2.5)).capture() == Coordinate(1.5, 2.5)
    assert await NullGeolocationProbe().capture() is None


def test_build_probe():
    assert isinstance(build_probe(GeolocationConfig()), IpGeolocationProbe)
    assert isinstance(build_probe(GeolocationConfig(provider="static")), StaticGeolocationProbe)
    assert isinstance(build_probe(GeolocationConfig(provider="none")), NullGeolocationProbe)
