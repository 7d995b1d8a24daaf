"""Geolocation probe implementations."""

from __future__ import annotations

import httpx
import structlog

from firsthelp.config import GeolocationConfig
from firsthelp.core.models import Coordinate

log = structlog.get_logger()


def parse_fix(body: dict) -> Coordinate | None:
    """Extract a coordinate from an IP-geolocation response body.

    Accepts ``lat``/``lon`` (ip-api.com) as well as ``latitude``/``longitude``.
    """
    if body.get("status", "success") != "success":
        return None
    lat = body.get("lat", body.get("latitude"))
    lon = body.get("lon", body.get("longitude"))
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return None
    if isinstance(lat, bool) or isinstance(lon, bool):
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return Coordinate(latitude=float(lat), longitude=float(lon))


class IpGeolocationProbe:
    """Approximate position from an IP-geolocation HTTP service."""

    def __init__(self, lookup_url: str, timeout_seconds: float = 5.0,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._lookup_url = lookup_url
        self._timeout = timeout_seconds
        self._transport = transport

    async def capture(self) -> Coordinate | None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._lookup_url)
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning("geolocation_unavailable", url=self._lookup_url, exc_info=True)
            return None

        if not isinstance(body, dict):
            log.warning("geolocation_unavailable", url=self._lookup_url, reason="malformed body")
            return None
        fix = parse_fix(body)
        if fix is None:
            log.warning("geolocation_unavailable", url=self._lookup_url, reason="no fix in response")
        else:
            log.info("geolocation_captured", lat=fix.latitude, lon=fix.longitude)
        return fix


class StaticGeolocationProbe:
    """Always reports the configured coordinate (fixed installations, demos)."""

    def __init__(self, coordinate: Coordinate) -> None:
        self._coordinate = coordinate

    async def capture(self) -> Coordinate | None:
        return self._coordinate


class NullGeolocationProbe:
    """No location capability."""

    async def capture(self) -> Coordinate | None:
        log.info("geolocation_unavailable", reason="no provider")
        return None


def build_probe(config: GeolocationConfig):
    if config.provider == "ip":
        return IpGeolocationProbe(config.lookup_url, config.timeout_seconds)
    if config.provider == "static":
        return StaticGeolocationProbe(Coordinate(config.static_latitude, config.static_longitude))
    return NullGeolocationProbe()
