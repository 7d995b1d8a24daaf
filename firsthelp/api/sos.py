"""SOS relay API endpoints.

This is the thin FastAPI adapter. It parses JSON requests into internal
models, calls the relay and maps errors to status codes.
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from firsthelp.core.errors import SmsGatewayError, ValidationError
from firsthelp.core.models import Coordinate, SosRequestData

router = APIRouter(prefix="/api")


def _as_number(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _parse_location(raw) -> Coordinate | None:
    """Parse ``{latitude, longitude}``; ``{lat, lng}`` from older clients is accepted too."""
    if not isinstance(raw, dict):
        return None
    lat = _as_number(raw.get("latitude", raw.get("lat")))
    lng = _as_number(raw.get("longitude", raw.get("lng")))
    if lat is None or lng is None:
        return None
    return Coordinate(latitude=lat, longitude=lng)


def _as_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_sos_request(body: dict) -> SosRequestData:
    return SosRequestData(
        emergency_contact=_as_text(body.get("emergencyContact")) or "",
        user_name=_as_text(body.get("userName")),
        location=_parse_location(body.get("location")),
        custom_message=_as_text(body.get("customMessage")),
    )


async def _json_body(request: Request) -> dict | None:
    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": message})


@router.post("/send-sos")
async def send_sos(request: Request) -> JSONResponse:
    """Relay an SOS alert to the emergency contact by SMS."""
    from firsthelp.main import get_relay

    body = await _json_body(request)
    if body is None:
        return _error(400, "invalid JSON")

    sos = _parse_sos_request(body)
    try:
        message_id = await get_relay().send_sos(sos)
    except ValidationError as exc:
        return _error(400, str(exc))
    except SmsGatewayError as exc:
        return _error(500, str(exc) or "Failed to send SOS message")

    return JSONResponse(content={
        "success": True,
        "messageId": message_id,
        "sentTo": sos.emergency_contact,
        "message": "SOS message sent successfully",
    })


@router.post("/test-sms")
async def test_sms(request: Request) -> JSONResponse:
    """Send a fixed test SMS to check the gateway setup."""
    from firsthelp.main import get_relay

    body = await _json_body(request)
    if body is None:
        return _error(400, "invalid JSON")

    phone_number = _as_text(body.get("phoneNumber")) or ""
    try:
        message_id = await get_relay().send_test(phone_number)
    except ValidationError as exc:
        return _error(400, str(exc))
    except SmsGatewayError as exc:
        return _error(500, str(exc))

    return JSONResponse(content={
        "success": True,
        "messageId": message_id,
        "message": "Test SMS sent successfully",
    })
