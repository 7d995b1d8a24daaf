"""SOS message rendering.

The relay renders the full SMS body; the client renders the shorter manual
fallback used when the relay cannot be reached. Both share the map link
format so recipients always get the same URL.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from urllib.parse import quote

from firsthelp.core.models import AlertIntent, Coordinate

MAPS_URL = "https://maps.google.com/?q={lat},{lng}"

DISCLAIMER = "This is an automated emergency message from FirstHelp."


def format_number(value: float) -> str:
    """Render a number the way JavaScript prints it.

    Integral floats drop the fraction (40.0 -> 40), magnitudes down to 1e-6 use
    plain decimals (1e-05 -> 0.00001) and smaller ones use a short exponent
    (5e-07 -> 5e-7).
    """
    if not isinstance(value, float):
        return str(value)
    if not math.isfinite(value):
        return "NaN" if math.isnan(value) else ("Infinity" if value > 0 else "-Infinity")
    magnitude = abs(value)
    if value.is_integer() and magnitude < 1e21:
        return str(int(value))
    if 1e-6 <= magnitude < 1e21:
        return format(Decimal(repr(value)), "f")
    mantissa, exponent = repr(value).split("e")
    return f"{mantissa}e{int(exponent):+d}"


def maps_link(coordinate: Coordinate) -> str:
    return MAPS_URL.format(
        lat=format_number(coordinate.latitude),
        lng=format_number(coordinate.longitude),
    )


def format_timestamp(moment: datetime) -> str:
    """Locale-style timestamp, e.g. ``10/19/2026, 3:04:05 PM``."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return (f"{moment.month}/{moment.day}/{moment.year}, "
            f"{hour}:{moment.minute:02d}:{moment.second:02d} {suffix}")


def render_sos_message(
    user_name: str | None,
    coordinate: Coordinate | None,
    custom_message: str | None = None,
    timestamp: datetime | None = None,
) -> str:
    """Render the SMS body sent by the relay."""
    if timestamp is None:
        timestamp = datetime.now()

    parts = ["🚨 EMERGENCY ALERT 🚨\n"]
    if user_name:
        parts.append(f"From: {user_name}\n\n")
    parts.append("I NEED HELP!\n\n")
    if custom_message:
        parts.append(f"Message: {custom_message}\n\n")

    if coordinate is not None:
        parts.append("📍 Location:\n")
        parts.append(f"Lat: {format_number(coordinate.latitude)}\n")
        parts.append(f"Long: {format_number(coordinate.longitude)}\n")
        parts.append(f"View on Map: {maps_link(coordinate)}\n\n")
    else:
        parts.append("Location: Unavailable\n\n")

    parts.append(f"Time: {format_timestamp(timestamp)}\n\n")
    parts.append(DISCLAIMER)
    return "".join(parts)


def render_fallback_message(intent: AlertIntent) -> str:
    """Short message pre-filled in the manual SMS composer. No timestamp."""
    text = "EMERGENCY! I need help."
    if intent.user_name:
        text += f" This is {intent.user_name}."
    if intent.coordinate is not None:
        text += f" My location: {maps_link(intent.coordinate)}"
    else:
        text += " My location: Location unavailable"
    return text


def sms_uri(contact: str, body: str) -> str:
    return f"sms:{contact}?body={quote(body, safe='')}"


def tel_uri(number: str) -> str:
    return f"tel:{number}"
