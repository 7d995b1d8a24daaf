"""User profile validation rules."""

from __future__ import annotations

import re

from firsthelp.core.models import UserProfile

_PHONE_RE = re.compile(r"^[0-9]{10}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_phone(value: str) -> str:
    """Strip the spaces and dashes people type into phone numbers."""
    return re.sub(r"[\s-]", "", value)


def _validate_name(name: str) -> str:
    if not name.strip():
        return "Name is required"
    if len(name) < 2:
        return "Name must be at least 2 characters"
    return ""


def _validate_phone(phone: str, label: str) -> str:
    if not phone.strip():
        return f"{label} is required"
    if not _PHONE_RE.match(normalize_phone(phone)):
        return f"Please enter a valid 10-digit {label.lower()}"
    return ""


def _validate_email(email: str) -> str:
    if not email.strip():
        return "Email is required"
    if not _EMAIL_RE.match(email):
        return "Please enter a valid email address"
    return ""


def validate_profile(profile: UserProfile) -> dict[str, str]:
    """Return field -> error message for every invalid field (empty if valid)."""
    errors = {
        "name": _validate_name(profile.name),
        "phone": _validate_phone(profile.phone, "Phone number"),
        "email": _validate_email(profile.email),
        "emergencyContact": _validate_phone(profile.emergency_contact, "Emergency contact"),
    }
    return {field: msg for field, msg in errors.items() if msg}
