"""FirstHelp core internal data models.

These are plain dataclasses and enums with no framework dependencies.
JSON payloads are converted to/from these at the boundary.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from firsthelp.core.errors import ValidationError


class Phase(str, enum.Enum):
    COMPRESSIONS = "compressions"
    BREATHS = "breaths"


# Beats per phase before rolling over to the other phase.
PHASE_LIMITS = {
    Phase.COMPRESSIONS: 30,
    Phase.BREATHS: 2,
}


def phase_limit(phase: Phase) -> int:
    return PHASE_LIMITS[phase]


@dataclass(frozen=True)
class MetronomeState:
    phase: Phase = Phase.COMPRESSIONS
    beat_count: int = 0
    cycle_count: int = 0
    elapsed_seconds: int = 0
    running: bool = False

    @property
    def phase_limit(self) -> int:
        return phase_limit(self.phase)

    @property
    def progress_percent(self) -> float:
        return self.beat_count / self.phase_limit * 100


class SOSStage(str, enum.Enum):
    COUNTDOWN = "countdown"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class DispatchResult(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class ManualAction(str, enum.Enum):
    CALL_EMERGENCY = "call_emergency"
    CALL_CONTACT = "call_contact"
    TEXT_CONTACT = "text_contact"
    SHARE_LOCATION = "share_location"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SOSState:
    stage: SOSStage
    seconds_remaining: int
    dispatch_result: DispatchResult
    coordinate: Coordinate | None = None
    fallback_uri: str | None = None
    closed: bool = False


@dataclass(frozen=True)
class UserProfile:
    name: str = ""
    phone: str = ""
    email: str = ""
    emergency_contact: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            name=data.get("name", "") or "",
            phone=data.get("phone", "") or "",
            email=data.get("email", "") or "",
            emergency_contact=data.get("emergencyContact", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "emergencyContact": self.emergency_contact,
        }


@dataclass(frozen=True)
class AlertIntent:
    emergency_contact: str
    user_name: str | None = None
    coordinate: Coordinate | None = None
    custom_message: str | None = None

    def __post_init__(self) -> None:
        if not self.emergency_contact or not self.emergency_contact.strip():
            raise ValidationError("Emergency contact number is required")

    def to_payload(self) -> dict:
        """Request body for the relay's /api/send-sos endpoint."""
        payload: dict = {"emergencyContact": self.emergency_contact}
        if self.user_name:
            payload["userName"] = self.user_name
        if self.coordinate is not None:
            payload["location"] = {
                "latitude": self.coordinate.latitude,
                "longitude": self.coordinate.longitude,
            }
        if self.custom_message:
            payload["customMessage"] = self.custom_message
        return payload


@dataclass(frozen=True)
class DispatchResponse:
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SosRequestData:
    """An SOS request as received by the relay."""
    emergency_contact: str
    user_name: str | None = None
    location: Coordinate | None = None
    custom_message: str | None = None
