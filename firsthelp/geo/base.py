"""Geolocation interface (port)."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from firsthelp.core.models import Coordinate


class GeolocationProbe(Protocol):
    """Port: one best-effort position fix.

    Resolves to ``None`` when the position is unavailable (denied, timed out,
    no provider). Never raises.
    """

    async def capture(self) -> Coordinate | None: ...
