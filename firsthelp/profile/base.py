"""Profile storage interface (port)."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from firsthelp.core.models import UserProfile


class ProfileStore(Protocol):
    """Port: read access to the stored user profile. ``None`` means no profile."""

    def get_profile(self) -> UserProfile | None: ...
