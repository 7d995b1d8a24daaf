"""File-based key-value profile store.

The store file is a JSON object mapping keys to JSON-encoded string values,
mirroring browser local storage. The profile lives under a single key:

    {"firsthelp_user_profile": "{\\"name\\": \\"Ada\\", ...}"}
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from firsthelp.core.errors import ValidationError
from firsthelp.core.models import UserProfile
from firsthelp.core.validation import validate_profile

log = structlog.get_logger()

PROFILE_KEY = "firsthelp_user_profile"


class FileProfileStore:
    """ProfileStore backed by a JSON key-value file on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            log.warning("profile_store_unreadable", path=str(self._path), exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def get_profile(self) -> UserProfile | None:
        raw = self._read_all().get(PROFILE_KEY)
        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            log.warning("profile_record_corrupt", path=str(self._path))
            return None
        if not isinstance(record, dict):
            return None
        return UserProfile.from_dict(record)

    def save_profile(self, profile: UserProfile) -> None:
        """Validate and persist the profile, replacing any previous one."""
        errors = validate_profile(profile)
        if errors:
            raise ValidationError("invalid profile", errors=errors)

        data = self._read_all()
        data[PROFILE_KEY] = json.dumps(profile.to_dict())
        self._write_all(data)
        log.info("profile_saved", path=str(self._path))

    def clear_profile(self) -> bool:
        """Remove the stored profile. Returns False if there was none."""
        data = self._read_all()
        if data.pop(PROFILE_KEY, None) is None:
            return False
        self._write_all(data)
        log.info("profile_cleared", path=str(self._path))
        return True
