"""Manual action launcher interface (port)."""

from __future__ import annotations

from typing import Protocol


class ActionLauncher(Protocol):
    """Port: hands a ``tel:``, ``sms:`` or map URI to the platform.

    Returns True if the platform accepted it.
    """

    def open(self, uri: str) -> bool: ...
