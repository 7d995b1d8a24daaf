"""Relay statistics.

In-memory counters for the SOS relay. No framework dependencies.
"""

from __future__ import annotations

import threading
import time


class RelayStats:
    """Thread-safe relay counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        self.sos_received: int = 0
        self.sos_sent: int = 0
        self.sos_rejected: int = 0
        self.sos_failed: int = 0
        self.test_sms_sent: int = 0
        self.test_sms_failed: int = 0
        self.last_sent_at: float | None = None

    def record_received(self) -> None:
        with self._lock:
            self.sos_received += 1

    def record_sent(self) -> None:
        with self._lock:
            self.sos_sent += 1
            self.last_sent_at = time.time()

    def record_rejected(self) -> None:
        """Request refused before reaching the gateway (validation)."""
        with self._lock:
            self.sos_rejected += 1

    def record_failed(self) -> None:
        """Gateway unconfigured or refused the message."""
        with self._lock:
            self.sos_failed += 1

    def record_test_sms(self, ok: bool) -> None:
        with self._lock:
            if ok:
                self.test_sms_sent += 1
            else:
                self.test_sms_failed += 1

    def uptime_seconds(self) -> float:
        return round(time.time() - self._started_at, 1)

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        with self._lock:
            return {
                "uptime_seconds": self.uptime_seconds(),
                "sos_received": self.sos_received,
                "sos_sent": self.sos_sent,
                "sos_rejected": self.sos_rejected,
                "sos_failed": self.sos_failed,
                "test_sms_sent": self.test_sms_sent,
                "test_sms_failed": self.test_sms_failed,
                "seconds_since_last_sent": (
                    round(time.time() - self.last_sent_at, 1)
                    if self.last_sent_at is not None else None
                ),
            }
