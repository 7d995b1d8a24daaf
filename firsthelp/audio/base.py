"""Audio interfaces (ports) for metronome cues and the SOS alarm."""

from __future__ import annotations

from typing import Protocol


class ToneEmitter(Protocol):
    """Port: plays one short tone without blocking. Never raises."""

    def emit(self, frequency_hz: float, duration_ms: int, peak_amplitude: float = 0.3) -> None: ...


class AlarmPlayer(Protocol):
    """Port: a looping alarm that keeps sounding until stopped. Never raises."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SilentToneEmitter:
    """ToneEmitter used when audio is disabled."""

    def emit(self, frequency_hz: float, duration_ms: int, peak_amplitude: float = 0.3) -> None:
        pass


class SilentAlarmPlayer:
    """AlarmPlayer used when audio is disabled."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass
