"""pygame-backed tone emitter and alarm.

Tones are synthesized with numpy and handed to pygame's mixer. The mixer is
initialised lazily on first use and shared by every sound for the rest of
the process. Any audio failure is logged and swallowed: a missing sound card
must never stop the metronome or the SOS countdown.
"""

from __future__ import annotations

import numpy as np
import pygame
import structlog

log = structlog.get_logger()

# The envelope decays exponentially to this level by the end of each tone.
ENVELOPE_FLOOR = 0.01

# Alarm: alternating siren tones, looped until stopped.
ALARM_TONES = ((880.0, 250), (660.0, 250))
ALARM_AMPLITUDE = 0.5


def synthesize_tone(frequency_hz: float, duration_ms: int, peak_amplitude: float,
                    sample_rate: int = 44100) -> np.ndarray:
    """Return a mono float waveform with an exponential decay envelope."""
    n_samples = max(int(sample_rate * duration_ms / 1000), 1)
    t = np.arange(n_samples) / sample_rate
    duration_s = n_samples / sample_rate
    if peak_amplitude > ENVELOPE_FLOOR:
        envelope = peak_amplitude * (ENVELOPE_FLOOR / peak_amplitude) ** (t / duration_s)
    else:
        envelope = np.full(n_samples, peak_amplitude)
    return np.sin(2 * np.pi * frequency_hz * t) * envelope


def to_pcm16(waveform: np.ndarray, channels: int) -> np.ndarray:
    """Convert a [-1, 1] float waveform to int16 PCM with the mixer's channel layout."""
    pcm = (np.clip(waveform, -1.0, 1.0) * 32767).astype(np.int16)
    if channels == 1:
        return pcm
    return np.ascontiguousarray(np.column_stack([pcm] * channels))


class PygameMixer:
    """Lazily initialised pygame mixer shared by tones and the alarm."""

    def __init__(self, sample_rate: int = 44100) -> None:
        self._sample_rate = sample_rate
        self._ready: bool | None = None
        self._channels = 2

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def ensure(self) -> bool:
        """Initialise the mixer once. Returns False if audio is unavailable."""
        if self._ready is None:
            try:
                if pygame.mixer.get_init() is None:
                    pygame.mixer.init(frequency=self._sample_rate, size=-16, channels=2)
                frequency, _, channels = pygame.mixer.get_init()
                self._sample_rate = frequency
                self._channels = channels
                self._ready = True
                log.debug("audio_mixer_ready", sample_rate=frequency, channels=channels)
            except Exception:
                log.warning("audio_unavailable", exc_info=True)
                self._ready = False
        return self._ready

    def make_sound(self, waveform: np.ndarray) -> pygame.mixer.Sound:
        return pygame.sndarray.make_sound(to_pcm16(waveform, self._channels))


class PygameToneEmitter:
    """ToneEmitter playing synthesized sine beeps through pygame."""

    def __init__(self, mixer: PygameMixer) -> None:
        self._mixer = mixer
        self._sounds: dict[tuple[float, int, float], pygame.mixer.Sound] = {}

    def emit(self, frequency_hz: float, duration_ms: int, peak_amplitude: float = 0.3) -> None:
        try:
            if not self._mixer.ensure():
                return
            key = (frequency_hz, duration_ms, peak_amplitude)
            sound = self._sounds.get(key)
            if sound is None:
                waveform = synthesize_tone(frequency_hz, duration_ms, peak_amplitude,
                                           self._mixer.sample_rate)
                sound = self._mixer.make_sound(waveform)
                self._sounds[key] = sound
            sound.play()
        except Exception:
            log.debug("tone_failed", frequency_hz=frequency_hz, exc_info=True)


class PygameAlarmPlayer:
    """AlarmPlayer looping a two-tone siren through pygame."""

    def __init__(self, mixer: PygameMixer) -> None:
        self._mixer = mixer
        self._sound: pygame.mixer.Sound | None = None
        self.playing = False

    def start(self) -> None:
        if self.playing:
            return
        try:
            if not self._mixer.ensure():
                return
            if self._sound is None:
                waveform = np.concatenate([
                    synthesize_tone(freq, ms, ALARM_AMPLITUDE, self._mixer.sample_rate)
                    for freq, ms in ALARM_TONES
                ])
                self._sound = self._mixer.make_sound(waveform)
            self._sound.play(loops=-1)
            self.playing = True
        except Exception:
            log.warning("alarm_failed", exc_info=True)

    def stop(self) -> None:
        if not self.playing:
            return
        self.playing = False
        try:
            if self._sound is not None:
                self._sound.stop()
        except Exception:
            log.debug("alarm_stop_failed", exc_info=True)
