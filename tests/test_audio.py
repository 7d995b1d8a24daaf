"""Tests for tone synthesis and the best-effort pygame audio adapters."""

from __future__ import annotations

import numpy as np
import pytest

from firsthelp.audio.pygame_audio import (
    ENVELOPE_FLOOR,
    PygameAlarmPlayer,
    PygameToneEmitter,
    synthesize_tone,
    to_pcm16,
)


def test_tone_length_and_envelope():
    wave = synthesize_tone(800, 50, 0.3, sample_rate=44100)
    assert len(wave) == 2205
    assert np.max(np.abs(wave[:100])) <= 0.3
    assert np.max(np.abs(wave[:100])) > 0.2
    assert np.max(np.abs(wave[-50:])) <= ENVELOPE_FLOOR * 1.1


def test_tiny_amplitude_is_flat():
    wave = synthesize_tone(400, 10, 0.005, sample_rate=8000)
    assert np.max(np.abs(wave)) <= 0.005


def test_pcm_layout():
    wave = synthesize_tone(1000, 20, 0.3, sample_rate=8000)
    stereo = to_pcm16(wave, channels=2)
    mono = to_pcm16(wave, channels=1)
    assert stereo.shape == (160, 2)
    assert stereo.dtype == np.int16
    assert stereo.flags["C_CONTIGUOUS"]
    assert mono.shape == (160,)


class _BrokenMixer:
    sample_rate = 44100

    def ensure(self) -> bool:
        raise RuntimeError("no audio device")


class _UnavailableMixer:
    sample_rate = 44100

    def __init__(self) -> None:
        self.sounds_made = 0

    def ensure(self) -> bool:
        return False

    def make_sound(self, waveform):
        self.sounds_made += 1


@pytest.mark.parametrize("mixer_cls", [_BrokenMixer, _UnavailableMixer])
def test_audio_failures_are_swallowed(mixer_cls):
    mixer = mixer_cls()
    PygameToneEmitter(mixer).emit(800, 50)

    alarm = PygameAlarmPlayer(mixer)
    alarm.start()
    assert alarm.playing is False
    alarm.stop()


def test_unavailable_mixer_makes_no_sounds():
    mixer = _UnavailableMixer()
    PygameToneEmitter(mixer).emit(800, 50)
    assert mixer.sounds_made == 0


class _FakeSound:
    def __init__(self) -> None:
        self.plays = []
        self.stopped = False

    def play(self, loops=0):
        self.plays.append(loops)

    def stop(self):
        self.stopped = True


class _WorkingMixer:
    sample_rate = 8000

    def __init__(self) -> None:
        self.sounds = []

    def ensure(self) -> bool:
        return True

    def make_sound(self, waveform):
        sound = _FakeSound()
        self.sounds.append(sound)
        return sound


def test_tone_sounds_are_cached_per_cue():
    mixer = _WorkingMixer()
    emitter = PygameToneEmitter(mixer)
    emitter.emit(800, 50)
    emitter.emit(800, 50)
    emitter.emit(1200, 200)
    assert len(mixer.sounds) == 2
    assert mixer.sounds[0].plays == [0, 0]


def test_alarm_loops_until_stopped():
    mixer = _WorkingMixer()
    alarm = PygameAlarmPlayer(mixer)
    alarm.start()
    alarm.start()
    assert alarm.playing is True
    assert mixer.sounds[0].plays == [-1]

    alarm.stop()
    assert alarm.playing is False
    assert mixer.sounds[0].stopped is True
