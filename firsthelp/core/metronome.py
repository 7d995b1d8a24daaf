"""CPR metronome: compression/breath phase engine.

Two independent timers drive the engine while it runs:

- a phase timer whose cadence depends on the current phase (one beat every
  60/rate seconds during compressions, one every 3 s during breaths), and
- a wall-clock timer ticking once per second for the elapsed time display.

The phase timer is cancelled and replaced whenever the phase changes, inside
the tick that caused the change, so two phase timers never coexist. The wall
clock is never touched by a phase change.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable

import structlog

from firsthelp.core.models import MetronomeState, Phase, phase_limit

if TYPE_CHECKING:
    from firsthelp.audio.base import ToneEmitter
    from firsthelp.scheduling.base import Scheduler, TaskHandle

log = structlog.get_logger()

DEFAULT_COMPRESSION_RATE_BPM = 110
DEFAULT_BREATH_INTERVAL_S = 3.0
CLOCK_INTERVAL_S = 1.0
CUE_AMPLITUDE = 0.3


@dataclass(frozen=True)
class ToneCue:
    frequency_hz: float
    duration_ms: int


COMPRESSION_CUE = ToneCue(800, 50)
PHASE_CHANGE_CUE = ToneCue(1200, 200)
BREATH_CUE = ToneCue(400, 300)
CYCLE_COMPLETE_CUE = ToneCue(1000, 400)


def format_elapsed(seconds: int) -> str:
    """Format seconds as MM:SS."""
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


class MetronomeEngine:
    """Drives the 30:2 CPR cycle and reports state snapshots to listeners."""

    def __init__(
        self,
        scheduler: Scheduler,
        tones: ToneEmitter,
        compression_rate_bpm: int = DEFAULT_COMPRESSION_RATE_BPM,
        breath_interval_s: float = DEFAULT_BREATH_INTERVAL_S,
    ) -> None:
        if compression_rate_bpm <= 0:
            raise ValueError("compression_rate_bpm must be positive")
        self._scheduler = scheduler
        self._tones = tones
        self.compression_rate_bpm = compression_rate_bpm
        self._intervals = {
            Phase.COMPRESSIONS: 60.0 / compression_rate_bpm,
            Phase.BREATHS: breath_interval_s,
        }
        self._state = MetronomeState()
        self._phase_task: TaskHandle | None = None
        self._clock_task: TaskHandle | None = None
        self._listeners: list[Callable[[MetronomeState], None]] = []

    def snapshot(self) -> MetronomeState:
        return self._state

    def interval_for(self, phase: Phase) -> float:
        return self._intervals[phase]

    def subscribe(self, listener: Callable[[MetronomeState], None]) -> None:
        self._listeners.append(listener)

    # -- controls --------------------------------------------------------

    def start(self) -> None:
        if self._state.running:
            return
        self._set(replace(self._state, running=True))
        self._start_phase_task()
        self._clock_task = self._scheduler.call_every(CLOCK_INTERVAL_S, self._on_clock_tick)
        log.info("metronome_started", phase=self._state.phase.value,
                 beat=self._state.beat_count, cycles=self._state.cycle_count)

    def pause(self) -> None:
        self._cancel_tasks()
        if self._state.running:
            self._set(replace(self._state, running=False))
            log.info("metronome_paused", elapsed=self._state.elapsed_seconds)

    def reset(self) -> None:
        self._cancel_tasks()
        self._set(MetronomeState())
        log.info("metronome_reset")

    def close(self) -> None:
        """Stop all timers when the surface hosting the metronome goes away."""
        self._cancel_tasks()
        self._listeners.clear()

    # -- ticks -----------------------------------------------------------

    def _on_phase_tick(self) -> None:
        if not self._state.running:
            return
        if self._state.phase is Phase.COMPRESSIONS:
            self._advance(COMPRESSION_CUE, PHASE_CHANGE_CUE, next_phase=Phase.BREATHS)
        else:
            self._advance(BREATH_CUE, CYCLE_COMPLETE_CUE, next_phase=Phase.COMPRESSIONS)

    def _advance(self, beat_cue: ToneCue, rollover_cue: ToneCue, next_phase: Phase) -> None:
        state = self._state
        beat = state.beat_count + 1
        self._emit(beat_cue)

        if beat < phase_limit(state.phase):
            self._set(replace(state, beat_count=beat))
            return

        self._emit(rollover_cue)
        cycles = state.cycle_count + 1 if next_phase is Phase.COMPRESSIONS else state.cycle_count
        self._set(replace(state, phase=next_phase, beat_count=0, cycle_count=cycles))
        log.debug("metronome_phase_changed", phase=next_phase.value, cycles=cycles)
        self._start_phase_task()

    def _on_clock_tick(self) -> None:
        if not self._state.running:
            return
        self._set(replace(self._state, elapsed_seconds=self._state.elapsed_seconds + 1))

    # -- helpers ---------------------------------------------------------

    def _start_phase_task(self) -> None:
        if self._phase_task is not None:
            self._phase_task.cancel()
        self._phase_task = self._scheduler.call_every(
            self._intervals[self._state.phase], self._on_phase_tick,
        )

    def _cancel_tasks(self) -> None:
        if self._phase_task is not None:
            self._phase_task.cancel()
            self._phase_task = None
        if self._clock_task is not None:
            self._clock_task.cancel()
            self._clock_task = None

    def _emit(self, cue: ToneCue) -> None:
        self._tones.emit(cue.frequency_hz, cue.duration_ms, CUE_AMPLITUDE)

    def _set(self, state: MetronomeState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.error("metronome_listener_failed", exc_info=True)
