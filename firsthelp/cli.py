"""FirstHelp terminal front-end.

Usage:
    # Run the SMS relay
    firsthelp serve

    # CPR metronome for 2 minutes (Ctrl-C stops earlier)
    firsthelp cpr --duration 120

    # SOS countdown; Ctrl-C during the countdown cancels it. Once active,
    # numbered choices call 911, call or text the contact, or share location
    firsthelp sos --message "Fell on the stairs"

    # Register the profile used by SOS (or remove it with "profile clear")
    firsthelp profile set --name "Ada Lovelace" --phone 5550001111 \\
        --email ada@example.com --contact 5551234567
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
from typing import Awaitable, Callable

from firsthelp.actions.launchers import BrowserActionLauncher, LoggingActionLauncher
from firsthelp.audio.base import SilentAlarmPlayer, SilentToneEmitter
from firsthelp.config import AppConfig, load_config
from firsthelp.core.errors import SOSStateError, ValidationError
from firsthelp.core.metronome import MetronomeEngine, format_elapsed
from firsthelp.core.models import (
    ManualAction,
    MetronomeState,
    Phase,
    SOSStage,
    SOSState,
    UserProfile,
)
from firsthelp.core.sos import SOSSession
from firsthelp.dispatch.http_dispatcher import HttpAlertDispatcher
from firsthelp.geo.probes import build_probe
from firsthelp.logging_setup import setup_logging
from firsthelp.profile.file_store import FileProfileStore
from firsthelp.scheduling.asyncio_scheduler import AsyncioScheduler


_PHASE_LABELS = {
    Phase.COMPRESSIONS: "COMPRESSIONS  push hard and fast on chest center",
    Phase.BREATHS: "RESCUE BREATHS  give 2 rescue breaths",
}


def build_audio(config: AppConfig):
    """Return (tone_emitter, alarm_player) for the configured audio backend."""
    if not config.audio.enabled:
        return SilentToneEmitter(), SilentAlarmPlayer()
    from firsthelp.audio.pygame_audio import PygameAlarmPlayer, PygameMixer, PygameToneEmitter

    mixer = PygameMixer(sample_rate=config.audio.sample_rate)
    return PygameToneEmitter(mixer), PygameAlarmPlayer(mixer)


def _progress_bar(state: MetronomeState, width: int = 20) -> str:
    filled = int(state.progress_percent / 100 * width)
    return "#" * filled + "-" * (width - filled)


def _render_metronome(state: MetronomeState) -> None:
    status = "running" if state.running else "paused"
    sys.stdout.write(
        f"\r{format_elapsed(state.elapsed_seconds)}  cycles {state.cycle_count:3d}  "
        f"{state.beat_count:2d}/{state.phase_limit:<2d} [{_progress_bar(state)}]  "
        f"{_PHASE_LABELS[state.phase]} ({status})   "
    )
    sys.stdout.flush()


async def run_cpr(config: AppConfig, duration: float | None) -> None:
    tones, _ = build_audio(config)
    engine = MetronomeEngine(
        AsyncioScheduler(),
        tones,
        compression_rate_bpm=config.cpr.compression_rate_bpm,
        breath_interval_s=config.cpr.breath_interval_seconds,
    )
    engine.subscribe(_render_metronome)
    print(f"Call emergency services ({config.sos.emergency_number}) immediately before starting CPR.")
    print(f"Rate: {config.cpr.compression_rate_bpm} bpm   Depth: 5-6 cm (2-2.4 in)")
    engine.start()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        engine.pause()
        state = engine.snapshot()
        engine.close()
        print(f"\nStopped after {format_elapsed(state.elapsed_seconds)}, "
              f"{state.cycle_count} cycles completed.")


_ACTION_LABELS = {
    ManualAction.CALL_EMERGENCY: "Call emergency services",
    ManualAction.CALL_CONTACT: "Call emergency contact",
    ManualAction.TEXT_CONTACT: "Text emergency contact",
    ManualAction.SHARE_LOCATION: "Share location",
}


class StdinLines:
    """Async line reader over stdin.

    A daemon thread does the blocking reads so an unanswered prompt never
    keeps the process alive. Yields None at end of input.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        threading.Thread(target=self._pump, daemon=True).start()

    def _pump(self) -> None:
        try:
            for line in sys.stdin:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, line)
            self._loop.call_soon_threadsafe(self._queue.put_nowait, None)
        except RuntimeError:
            # loop already closed
            return

    async def __call__(self) -> str | None:
        return await self._queue.get()


def _run_action(session: SOSSession, action: ManualAction) -> None:
    handlers = {
        ManualAction.CALL_EMERGENCY: session.call_emergency,
        ManualAction.CALL_CONTACT: session.call_contact,
        ManualAction.TEXT_CONTACT: session.text_contact,
        ManualAction.SHARE_LOCATION: session.share_location,
    }
    try:
        opened = handlers[action]()
    except (ValidationError, SOSStateError) as exc:
        print(f"{_ACTION_LABELS[action]}: {exc}")
        return
    if not opened:
        if action is ManualAction.SHARE_LOCATION:
            print("Location unavailable.")
        else:
            print(f"Could not open: {_ACTION_LABELS[action]}")


async def prompt_actions(session: SOSSession, read_line: Callable[[], Awaitable[str | None]]) -> bool:
    """Offer the manual actions until the user quits, input ends or the session closes.

    Returns True when the user chose to quit.
    """
    while True:
        actions = session.available_actions()
        if not actions:
            return False
        for number, action in enumerate(actions, start=1):
            print(f"  {number}. {_ACTION_LABELS[action]}")
        print("  q. Close")
        line = await read_line()
        if line is None:
            return False
        choice = line.strip().lower()
        if not choice:
            continue
        if choice == "q":
            return True
        if choice.isdigit() and 1 <= int(choice) <= len(actions):
            _run_action(session, actions[int(choice) - 1])
        else:
            print(f"Unknown choice: {choice}")


def _render_sos(state: SOSState) -> None:
    if state.stage is SOSStage.COUNTDOWN:
        print(f"Emergency SOS activating in {state.seconds_remaining}s (Ctrl-C to cancel)")
    elif state.stage is SOSStage.ACTIVE and not state.closed:
        print(f"EMERGENCY SOS ACTIVATED  dispatch={state.dispatch_result.value}"
              + (f"  location={state.coordinate.latitude:.6f},{state.coordinate.longitude:.6f}"
                 if state.coordinate else ""))


async def run_sos(config: AppConfig, args: argparse.Namespace) -> None:
    _, alarm = build_audio(config)
    launcher = BrowserActionLauncher() if args.open_actions else LoggingActionLauncher()
    session = SOSSession(
        scheduler=AsyncioScheduler(),
        alarm=alarm,
        probe=build_probe(config.geolocation),
        dispatcher=HttpAlertDispatcher(config.relay.url, config.relay.timeout_seconds),
        profiles=FileProfileStore(config.profile.path),
        launcher=launcher,
        countdown_seconds=config.sos.countdown_seconds,
        fallback_delay_s=config.sos.fallback_delay_seconds,
        emergency_number=config.sos.emergency_number,
        prefetch_location=config.sos.prefetch_location,
        custom_message=args.message,
    )
    if session.emergency_contact is None:
        print("No emergency contact registered; only the emergency call and "
              "location sharing will be available.")

    activated = asyncio.Event()

    def on_change(state: SOSState) -> None:
        _render_sos(state)
        if state.stage is SOSStage.ACTIVE:
            activated.set()

    session.subscribe(on_change)
    session.start()
    loop = asyncio.get_running_loop()
    try:
        await activated.wait()
        deadline = loop.time() + max(args.linger, config.sos.fallback_delay_seconds + 0.1)
        await session.settle()
        try:
            quit_early = await asyncio.wait_for(
                prompt_actions(session, StdinLines(loop)),
                timeout=max(deadline - loop.time(), 0),
            )
        except asyncio.TimeoutError:
            quit_early = True
        if not quit_early:
            # stdin closed; keep the session open for a pending fallback
            await asyncio.sleep(max(deadline - loop.time(), 0))
    except asyncio.CancelledError:
        if session.cancel():
            print("\nSOS cancelled.")
        raise
    finally:
        session.close()


def _profile_command(config: AppConfig, args: argparse.Namespace) -> int:
    store = FileProfileStore(config.profile.path)
    if args.profile_command == "show":
        profile = store.get_profile()
        if profile is None:
            print("No profile stored.")
            return 1
        for key, value in profile.to_dict().items():
            print(f"{key}: {value}")
        return 0
    if args.profile_command == "clear":
        if not store.clear_profile():
            print("No profile stored.")
            return 1
        print("Profile cleared.")
        return 0

    profile = UserProfile(
        name=args.name, phone=args.phone, email=args.email, emergency_contact=args.contact,
    )
    try:
        store.save_profile(profile)
    except ValidationError as exc:
        for field, message in exc.errors.items():
            print(f"{field}: {message}", file=sys.stderr)
        return 2
    print("Profile saved.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="firsthelp", description="FirstHelp safety companion")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the SOS relay server")

    cpr = sub.add_parser("cpr", help="Run the CPR metronome")
    cpr.add_argument("--duration", type=float, default=None,
                     help="Stop after this many seconds (default: until Ctrl-C)")

    sos = sub.add_parser("sos", help="Start an SOS countdown")
    sos.add_argument("--message", default=None, help="Custom message added to the alert")
    sos.add_argument("--linger", type=float, default=30.0,
                     help="Seconds to keep the session open after activation")
    sos.add_argument("--open-actions", action="store_true",
                     help="Open tel:/sms:/map links with the system handler instead of printing them")

    profile = sub.add_parser("profile", help="Show, set or clear the stored profile")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    profile_sub.add_parser("show")
    profile_sub.add_parser("clear", help="Remove the stored profile")
    set_cmd = profile_sub.add_parser("set")
    set_cmd.add_argument("--name", required=True)
    set_cmd.add_argument("--phone", required=True)
    set_cmd.add_argument("--email", required=True)
    set_cmd.add_argument("--contact", required=True, help="Emergency contact phone number")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(config.logging)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("firsthelp.main:app", host=config.server.host, port=config.server.port)
        return 0
    if args.command == "profile":
        return _profile_command(config, args)

    try:
        if args.command == "cpr":
            asyncio.run(run_cpr(config, args.duration))
        elif args.command == "sos":
            asyncio.run(run_sos(config, args))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
