"""SOS activation engine: countdown, activation, dispatch and fallback.

Stages::

    COUNTDOWN(n) --1 s tick--> COUNTDOWN(n-1) ... COUNTDOWN(0) --> ACTIVE
    COUNTDOWN(n) --cancel()--> CANCELLED (terminal, session closed)

On activation the alarm starts, a geolocation capture is triggered unless one
is already under way, and, if the profile has an emergency contact, exactly
one dispatch attempt is made with whatever coordinate is known at that
instant. Dispatch never waits for the position fix; a fix arriving later is
shown to the user but never re-sent.

A failed dispatch (declared failure or transport error) opens the manual SMS
composer addressed to the contact after a short delay.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable

import structlog

from firsthelp.core.errors import SOSStateError, ValidationError
from firsthelp.core.message import maps_link, render_fallback_message, sms_uri, tel_uri
from firsthelp.core.models import (
    AlertIntent,
    Coordinate,
    DispatchResponse,
    DispatchResult,
    ManualAction,
    SOSStage,
    SOSState,
    UserProfile,
)

if TYPE_CHECKING:
    from firsthelp.actions.base import ActionLauncher
    from firsthelp.audio.base import AlarmPlayer
    from firsthelp.dispatch.base import AlertDispatcher
    from firsthelp.geo.base import GeolocationProbe
    from firsthelp.profile.base import ProfileStore
    from firsthelp.scheduling.base import Scheduler, TaskHandle

log = structlog.get_logger()

DEFAULT_COUNTDOWN_S = 5
DEFAULT_FALLBACK_DELAY_S = 0.5
COUNTDOWN_TICK_S = 1.0


class SOSSession:
    """One SOS invocation, from countdown to close."""

    def __init__(
        self,
        scheduler: Scheduler,
        alarm: AlarmPlayer,
        probe: GeolocationProbe,
        dispatcher: AlertDispatcher,
        profiles: ProfileStore,
        launcher: ActionLauncher,
        countdown_seconds: int = DEFAULT_COUNTDOWN_S,
        fallback_delay_s: float = DEFAULT_FALLBACK_DELAY_S,
        emergency_number: str = "911",
        prefetch_location: bool = True,
        custom_message: str | None = None,
    ) -> None:
        if countdown_seconds < 0:
            raise ValueError("countdown_seconds must be >= 0")
        self._scheduler = scheduler
        self._alarm = alarm
        self._probe = probe
        self._dispatcher = dispatcher
        self._launcher = launcher
        self._fallback_delay = fallback_delay_s
        self._emergency_number = emergency_number
        self._prefetch_location = prefetch_location
        self._custom_message = custom_message or None

        self._profile: UserProfile | None = profiles.get_profile()
        self._stage = SOSStage.COUNTDOWN
        self._seconds_remaining = countdown_seconds
        self._dispatch_result = DispatchResult.PENDING
        self._coordinate: Coordinate | None = None
        self._fallback_uri: str | None = None
        self._closed = False
        self._started = False

        self._countdown_task: TaskHandle | None = None
        self._fallback_task: TaskHandle | None = None
        self._capture_task: asyncio.Task | None = None
        self.dispatch_task: asyncio.Task | None = None
        self._listeners: list[Callable[[SOSState], None]] = []

    # -- read side -------------------------------------------------------

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def emergency_contact(self) -> str | None:
        if self._profile is None:
            return None
        return self._profile.emergency_contact.strip() or None

    def snapshot(self) -> SOSState:
        return SOSState(
            stage=self._stage,
            seconds_remaining=self._seconds_remaining,
            dispatch_result=self._dispatch_result,
            coordinate=self._coordinate,
            fallback_uri=self._fallback_uri,
            closed=self._closed,
        )

    def subscribe(self, listener: Callable[[SOSState], None]) -> None:
        self._listeners.append(listener)

    def available_actions(self) -> list[ManualAction]:
        if self._stage is not SOSStage.ACTIVE or self._closed:
            return []
        actions = [ManualAction.CALL_EMERGENCY]
        if self.emergency_contact:
            actions += [ManualAction.CALL_CONTACT, ManualAction.TEXT_CONTACT]
        actions.append(ManualAction.SHARE_LOCATION)
        return actions

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Begin the countdown. Must be called from a running event loop."""
        if self._started:
            return
        self._started = True
        log.info("sos_countdown_started", seconds=self._seconds_remaining,
                 has_contact=self.emergency_contact is not None)
        if self._prefetch_location:
            self._start_capture()
        if self._seconds_remaining == 0:
            self._activate()
            return
        self._countdown_task = self._scheduler.call_every(COUNTDOWN_TICK_S, self._on_countdown_tick)
        self._notify()

    def cancel(self) -> bool:
        """Abort during the countdown. Has no effect once active."""
        if self._stage is not SOSStage.COUNTDOWN or self._closed:
            log.info("sos_cancel_ignored", stage=self._stage.value, closed=self._closed)
            return False
        self._cancel_timer("_countdown_task")
        self._alarm.stop()
        self._stage = SOSStage.CANCELLED
        self._dispatch_result = DispatchResult.NOT_ATTEMPTED
        log.info("sos_cancelled", seconds_remaining=self._seconds_remaining)
        self.close()
        return True

    def close(self) -> None:
        """Tear the session down: stop audio and timers. A sent alert stays sent."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer("_countdown_task")
        self._cancel_timer("_fallback_task")
        self._alarm.stop()
        if self._capture_task is not None and not self._capture_task.done():
            self._capture_task.cancel()
        log.info("sos_closed", stage=self._stage.value,
                 dispatch=self._dispatch_result.value)
        self._notify()
        self._listeners.clear()

    async def settle(self) -> SOSState:
        """Wait for the in-flight capture and dispatch, then return a snapshot."""
        tasks = [t for t in (self._capture_task, self.dispatch_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return self.snapshot()

    # -- countdown and activation ------------------------------------------

    def _on_countdown_tick(self) -> None:
        if self._stage is not SOSStage.COUNTDOWN or self._closed:
            return
        self._seconds_remaining = max(self._seconds_remaining - 1, 0)
        if self._seconds_remaining == 0:
            self._activate()
        else:
            self._notify()

    def _activate(self) -> None:
        self._cancel_timer("_countdown_task")
        self._stage = SOSStage.ACTIVE
        self._seconds_remaining = 0
        log.info("sos_activated")
        self._alarm.start()

        if self._capture_task is None:
            self._start_capture()

        intent = self._build_intent()
        if intent is None:
            self._dispatch_result = DispatchResult.NOT_ATTEMPTED
            log.warning("sos_dispatch_skipped", reason="no emergency contact")
        else:
            self.dispatch_task = asyncio.get_running_loop().create_task(self._dispatch(intent))
        self._notify()

    def _build_intent(self) -> AlertIntent | None:
        if self._profile is None:
            return None
        try:
            return AlertIntent(
                emergency_contact=self._profile.emergency_contact,
                user_name=self._profile.name or None,
                coordinate=self._coordinate,
                custom_message=self._custom_message,
            )
        except ValidationError:
            return None

    # -- async work --------------------------------------------------------

    def _start_capture(self) -> None:
        self._capture_task = asyncio.get_running_loop().create_task(self._capture())

    async def _capture(self) -> None:
        try:
            coordinate = await self._probe.capture()
        except Exception:
            log.warning("geolocation_failed", exc_info=True)
            coordinate = None
        if coordinate is None or self._closed:
            return
        self._coordinate = coordinate
        if self._stage is SOSStage.ACTIVE and self._dispatch_result is not DispatchResult.PENDING:
            log.info("sos_location_after_dispatch", lat=coordinate.latitude, lon=coordinate.longitude)
        self._notify()

    async def _dispatch(self, intent: AlertIntent) -> None:
        log.info("sos_dispatching", contact=intent.emergency_contact,
                 has_location=intent.coordinate is not None)
        try:
            response = await self._dispatcher.dispatch(intent)
        except Exception as exc:
            log.error("sos_dispatch_failed", error=str(exc), exc_info=True)
            response = DispatchResponse(success=False, error=str(exc))

        if response.success:
            self._dispatch_result = DispatchResult.SENT
            log.info("sos_sent", message_id=response.message_id)
        else:
            self._dispatch_result = DispatchResult.FAILED
            log.warning("sos_dispatch_rejected", error=response.error)
            if not self._closed:
                self._fallback_task = self._scheduler.call_later(
                    self._fallback_delay, lambda: self._open_fallback(intent),
                )
        self._notify()

    def _open_fallback(self, intent: AlertIntent) -> None:
        self._fallback_task = None
        if self._closed:
            return
        uri = sms_uri(intent.emergency_contact, render_fallback_message(intent))
        self._fallback_uri = uri
        log.info("sos_fallback_opened", contact=intent.emergency_contact)
        self._launcher.open(uri)
        self._notify()

    # -- manual actions ----------------------------------------------------

    def call_emergency(self) -> bool:
        self._require_active()
        return self._launcher.open(tel_uri(self._emergency_number))

    def call_contact(self) -> bool:
        self._require_active()
        return self._launcher.open(tel_uri(self._require_contact()))

    def text_contact(self) -> bool:
        self._require_active()
        contact = self._require_contact()
        intent = AlertIntent(
            emergency_contact=contact,
            user_name=self._profile.name or None,
            coordinate=self._coordinate,
        )
        return self._launcher.open(sms_uri(contact, render_fallback_message(intent)))

    def share_location(self) -> bool:
        self._require_active()
        if self._coordinate is None:
            log.info("share_location_unavailable")
            return False
        return self._launcher.open(maps_link(self._coordinate))

    # -- helpers -----------------------------------------------------------

    def _require_active(self) -> None:
        if self._stage is not SOSStage.ACTIVE or self._closed:
            raise SOSStateError(f"manual actions need an active session (stage={self._stage.value})")

    def _require_contact(self) -> str:
        contact = self.emergency_contact
        if contact is None:
            raise ValidationError("No emergency contact registered")
        return contact

    def _cancel_timer(self, attr: str) -> None:
        task = getattr(self, attr)
        if task is not None:
            task.cancel()
            setattr(self, attr, None)

    def _notify(self) -> None:
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.error("sos_listener_failed", exc_info=True)
