"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

import firsthelp.main as main_module
from firsthelp.config import AppConfig
from firsthelp.core.errors import DispatchError, SmsGatewayError
from firsthelp.core.models import DispatchResponse, UserProfile
from firsthelp.core.relay import SosRelay
from firsthelp.core.stats import RelayStats

# Float tolerance for virtual-clock deadlines (60/110 s beats accumulate rounding).
_EPS = 1e-9


class FakeTask:
    def __init__(self, start: float, interval: float | None, delay: float, callback, seq: int) -> None:
        self.start = start
        self.interval = interval
        self.due = start + delay
        self.callback = callback
        self.seq = seq
        self.ticks = 0
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class FakeScheduler:
    """Virtual-clock Scheduler: callbacks fire only when a test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._tasks: list[FakeTask] = []
        self._seq = 0

    def _add(self, interval: float | None, delay: float, callback) -> FakeTask:
        self._seq += 1
        task = FakeTask(self.now, interval, delay, callback, self._seq)
        self._tasks.append(task)
        return task

    def call_every(self, interval: float, callback) -> FakeTask:
        return self._add(interval, interval, callback)

    def call_later(self, delay: float, callback) -> FakeTask:
        return self._add(None, delay, callback)

    def active_tasks(self) -> list[FakeTask]:
        return [t for t in self._tasks if not t.cancelled()]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.active_tasks() if t.due <= target + _EPS]
            if not due:
                break
            task = min(due, key=lambda t: (t.due, t.seq))
            self.now = max(self.now, task.due)
            if task.interval is None:
                task.cancel()
            else:
                task.ticks += 1
                task.due = task.start + (task.ticks + 1) * task.interval
            task.callback()
        self.now = target
        self._tasks = self.active_tasks()


class RecordingToneEmitter:
    def __init__(self) -> None:
        self.emitted: list[tuple[float, int]] = []

    def emit(self, frequency_hz: float, duration_ms: int, peak_amplitude: float = 0.3) -> None:
        self.emitted.append((frequency_hz, duration_ms))


class RecordingAlarm:
    def __init__(self) -> None:
        self.starts = 0
        self.stops = 0
        self.playing = False

    def start(self) -> None:
        self.starts += 1
        self.playing = True

    def stop(self) -> None:
        self.stops += 1
        self.playing = False


class FakeProbe:
    """Returns ``coordinate``; waits for ``release`` first when one is given."""

    def __init__(self, coordinate=None, release: asyncio.Event | None = None) -> None:
        self.coordinate = coordinate
        self.release = release
        self.calls = 0

    async def capture(self):
        self.calls += 1
        if self.release is not None:
            await self.release.wait()
        return self.coordinate


class FakeDispatcher:
    def __init__(self, response: DispatchResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or DispatchResponse(success=True, message_id="SM-test")
        self.error = error
        self.intents = []

    async def dispatch(self, intent):
        self.intents.append(intent)
        if self.error is not None:
            raise self.error
        return self.response


class FakeProfileStore:
    def __init__(self, profile: UserProfile | None) -> None:
        self.profile = profile

    def get_profile(self):
        return self.profile


class RecordingLauncher:
    def __init__(self) -> None:
        self.opened: list[str] = []

    def open(self, uri: str) -> bool:
        self.opened.append(uri)
        return True


class FakeSmsGateway:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.error: SmsGatewayError | None = None

    async def send(self, to: str, body: str) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append((to, body))
        return f"SM{len(self.sent):032d}"


PROFILE = UserProfile(
    name="Ada Lovelace",
    phone="5550001111",
    email="ada@example.com",
    emergency_contact="5551234567",
)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def tones():
    return RecordingToneEmitter()


@pytest.fixture
def alarm():
    return RecordingAlarm()


@pytest.fixture
def launcher():
    return RecordingLauncher()


@pytest.fixture
def sms_gateway():
    return FakeSmsGateway()


@pytest.fixture
def failing_dispatcher():
    return FakeDispatcher(error=DispatchError("relay unreachable"))


@pytest.fixture(autouse=True)
def _init_server(sms_gateway):
    """Initialize relay singletons for every test."""
    config = AppConfig()
    config.logging.level = "warning"

    stats = RelayStats()
    relay = SosRelay(gateway=sms_gateway, stats=stats)

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = stats
    main_module._relay = relay

    yield

    # Cleanup
    main_module._config = None
    main_module._stats = None
    main_module._relay = None


@pytest.fixture
async def client():
    from firsthelp.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
