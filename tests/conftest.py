"""Shared fixtures for soloist tests."""

from typing import Callable, Iterator

import pytest

from soloist.domain.playback import (
    BroadcastChannel,
    MemorySource,
    MemoryStore,
    PlaybackSession,
    SessionConfig,
    Track,
)

# Tolerates float drift when summing step intervals
CLOCK_EPSILON = 1e-9


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fake clock: timers only fire when the test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self._timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        """Run every timer due within the next seconds, in order."""
        end = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= end + CLOCK_EPSILON]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = end


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def channel() -> BroadcastChannel:
    """A private channel so tests never see each other's sessions."""
    return BroadcastChannel("test")


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def track_x() -> Track:
    return Track(id="x", title="Track X", audio_url="file:///music/x.mp3", duration=180.0)


@pytest.fixture
def track_y() -> Track:
    return Track(id="y", title="Track Y", audio_url="file:///music/y.mp3", duration=240.0)


@pytest.fixture
def source() -> MemorySource:
    return MemorySource()


@pytest.fixture
def make_session(
    channel: BroadcastChannel, store: MemoryStore, scheduler: ManualScheduler
) -> Iterator[Callable[..., PlaybackSession]]:
    """Factory for sessions sharing the test channel, store and clock."""
    sessions: list[PlaybackSession] = []

    def factory(source: MemorySource | None = None, **config_kwargs) -> PlaybackSession:
        session = PlaybackSession(
            source if source is not None else MemorySource(),
            SessionConfig(**config_kwargs),
            channel=channel,
            store=store,
            scheduler=scheduler,
        )
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.dispose()
