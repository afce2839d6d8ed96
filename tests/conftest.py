from dataclasses import replace
from typing import Callable, List

import pytest
from fastapi.testclient import TestClient

from daybook.blobstore import InMemoryBlobStore
from daybook.main import create_app
from daybook.settings import get_settings
from daybook.store import KeyedStore
from daybook.workspace import Workspace


class FakeClock:
    """Manually advanced epoch-millis clock."""

    def __init__(self, start: int = 1_738_411_200_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, delay: float, fn: Callable[[], None]):
        self.delay = delay
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.fn()


class FakeTimers:
    """timer_factory that keeps every timer it hands out."""

    def __init__(self):
        self.created: List[FakeTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, fn)
        self.created.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.created[-1]

    def live(self) -> List[FakeTimer]:
        return [t for t in self.created if t.started and not t.cancelled]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def backend():
    return InMemoryBlobStore()


@pytest.fixture
def store(backend):
    return KeyedStore(backend, "ptr")


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    return get_settings()


@pytest.fixture
def workspace(settings, backend, clock, timers):
    return Workspace(settings, backend=backend, clock=clock, timer_factory=timers)


@pytest.fixture
def client(settings, workspace):
    app = create_app(settings, workspace)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def small_upload_settings(settings):
    return replace(settings, max_upload_bytes=16)
