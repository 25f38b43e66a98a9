"""Shared fixtures: a headless Qt application, a fake clock and temp storage."""

import json
from types import SimpleNamespace

import pytest
from PySide6.QtCore import QCoreApplication

from core.models import Session, SessionType
from core.storage import Storage
from core.timer_engine import TimerEngine


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QTimer needs an application instance; no display is required."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    timer = TimerEngine(study_minutes=1, rest_minutes=1, clock=clock)
    yield timer
    timer.cleanup()


@pytest.fixture
def storage(tmp_path):
    return Storage(str(tmp_path / "test.db"))


def run_for(engine: TimerEngine, clock: FakeClock, seconds: int):
    """Advance the clock one second at a time, ticking the engine each step."""
    for _ in range(seconds):
        clock.advance(1)
        engine._on_tick()


def make_session(duration: int = 25, notes: str = "Felt focused", type=SessionType.STUDY) -> Session:
    return Session(
        id=f"s-{duration}-{notes}",
        start_time="2026-10-19T08:00:00+00:00",
        end_time="2026-10-19T08:25:00+00:00",
        type=type,
        duration=duration,
        notes=notes,
    )


VALID_RESPONSE = {
    "concentration": 72,
    "studyCapacity": 65,
    "stress": 30,
    "happiness": 80,
    "summary": "Solid, focused sessions.",
    "suggestions": ["Take a short walk", "Silence notifications"],
}


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = json.dumps(VALID_RESPONSE) if text is None else text
        self.error = error
        self.calls = []
        # Optional threading.Event the call blocks on
        self.gate = None

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeGenaiClient:
    """Stands in for google.genai.Client in tests."""

    def __init__(self, text=None, error=None):
        self.models = FakeModels(text=text, error=error)
        self.api_keys = []

    def factory(self, api_key: str):
        self.api_keys.append(api_key)
        return self
