"""Tests for the JSON forms of the data models."""

import pytest

from core.models import (
    Analysis, Session, SessionType, TimerContext, TimerPhase, TimerPreset
)


def test_session_uses_camel_case_keys():
    session = Session("id1", "2026-10-19T08:00:00+00:00", "2026-10-19T08:25:00+00:00",
                      SessionType.REST, 5, "")
    data = session.to_dict()
    assert set(data) == {"id", "startTime", "endTime", "type", "duration", "notes"}
    assert data["type"] == "rest"
    assert Session.from_dict(data) == session


@pytest.mark.parametrize("record", [
    "not a dict",
    {"id": "x", "startTime": "a", "endTime": "b", "type": "nap", "duration": 5},
    {"id": "x", "startTime": "a", "endTime": "b", "type": "study", "duration": True},
    {"startTime": "a", "endTime": "b", "type": "study", "duration": 5},
])
def test_malformed_session(record):
    with pytest.raises(ValueError):
        Session.from_dict(record)


def test_analysis_suggestions_are_tuple():
    analysis = Analysis.from_dict({
        "date": "2026-10-19T09:00:00+00:00",
        "concentration": 50,
        "studyCapacity": 50,
        "stress": 50,
        "happiness": 50,
        "summary": "ok",
        "suggestions": ["rest"],
    })
    assert analysis.suggestions == ("rest",)
    assert analysis.to_dict()["suggestions"] == ["rest"]


def test_preset_label():
    assert str(TimerPreset("p", "Pomodoro", 25, 5)) == "Pomodoro (25/5)"


def test_preset_rejects_non_positive_duration():
    with pytest.raises(ValueError):
        TimerPreset.from_dict({"id": "p", "name": "Bad", "study": 0, "rest": 5})


class TestTimerContext:
    def test_progress_and_format(self):
        ctx = TimerContext(SessionType.STUDY, TimerPhase.RUNNING, 90, 120)
        assert ctx.is_running
        assert ctx.elapsed_seconds == 30
        assert ctx.progress_percentage == 25.0
        assert ctx.format_remaining() == "01:30"

    def test_zero_total(self):
        assert TimerContext().progress_percentage == 0.0
