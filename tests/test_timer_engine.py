"""Unit tests for TimerEngine - deadline countdown, feedback sub-state, presets."""

import pytest

from core.models import SessionType, TimerPhase
from core.timer_engine import TimerEngine

from conftest import run_for


def record(engine: TimerEngine):
    """Collect emitted signals into lists."""
    events = {"finished": [], "feedback": [], "completed": [], "phases": []}
    engine.session_finished.connect(events["finished"].append)
    engine.feedback_requested.connect(events["feedback"].append)
    engine.session_completed.connect(events["completed"].append)
    engine.phase_changed.connect(lambda old, new: events["phases"].append((old, new)))
    return events


# ---- Initial state ----

class TestInitialState:
    def test_starts_idle_in_study(self, engine):
        assert engine.session_type == SessionType.STUDY
        assert engine.phase == TimerPhase.IDLE
        assert engine.remaining_seconds == 60
        assert engine.total_seconds == 60

    def test_context_formats_remaining(self, engine):
        assert engine.context.format_remaining() == "01:00"
        assert engine.context.progress_percentage == 0.0


# ---- start / pause ----

class TestStartPause:
    def test_start_moves_to_running(self, engine):
        engine.start()
        assert engine.phase == TimerPhase.RUNNING
        assert engine.is_running

    def test_double_start_is_ignored(self, engine, clock):
        events = record(engine)
        engine.start()
        clock.advance(10)
        engine.start()
        assert events["phases"] == [(TimerPhase.IDLE, TimerPhase.RUNNING)]
        engine._on_tick()
        assert engine.remaining_seconds == 50

    def test_remaining_is_computed_from_deadline(self, engine, clock):
        engine.start()
        # A long suspension: a single tick after 45 seconds
        clock.advance(45)
        engine._on_tick()
        assert engine.remaining_seconds == 15

    def test_pause_freezes_remaining(self, engine, clock):
        engine.start()
        run_for(engine, clock, 20)
        engine.pause()
        assert engine.phase == TimerPhase.PAUSED
        clock.advance(100)
        engine._on_tick()
        assert engine.remaining_seconds == 40

    def test_resume_continues_from_paused_value(self, engine, clock):
        engine.start()
        run_for(engine, clock, 20)
        engine.pause()
        clock.advance(300)
        engine.start()
        run_for(engine, clock, 10)
        assert engine.remaining_seconds == 30

    def test_pause_when_not_running_is_noop(self, engine):
        events = record(engine)
        engine.pause()
        assert engine.phase == TimerPhase.IDLE
        assert events["phases"] == []

    def test_start_with_zero_remaining_is_noop(self, clock):
        engine = TimerEngine(study_minutes=0, rest_minutes=1, clock=clock)
        engine.start()
        assert engine.phase == TimerPhase.IDLE


# ---- completion ----

class TestCompletion:
    @pytest.mark.parametrize("minutes", [1, 2, 5])
    def test_full_run_completes_once_at_zero(self, clock, minutes):
        engine = TimerEngine(study_minutes=minutes, rest_minutes=1, clock=clock)
        events = record(engine)
        ticks = []
        engine.tick.connect(lambda ctx: ticks.append(ctx.remaining_seconds))

        engine.start()
        run_for(engine, clock, minutes * 60 + 5)

        assert events["finished"] == [SessionType.STUDY]
        assert 0 in ticks
        assert engine.phase == TimerPhase.AWAITING_FEEDBACK
        assert engine.remaining_seconds == 0

    def test_study_completion_awaits_feedback(self, engine, clock):
        events = record(engine)
        engine.start()
        run_for(engine, clock, 60)

        assert engine.is_awaiting_feedback
        assert len(events["feedback"]) == 1
        pending = events["feedback"][0]
        assert pending.type == SessionType.STUDY
        assert pending.duration == 1
        assert events["completed"] == []

    def test_controls_are_ignored_while_awaiting_feedback(self, engine, clock):
        engine.start()
        run_for(engine, clock, 60)
        engine.start()
        engine.reset()
        engine.extend()
        assert engine.phase == TimerPhase.AWAITING_FEEDBACK
        assert engine.remaining_seconds == 0

    def test_pause_past_deadline_completes(self, engine, clock):
        events = record(engine)
        engine.start()
        clock.advance(61)
        engine.pause()
        assert events["finished"] == [SessionType.STUDY]
        assert engine.is_awaiting_feedback

    def test_rest_completion_loads_idle_study(self, engine, clock):
        events = record(engine)
        engine.start()
        run_for(engine, clock, 60)
        engine.dismiss_feedback()

        engine.start()
        run_for(engine, clock, 60)

        assert events["finished"] == [SessionType.STUDY, SessionType.REST]
        assert len(events["completed"]) == 1
        assert engine.session_type == SessionType.STUDY
        assert engine.phase == TimerPhase.IDLE
        assert engine.remaining_seconds == 60


# ---- feedback ----

class TestFeedback:
    def test_scenario_dismissed_feedback(self, engine, clock):
        """1/1 preset: completion at 60s, dismiss, one study session, rest idle at 60."""
        events = record(engine)
        engine.start()
        run_for(engine, clock, 59)
        assert events["finished"] == []
        run_for(engine, clock, 1)
        assert events["finished"] == [SessionType.STUDY]

        session = engine.dismiss_feedback()

        assert events["completed"] == [session]
        assert session.type == SessionType.STUDY
        assert session.duration == 1
        assert session.notes == TimerEngine.DISMISSED_NOTES
        assert engine.session_type == SessionType.REST
        assert engine.phase == TimerPhase.IDLE
        assert engine.remaining_seconds == 60

    def test_submit_trims_notes(self, engine, clock):
        engine.start()
        run_for(engine, clock, 60)
        session = engine.submit_feedback("  tired but focused \n")
        assert session.notes == "tired but focused"
        assert engine.session_type == SessionType.REST

    def test_submit_empty_uses_placeholder(self, engine, clock):
        engine.start()
        run_for(engine, clock, 60)
        session = engine.submit_feedback("   ")
        assert session.notes == TimerEngine.EMPTY_NOTES

    def test_feedback_outside_sub_state_is_noop(self, engine):
        events = record(engine)
        assert engine.submit_feedback("hello") is None
        assert engine.dismiss_feedback() is None
        assert events["completed"] == []

    def test_feedback_resolves_only_once(self, engine, clock):
        events = record(engine)
        engine.start()
        run_for(engine, clock, 60)
        engine.submit_feedback("first")
        assert engine.dismiss_feedback() is None
        assert len(events["completed"]) == 1

    def test_session_times_span_the_last_start(self, engine, clock):
        engine.start()
        run_for(engine, clock, 60)
        session = engine.dismiss_feedback()
        assert session.start_time < session.end_time
        assert session.start_time.startswith("2023-11-14")


# ---- extend ----

class TestExtend:
    def test_extend_while_running(self, engine, clock):
        events = record(engine)
        engine.start()
        run_for(engine, clock, 50)
        assert engine.remaining_seconds == 10

        engine.extend()

        assert engine.remaining_seconds == 310
        assert engine.total_seconds == 360
        assert events["finished"] == []
        run_for(engine, clock, 1)
        assert engine.remaining_seconds == 309

    def test_extend_moves_the_deadline(self, engine, clock):
        events = record(engine)
        engine.start()
        engine.extend()
        run_for(engine, clock, 60)
        assert events["finished"] == []
        run_for(engine, clock, 300)
        assert events["finished"] == [SessionType.STUDY]

    def test_extended_session_records_adjusted_duration(self, engine, clock):
        engine.start()
        engine.extend()
        run_for(engine, clock, 360)
        session = engine.submit_feedback("long one")
        assert session.duration == 6

    def test_extend_while_idle_does_not_start(self, engine):
        engine.extend()
        assert engine.phase == TimerPhase.IDLE
        assert engine.remaining_seconds == 360
        assert engine.total_seconds == 360


# ---- reset ----

class TestReset:
    def test_reset_while_running_pauses_at_full_duration(self, engine, clock):
        engine.start()
        run_for(engine, clock, 30)
        engine.reset()
        assert engine.phase == TimerPhase.PAUSED
        assert engine.remaining_seconds == 60
        clock.advance(30)
        engine._on_tick()
        assert engine.remaining_seconds == 60

    def test_reset_drops_extension(self, engine):
        engine.extend()
        engine.reset()
        assert engine.total_seconds == 60
        assert engine.remaining_seconds == 60


# ---- durations ----

class TestSetDurations:
    def test_applied_immediately_when_idle(self, engine):
        engine.set_durations(25, 5)
        assert engine.remaining_seconds == 25 * 60
        assert engine.total_seconds == 25 * 60

    def test_deferred_while_running(self, engine, clock):
        engine.start()
        run_for(engine, clock, 10)
        engine.set_durations(25, 5)
        assert engine.remaining_seconds == 50
        assert engine.total_seconds == 60

        run_for(engine, clock, 50)
        engine.dismiss_feedback()
        assert engine.session_type == SessionType.REST
        assert engine.remaining_seconds == 5 * 60
