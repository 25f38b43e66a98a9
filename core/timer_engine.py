"""
Timer engine for the FocusFlow application.
Implements the study/rest state machine.
Uses an absolute deadline so that a suspended event loop does not cause drift.
"""

import dataclasses
import logging
import time
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .models import (
    Session, SessionType, TimerContext, TimerPhase, new_id, timestamp_to_iso
)

logger = logging.getLogger(__name__)


class TimerEngine(QObject):
    """
    Core timer engine implementing a state machine.

    Each session type (study/rest) is in one of:
        IDLE: duration loaded, countdown not started
        RUNNING: counting down towards a wall-clock deadline
        PAUSED: countdown frozen, resumable with start()
    and a completed study session additionally passes through
        AWAITING_FEEDBACK: timer stopped until notes are submitted or dismissed

    Signals:
        tick: Emitted every tick with current TimerContext
        phase_changed: Emitted when the phase changes (old_phase, new_phase)
        session_finished: Emitted when a countdown reaches zero (session type)
        feedback_requested: Emitted with the pending study Session awaiting notes
        session_completed: Emitted with the finalized study Session
    """

    # Signals
    tick = Signal(TimerContext)
    phase_changed = Signal(TimerPhase, TimerPhase)  # old_phase, new_phase
    session_finished = Signal(SessionType)
    feedback_requested = Signal(Session)
    session_completed = Signal(Session)

    TICK_INTERVAL_MS = 1000
    EXTEND_SECONDS = 5 * 60

    EMPTY_NOTES = "No notes for this session."
    DISMISSED_NOTES = "No notes provided."

    def __init__(
        self,
        study_minutes: int = 45,
        rest_minutes: int = 15,
        clock: Callable[[], float] = time.time,
        parent: Optional[QObject] = None
    ):
        """
        Initialize the timer engine.

        Args:
            study_minutes: Initial study duration.
            rest_minutes: Initial rest duration.
            clock: Returns the current wall-clock time in seconds.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)

        self._clock = clock
        self._study_minutes = study_minutes
        self._rest_minutes = rest_minutes

        total = study_minutes * 60
        self._context = TimerContext(
            session_type=SessionType.STUDY,
            phase=TimerPhase.IDLE,
            remaining_seconds=total,
            total_seconds=total,
        )

        self._deadline: Optional[float] = None
        self._started_at: Optional[float] = None
        self._pending_session: Optional[Session] = None

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(self.TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self._on_tick)

    @property
    def context(self) -> TimerContext:
        """Get a copy of the current timer context."""
        return dataclasses.replace(self._context)

    @property
    def phase(self) -> TimerPhase:
        return self._context.phase

    @property
    def session_type(self) -> SessionType:
        return self._context.session_type

    @property
    def remaining_seconds(self) -> int:
        return self._context.remaining_seconds

    @property
    def total_seconds(self) -> int:
        return self._context.total_seconds

    @property
    def is_running(self) -> bool:
        return self._context.phase == TimerPhase.RUNNING

    @property
    def is_awaiting_feedback(self) -> bool:
        return self._context.phase == TimerPhase.AWAITING_FEEDBACK

    @property
    def pending_session(self) -> Optional[Session]:
        """The completed study session waiting for notes, if any."""
        return self._pending_session

    def _minutes_for(self, session_type: SessionType) -> int:
        if session_type == SessionType.STUDY:
            return self._study_minutes
        return self._rest_minutes

    # ==================== Controls ====================

    def start(self):
        """Start or resume the countdown. No-op if already running or at zero."""
        if self._context.phase not in (TimerPhase.IDLE, TimerPhase.PAUSED):
            return
        if self._context.remaining_seconds <= 0 or self._qt_timer.isActive():
            return

        now = self._clock()
        self._started_at = now
        self._deadline = now + self._context.remaining_seconds
        self._qt_timer.start()
        self._set_phase(TimerPhase.RUNNING)

    def pause(self):
        """Pause the running countdown."""
        if not self.is_running:
            return

        left = self._deadline - self._clock()
        if left <= 0:
            self._context.remaining_seconds = 0
            self._complete()
            return

        self._stop_ticker()
        self._context.remaining_seconds = round(left)
        self._set_phase(TimerPhase.PAUSED)

    def reset(self):
        """Reload the full duration for the current session type and pause."""
        if self.is_awaiting_feedback:
            return

        self._stop_ticker()
        total = self._minutes_for(self._context.session_type) * 60
        self._context.total_seconds = total
        self._context.remaining_seconds = total
        if self._context.phase == TimerPhase.RUNNING:
            self._set_phase(TimerPhase.PAUSED)
        else:
            self.tick.emit(self.context)

    def extend(self):
        """Add five minutes to the current session."""
        if self.is_awaiting_feedback:
            return

        self._context.remaining_seconds += self.EXTEND_SECONDS
        self._context.total_seconds += self.EXTEND_SECONDS
        if self.is_running and self._deadline is not None:
            self._deadline += self.EXTEND_SECONDS
        self.tick.emit(self.context)

    def set_durations(self, study_minutes: int, rest_minutes: int):
        """
        Update the study/rest durations.

        Applied immediately while the countdown is not running; otherwise
        the running countdown is left alone and the new durations take effect
        at the next session transition.
        """
        self._study_minutes = study_minutes
        self._rest_minutes = rest_minutes

        if self._context.phase in (TimerPhase.IDLE, TimerPhase.PAUSED):
            total = self._minutes_for(self._context.session_type) * 60
            self._context.total_seconds = total
            self._context.remaining_seconds = total
            self.tick.emit(self.context)
        else:
            logger.debug("Duration change deferred until the next session")

    # ==================== Feedback ====================

    def submit_feedback(self, notes: str) -> Optional[Session]:
        """Finalize the pending study session with the user's notes."""
        if not self.is_awaiting_feedback or self._pending_session is None:
            return None
        return self._finish_feedback(notes.strip() or self.EMPTY_NOTES)

    def dismiss_feedback(self) -> Optional[Session]:
        """Finalize the pending study session without notes."""
        if not self.is_awaiting_feedback or self._pending_session is None:
            return None
        return self._finish_feedback(self.DISMISSED_NOTES)

    def _finish_feedback(self, notes: str) -> Session:
        session = dataclasses.replace(self._pending_session, notes=notes)
        self._pending_session = None
        logger.info("Study session %s recorded (%d min)", session.id, session.duration)
        self.session_completed.emit(session)
        self._load(SessionType.REST)
        return session

    # ==================== Internals ====================

    def _on_tick(self):
        """
        Handle timer tick.
        Recomputes remaining time from the deadline rather than decrementing.
        """
        if not self.is_running or self._deadline is None:
            return

        left = self._deadline - self._clock()
        if left <= 0:
            self._context.remaining_seconds = 0
            self.tick.emit(self.context)
            self._complete()
            return

        self._context.remaining_seconds = round(left)
        self.tick.emit(self.context)

    def _complete(self):
        """Handle completion of the current countdown."""
        self._stop_ticker()
        finished = self._context.session_type
        logger.info("%s session finished", finished.value.capitalize())
        self.session_finished.emit(finished)

        if finished == SessionType.STUDY:
            now = self._clock()
            started = self._started_at if self._started_at is not None else now
            self._pending_session = Session(
                id=new_id(),
                start_time=timestamp_to_iso(started),
                end_time=timestamp_to_iso(now),
                type=SessionType.STUDY,
                duration=round(self._context.total_seconds / 60),
            )
            self._set_phase(TimerPhase.AWAITING_FEEDBACK)
            self.feedback_requested.emit(self._pending_session)
        else:
            self._load(SessionType.STUDY)

    def _load(self, session_type: SessionType):
        """Load a fresh idle countdown for the given session type."""
        self._stop_ticker()
        total = self._minutes_for(session_type) * 60
        self._context.session_type = session_type
        self._context.total_seconds = total
        self._context.remaining_seconds = total
        self._started_at = None
        self._set_phase(TimerPhase.IDLE)

    def _stop_ticker(self):
        self._qt_timer.stop()
        self._deadline = None

    def _set_phase(self, new_phase: TimerPhase):
        old_phase = self._context.phase
        self._context.phase = new_phase
        self.phase_changed.emit(old_phase, new_phase)
        self.tick.emit(self.context)

    def cleanup(self):
        """Cleanup resources. Call before application exit."""
        self._stop_ticker()
