"""
Data models for the FocusFlow application.
Uses dataclasses for clean, type-annotated data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional, Tuple
import uuid


class SessionType(Enum):
    """Kind of interval the timer is running."""
    STUDY = "study"
    REST = "rest"


class TimerPhase(Enum):
    """Possible phases for the timer state machine."""
    IDLE = auto()
    RUNNING = auto()
    PAUSED = auto()
    AWAITING_FEEDBACK = auto()


class Theme(Enum):
    """User theme preference."""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


def new_id() -> str:
    """Return a fresh opaque unique identifier."""
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    """Return current UTC time as ISO8601 string."""
    return datetime.now(timezone.utc).isoformat()


def timestamp_to_iso(ts: float) -> str:
    """Convert a unix timestamp to an ISO8601 UTC string."""
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()


def _require(data: Dict[str, Any], key: str, kind) -> Any:
    value = data.get(key)
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ValueError(f"field '{key}' is missing or has the wrong type")
    return value


@dataclass(frozen=True)
class Session:
    """
    A completed study or rest interval.
    Immutable once created; stored in the session history.
    """
    id: str
    start_time: str
    end_time: str
    type: SessionType
    duration: int  # minutes
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "type": self.type.value,
            "duration": self.duration,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Build a Session from its JSON form. Raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("session record must be an object")
        return cls(
            id=_require(data, "id", str),
            start_time=_require(data, "startTime", str),
            end_time=_require(data, "endTime", str),
            type=SessionType(data.get("type")),
            duration=int(_require(data, "duration", (int, float))),
            notes=data.get("notes") if isinstance(data.get("notes"), str) else "",
        )


@dataclass(frozen=True)
class Analysis:
    """
    AI-derived report over a batch of study sessions.
    Ratings are on a 1-100 scale.
    """
    date: str
    concentration: int
    study_capacity: int
    stress: int
    happiness: int
    summary: str
    suggestions: Tuple[str, ...] = ()
    total_study_duration: int = 0  # minutes
    session_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "concentration": self.concentration,
            "studyCapacity": self.study_capacity,
            "stress": self.stress,
            "happiness": self.happiness,
            "summary": self.summary,
            "suggestions": list(self.suggestions),
            "totalStudyDuration": self.total_study_duration,
            "sessionCount": self.session_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Analysis":
        """Build an Analysis from its JSON form. Raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError("analysis record must be an object")
        suggestions = data.get("suggestions")
        if not isinstance(suggestions, list):
            raise ValueError("field 'suggestions' must be a list")
        return cls(
            date=_require(data, "date", str),
            concentration=int(_require(data, "concentration", (int, float))),
            study_capacity=int(_require(data, "studyCapacity", (int, float))),
            stress=int(_require(data, "stress", (int, float))),
            happiness=int(_require(data, "happiness", (int, float))),
            summary=_require(data, "summary", str),
            suggestions=tuple(str(s) for s in suggestions),
            total_study_duration=int(data.get("totalStudyDuration") or 0),
            session_count=int(data.get("sessionCount") or 0),
        )


@dataclass(frozen=True)
class TimerPreset:
    """Named pair of study/rest durations in minutes."""
    id: str
    name: str
    study: int
    rest: int

    def __str__(self) -> str:
        return f"{self.name} ({self.study}/{self.rest})"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "study": self.study, "rest": self.rest}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimerPreset":
        if not isinstance(data, dict):
            raise ValueError("preset record must be an object")
        study = int(_require(data, "study", (int, float)))
        rest = int(_require(data, "rest", (int, float)))
        if study <= 0 or rest <= 0:
            raise ValueError("preset durations must be positive")
        return cls(
            id=_require(data, "id", str),
            name=_require(data, "name", str),
            study=study,
            rest=rest,
        )


# Presets used when storage has none
DEFAULT_PRESETS = [
    TimerPreset("default-45-15", "Standard Focus", 45, 15),
    TimerPreset("default-25-5", "Pomodoro", 25, 5),
]


@dataclass
class AppSettings:
    """Application settings stored alongside the other preferences."""
    sound_enabled: bool = True
    notification_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sound_enabled": self.sound_enabled,
            "notification_enabled": self.notification_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        settings = cls()
        for key, value in data.items():
            if hasattr(settings, key) and isinstance(value, bool):
                setattr(settings, key, value)
        return settings


@dataclass
class TimerContext:
    """
    Current timer context containing all state information.
    Used to pass timer state to UI components.
    """
    session_type: SessionType = SessionType.STUDY
    phase: TimerPhase = TimerPhase.IDLE
    remaining_seconds: int = 0
    total_seconds: int = 0

    @property
    def is_running(self) -> bool:
        return self.phase == TimerPhase.RUNNING

    @property
    def elapsed_seconds(self) -> int:
        """Calculate elapsed seconds in current session."""
        return self.total_seconds - self.remaining_seconds

    @property
    def progress_percentage(self) -> float:
        """Return progress as percentage (0-100)."""
        if self.total_seconds == 0:
            return 0.0
        return ((self.total_seconds - self.remaining_seconds) / self.total_seconds) * 100.0

    def format_remaining(self) -> str:
        """Format remaining time as MM:SS."""
        minutes = self.remaining_seconds // 60
        seconds = self.remaining_seconds % 60
        return f"{minutes:02d}:{seconds:02d}"


@dataclass
class AppState:
    """Everything the controller owns. Views only read it."""
    sessions: list = field(default_factory=list)
    analyses: list = field(default_factory=list)
    presets: list = field(default_factory=list)
    active_preset_id: Optional[str] = None
    theme: Theme = Theme.SYSTEM
    settings: AppSettings = field(default_factory=AppSettings)
