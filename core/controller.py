"""
Application controller for the FocusFlow application.
Single owner of the shared state; views request changes through its methods.
"""

import logging
from datetime import date
from typing import List, Optional

from PySide6.QtCore import QObject, QThread, Qt, Signal, Slot

from .analysis_client import AnalysisClient
from .errors import (
    AnalysisInProgressError, FocusFlowError, MissingCredentialError, ValidationError
)
from .models import (
    Analysis, AppSettings, AppState, Session, SessionType, Theme, TimerPreset, new_id
)
from .notifications import NotificationManager
from .storage import Storage, default_export_filename, export_to_json, import_from_json
from .theme import ThemeManager
from .timer_engine import TimerEngine

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "Please add your Gemini API key in the Settings tab to use the AI features."
)
GENERIC_ANALYSIS_MESSAGE = (
    "Could not get the analysis from the AI. Check your key or try again."
)


def user_message(error: Exception) -> str:
    """Map an error to the text shown in the error banner."""
    if isinstance(error, MissingCredentialError):
        return MISSING_KEY_MESSAGE
    if isinstance(error, (ValidationError, AnalysisInProgressError)):
        return str(error)
    return GENERIC_ANALYSIS_MESSAGE


class AnalysisWorker(QObject):
    """Runs one analysis request off the GUI thread."""

    succeeded = Signal(object)  # Analysis
    failed = Signal(object)  # Exception
    done = Signal()

    def __init__(self, client: AnalysisClient, sessions: List[Session]):
        super().__init__()
        self._client = client
        self._sessions = sessions

    @Slot()
    def run(self):
        try:
            self.succeeded.emit(self._client.analyze(self._sessions))
        except FocusFlowError as e:
            self.failed.emit(e)
        except Exception as e:
            logger.exception("Unexpected error during analysis")
            self.failed.emit(e)
        finally:
            self.done.emit()


class AppController(QObject):
    """
    Owns sessions, analyses, presets, the active preset, theme and settings.

    Every mutation persists the affected key and emits the matching signal.
    """

    sessions_changed = Signal()
    analyses_changed = Signal()
    presets_changed = Signal()
    theme_changed = Signal(Theme)
    settings_changed = Signal(AppSettings)
    error_occurred = Signal(str)
    analysis_running_changed = Signal(bool)

    def __init__(
        self,
        storage: Storage,
        timer_engine: TimerEngine,
        analysis_client: Optional[AnalysisClient] = None,
        theme_manager: Optional[ThemeManager] = None,
        notification_manager: Optional[NotificationManager] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self.storage = storage
        self.timer_engine = timer_engine
        self.analysis_client = analysis_client or AnalysisClient(storage.load_api_key)
        self.theme_manager = theme_manager or ThemeManager(parent=self)
        self.notification_manager = notification_manager

        self.state = AppState()
        self._analysis_in_flight = False
        self._analysis_batch: List[Session] = []
        self._analysis_thread: Optional[QThread] = None
        self._analysis_worker: Optional[AnalysisWorker] = None

        self.timer_engine.session_completed.connect(self.add_session)
        self.timer_engine.session_finished.connect(self._on_session_finished)

    # ==================== Startup ====================

    def load(self):
        """Load all persisted state and push the active preset to the timer."""
        self.state.sessions = self.storage.load_sessions()
        self.state.analyses = self.storage.load_analyses()
        self.state.presets = self.storage.load_presets()
        self.state.theme = self.storage.load_theme()
        self.state.settings = self.storage.get_settings()

        stored_id = self.storage.load_active_preset_id()
        if stored_id and self._find_preset(stored_id) is not None:
            self.state.active_preset_id = stored_id
        elif self.state.presets:
            self.state.active_preset_id = self.state.presets[0].id
            logger.info("Active preset %r not found, using %r",
                        stored_id, self.state.active_preset_id)
        else:
            self.state.active_preset_id = None

        self.theme_manager.set_theme(self.state.theme)
        self._apply_settings()
        self._apply_active_preset()
        logger.info(
            "Loaded %d sessions, %d analyses, %d presets",
            len(self.state.sessions), len(self.state.analyses), len(self.state.presets)
        )

    # ==================== Sessions ====================

    @property
    def sessions(self) -> List[Session]:
        return list(self.state.sessions)

    @property
    def analyses(self) -> List[Analysis]:
        """Analysis history, newest first."""
        return list(self.state.analyses)

    def pending_study_sessions(self) -> List[Session]:
        """Study sessions not yet folded into an analysis."""
        return [s for s in self.state.sessions if s.type == SessionType.STUDY]

    @Slot(Session)
    def add_session(self, session: Session):
        self.state.sessions.append(session)
        self.storage.save_sessions(self.state.sessions)
        self.sessions_changed.emit()

    @Slot(SessionType)
    def _on_session_finished(self, session_type: SessionType):
        if self.notification_manager is not None:
            self.notification_manager.notify_session_finished(session_type)

    # ==================== Analysis ====================

    @property
    def is_analysis_running(self) -> bool:
        return self._analysis_in_flight

    def _begin_analysis(self) -> List[Session]:
        if self._analysis_in_flight:
            raise AnalysisInProgressError("An analysis is already running.")
        batch = self.pending_study_sessions()
        if not batch:
            raise ValidationError("You need at least one study session for the analysis.")
        self._analysis_in_flight = True
        self._analysis_batch = batch
        self.analysis_running_changed.emit(True)
        return batch

    def _end_analysis(self):
        self._analysis_in_flight = False
        self._analysis_batch = []
        self.analysis_running_changed.emit(False)

    def _complete_analysis(self, batch: List[Session], analysis: Analysis) -> Analysis:
        consumed = {s.id for s in batch}
        self.state.analyses.insert(0, analysis)
        self.state.sessions = [s for s in self.state.sessions if s.id not in consumed]
        self.storage.save_analyses(self.state.analyses)
        self.storage.save_sessions(self.state.sessions)
        logger.info("Analysis of %d sessions stored", len(batch))
        self.analyses_changed.emit()
        self.sessions_changed.emit()
        return analysis

    def generate_analysis(self) -> Analysis:
        """
        Analyze the pending study sessions synchronously.

        Raises:
            ValidationError: no pending study sessions (nothing is sent).
            AnalysisInProgressError: another request is in flight.
            MissingCredentialError, RemoteError: from the analysis client.
        """
        batch = self._begin_analysis()
        try:
            analysis = self.analysis_client.analyze(batch)
            return self._complete_analysis(batch, analysis)
        finally:
            self._end_analysis()

    def request_analysis(self) -> bool:
        """
        Start an analysis on a worker thread.
        Errors are reported through error_occurred. Returns True if started.
        """
        try:
            batch = self._begin_analysis()
        except FocusFlowError as e:
            self.error_occurred.emit(user_message(e))
            return False

        self._release_thread()
        thread = QThread(self)
        worker = AnalysisWorker(self.analysis_client, batch)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.succeeded.connect(self._on_analysis_succeeded)
        worker.failed.connect(self._on_analysis_failed)
        # QThread.quit is thread-safe; stop without waiting on the GUI loop
        worker.done.connect(thread.quit, Qt.ConnectionType.DirectConnection)
        thread.finished.connect(worker.deleteLater)

        self._analysis_thread = thread
        self._analysis_worker = worker
        thread.start()
        return True

    @Slot(object)
    def _on_analysis_succeeded(self, analysis: Analysis):
        try:
            self._complete_analysis(self._analysis_batch, analysis)
        finally:
            self._end_analysis()

    @Slot(object)
    def _on_analysis_failed(self, error: Exception):
        logger.error("Analysis failed: %s", error)
        self._end_analysis()
        self.error_occurred.emit(user_message(error))

    def _release_thread(self):
        if self._analysis_thread is None:
            return
        self._analysis_thread.quit()
        self._analysis_thread.wait()
        self._analysis_thread.deleteLater()
        self._analysis_thread = None
        self._analysis_worker = None

    def shutdown(self):
        """Wait for a finished or running analysis thread to exit."""
        self._release_thread()

    # ==================== Presets ====================

    @property
    def presets(self) -> List[TimerPreset]:
        return list(self.state.presets)

    @property
    def active_preset_id(self) -> Optional[str]:
        return self.state.active_preset_id

    @property
    def active_preset(self) -> Optional[TimerPreset]:
        preset = self._find_preset(self.state.active_preset_id)
        if preset is None and self.state.presets:
            return self.state.presets[0]
        return preset

    def _find_preset(self, preset_id: Optional[str]) -> Optional[TimerPreset]:
        for preset in self.state.presets:
            if preset.id == preset_id:
                return preset
        return None

    def add_preset(self, name: str, study: int, rest: int) -> TimerPreset:
        """
        Create a preset.

        Raises:
            ValidationError: blank name or a non-positive duration.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a preset name.")
        for value in (study, rest):
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValidationError("Study and rest durations must be greater than zero.")

        preset = TimerPreset(id=new_id(), name=name, study=study, rest=rest)
        self.state.presets.append(preset)
        if self._find_preset(self.state.active_preset_id) is None:
            self.state.active_preset_id = preset.id
            self._apply_active_preset()
        self._save_presets()
        return preset

    def delete_preset(self, preset_id: str):
        """Delete a preset; the active pointer moves to the first remaining one."""
        if self._find_preset(preset_id) is None:
            return
        self.state.presets = [p for p in self.state.presets if p.id != preset_id]
        if self.state.active_preset_id == preset_id:
            self.state.active_preset_id = (
                self.state.presets[0].id if self.state.presets else None
            )
            self._apply_active_preset()
        self._save_presets()

    def set_active_preset(self, preset_id: str):
        if self._find_preset(preset_id) is None:
            raise ValidationError("Unknown preset.")
        self.state.active_preset_id = preset_id
        self._apply_active_preset()
        self._save_presets()

    def _apply_active_preset(self):
        preset = self.active_preset
        if preset is not None:
            self.timer_engine.set_durations(preset.study, preset.rest)

    def _save_presets(self):
        self.storage.save_presets(self.state.presets)
        self.storage.save_active_preset_id(self.state.active_preset_id)
        self.presets_changed.emit()

    # ==================== Preferences ====================

    @property
    def theme(self) -> Theme:
        return self.state.theme

    def set_theme(self, theme: Theme):
        self.state.theme = theme
        self.storage.save_theme(theme)
        self.theme_manager.set_theme(theme)
        self.theme_changed.emit(theme)

    def has_api_key(self) -> bool:
        return bool(self.storage.load_api_key())

    def save_api_key(self, api_key: str):
        self.storage.save_api_key(api_key.strip())

    @property
    def settings(self) -> AppSettings:
        return self.state.settings

    def update_settings(self, settings: AppSettings):
        self.state.settings = settings
        self.storage.save_settings(settings)
        self._apply_settings()
        self.settings_changed.emit(settings)

    def _apply_settings(self):
        if self.notification_manager is not None:
            self.notification_manager.sound_enabled = self.state.settings.sound_enabled
            self.notification_manager.notification_enabled = (
                self.state.settings.notification_enabled
            )

    # ==================== Import / Export ====================

    @staticmethod
    def default_export_filename(today: Optional[date] = None) -> str:
        return default_export_filename(today or date.today())

    def export_data(self, filepath: str) -> int:
        """Write sessions and analyses to a JSON backup. Returns record count."""
        count = export_to_json(filepath, self.state.sessions, self.state.analyses)
        logger.info("Exported %d records to %s", count, filepath)
        return count

    def import_data(self, filepath: str):
        """
        Replace session and analysis history with a backup file's contents.

        Raises:
            ValidationError: the file is unreadable or malformed; nothing changes.
        """
        sessions, analyses = import_from_json(filepath)
        self.state.sessions = sessions
        self.state.analyses = analyses
        self.storage.save_sessions(sessions)
        self.storage.save_analyses(analyses)
        logger.info("Imported %d sessions and %d analyses", len(sessions), len(analyses))
        self.sessions_changed.emit()
        self.analyses_changed.emit()
