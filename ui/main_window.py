"""
Main window for the FocusFlow application.
Contains the error banner and the tab widget with all pages.
"""

import logging
from typing import Optional
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QTabWidget, QLabel,
    QSystemTrayIcon, QMenu, QApplication
)
from PySide6.QtCore import Qt, Slot, QTimer
from PySide6.QtGui import QIcon, QAction, QCloseEvent, QPixmap, QPainter, QColor, QGuiApplication

from core.analysis_client import AnalysisClient
from core.controller import AppController
from core.models import Session, TimerContext, TimerPhase
from core.notifications import NotificationManager
from core.storage import Storage
from core.theme import ThemeManager
from core.timer_engine import TimerEngine

from .analysis_page import AnalysisPage
from .feedback_dialog import FeedbackDialog
from .settings_page import SettingsPage
from .styles import STUDY_COLOR, stylesheet
from .timer_page import TimerPage

logger = logging.getLogger(__name__)


def create_app_icon() -> QIcon:
    """Create a simple app icon programmatically."""
    icon = QIcon()

    for size in [16, 32, 48, 64]:
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.GlobalColor.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Timer circle
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(STUDY_COLOR))
        margin = size // 8
        painter.drawEllipse(margin, margin, size - 2*margin, size - 2*margin)

        # Inner circle
        inner_margin = size // 4
        painter.setBrush(QColor("white"))
        painter.drawEllipse(
            inner_margin, inner_margin,
            size - 2*inner_margin, size - 2*inner_margin
        )

        # Timer hand
        painter.setBrush(QColor(STUDY_COLOR))
        center = size // 2
        hand_width = max(1, size // 10)
        painter.drawRect(
            center - hand_width // 2,
            inner_margin + size // 10,
            hand_width,
            center - inner_margin - size // 10
        )

        painter.end()
        icon.addPixmap(pixmap)

    return icon


class MainWindow(QMainWindow):
    """
    Main application window: error banner above the Timer, AI Analysis and
    Settings tabs.
    """

    BANNER_TIMEOUT_MS = 5000

    def __init__(self, storage: Optional[Storage] = None):
        super().__init__()

        # Initialize storage, engine and controller
        self.storage = storage or Storage()
        self.timer_engine = TimerEngine(parent=self)
        self.notification_manager = NotificationManager(self)
        self.theme_manager = ThemeManager(parent=self)
        self.controller = AppController(
            self.storage,
            self.timer_engine,
            analysis_client=AnalysisClient(self.storage.load_api_key),
            theme_manager=self.theme_manager,
            notification_manager=self.notification_manager,
            parent=self
        )
        self.controller.load()
        self.theme_manager.attach_style_hints(QGuiApplication.styleHints())

        self.setWindowTitle("FocusFlow")
        self.setMinimumSize(640, 600)
        self.resize(760, 720)

        self.app_icon = create_app_icon()
        self.setWindowIcon(self.app_icon)

        self._setup_ui()
        self._setup_tray()
        self._connect_signals()
        self._apply_theme(self.theme_manager.is_dark)

    def _setup_ui(self):
        """Set up the main UI."""
        central = QWidget()
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)

        self.error_banner = QLabel()
        self.error_banner.setObjectName("ErrorBanner")
        self.error_banner.setWordWrap(True)
        self.error_banner.setVisible(False)
        layout.addWidget(self.error_banner)

        self._banner_timer = QTimer(self)
        self._banner_timer.setSingleShot(True)
        self._banner_timer.timeout.connect(lambda: self.error_banner.setVisible(False))

        self.tabs = QTabWidget()
        self.tabs.setDocumentMode(True)

        self.timer_page = TimerPage(self.controller, self.timer_engine)
        self.analysis_page = AnalysisPage(self.controller)
        self.settings_page = SettingsPage(self.controller)

        self.tabs.addTab(self.timer_page, "Timer")
        self.tabs.addTab(self.analysis_page, "AI Analysis")
        self.tabs.addTab(self.settings_page, "Settings")

        layout.addWidget(self.tabs)

    def _setup_tray(self):
        """Set up system tray icon."""
        if not QSystemTrayIcon.isSystemTrayAvailable():
            return

        self.tray_icon = QSystemTrayIcon(self.app_icon, self)
        self.tray_icon.setToolTip("FocusFlow")

        tray_menu = QMenu()

        show_action = QAction("Show", self)
        show_action.triggered.connect(self._show_window)
        tray_menu.addAction(show_action)

        tray_menu.addSeparator()

        quit_action = QAction("Quit", self)
        quit_action.triggered.connect(self._quit_app)
        tray_menu.addAction(quit_action)

        self.tray_icon.setContextMenu(tray_menu)
        self.tray_icon.activated.connect(self._on_tray_activated)
        self.tray_icon.show()

        self.notification_manager.set_tray_icon(self.tray_icon)

    def _connect_signals(self):
        """Connect signals from various components."""
        self.timer_engine.tick.connect(self._on_timer_tick)
        self.timer_engine.feedback_requested.connect(self._on_feedback_requested)
        self.controller.error_occurred.connect(self.show_error)
        self.theme_manager.dark_mode_changed.connect(self._apply_theme)

    @Slot(bool)
    def _apply_theme(self, is_dark: bool):
        app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(stylesheet(is_dark))

    @Slot(str)
    def show_error(self, message: str):
        """Show a transient error banner."""
        self.error_banner.setText(f"<b>Error</b><br>{message}")
        self.error_banner.setVisible(True)
        self._banner_timer.start(self.BANNER_TIMEOUT_MS)

    @Slot(TimerContext)
    def _on_timer_tick(self, context: TimerContext):
        """Keep the tray tooltip in sync with the countdown."""
        if not hasattr(self, 'tray_icon'):
            return
        if context.phase == TimerPhase.RUNNING:
            self.tray_icon.setToolTip(
                f"FocusFlow - {context.session_type.value.capitalize()}\n"
                f"{context.format_remaining()}"
            )
        else:
            self.tray_icon.setToolTip("FocusFlow")

    @Slot(Session)
    def _on_feedback_requested(self, session: Session):
        # Open after the engine's tick handler has returned
        QTimer.singleShot(0, lambda: self._ask_feedback(session))

    def _ask_feedback(self, session: Session):
        self._show_window()
        self.tabs.setCurrentWidget(self.timer_page)
        FeedbackDialog(session, self.timer_engine, parent=self).exec()

    @Slot(QSystemTrayIcon.ActivationReason)
    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason):
        """Handle tray icon activation."""
        if reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            self._show_window()

    @Slot()
    def _show_window(self):
        """Show and bring window to front."""
        self.show()
        self.raise_()
        self.activateWindow()

    @Slot()
    def _quit_app(self):
        """Quit the application."""
        self._cleanup()
        QApplication.quit()

    def closeEvent(self, event: QCloseEvent):
        """Minimize to tray while a countdown is running, otherwise exit."""
        if self.timer_engine.is_running and hasattr(self, 'tray_icon') and self.tray_icon.isVisible():
            event.ignore()
            self.hide()
            self.tray_icon.showMessage(
                "FocusFlow",
                "Timer still running. Click tray icon to show window.",
                QSystemTrayIcon.MessageIcon.Information,
                2000
            )
            return

        self._cleanup()
        event.accept()

    def _cleanup(self):
        """Clean up resources before exit."""
        self.controller.shutdown()
        self.timer_engine.cleanup()
        self.notification_manager.cleanup()
        if hasattr(self, 'tray_icon'):
            self.tray_icon.hide()
