"""
Timer page widget for the FocusFlow application.
Contains the countdown display and the start/pause, reset and +5 controls.
"""

from typing import Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QProgressBar
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont

from core.controller import AppController
from core.models import SessionType, TimerContext, TimerPhase
from core.timer_engine import TimerEngine

from .styles import REST_COLOR, STUDY_COLOR


class TimerPage(QWidget):
    """
    Main timer page with countdown display and controls.
    """

    def __init__(
        self,
        controller: AppController,
        timer_engine: TimerEngine,
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)

        self.controller = controller
        self.timer_engine = timer_engine

        self._setup_ui()
        self._connect_signals()
        self._on_tick(self.timer_engine.context)
        self._refresh_preset_label()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(20)
        layout.setContentsMargins(30, 30, 30, 30)

        # Session type header
        self.type_label = QLabel("Study Session")
        self.type_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        type_font = QFont()
        type_font.setPointSize(18)
        type_font.setBold(True)
        self.type_label.setFont(type_font)
        layout.addWidget(self.type_label)

        self.subtitle_label = QLabel("Time to focus!")
        self.subtitle_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.subtitle_label)

        # Big countdown display
        self.time_label = QLabel("00:00")
        self.time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        time_font = QFont()
        time_font.setPointSize(72)
        time_font.setBold(True)
        self.time_label.setFont(time_font)
        self.time_label.setMinimumHeight(120)
        layout.addWidget(self.time_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 1000)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(10)
        layout.addWidget(self.progress_bar)

        self.preset_label = QLabel("")
        self.preset_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.preset_label)

        # Control buttons
        button_layout = QHBoxLayout()
        button_layout.setSpacing(15)
        button_layout.addStretch()

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.setMinimumSize(100, 45)
        self.reset_btn.setToolTip("Reset timer")
        button_layout.addWidget(self.reset_btn)

        self.start_pause_btn = QPushButton("Start")
        self.start_pause_btn.setMinimumSize(120, 45)
        self.start_pause_btn.setStyleSheet(f"""
            QPushButton {{
                background-color: {STUDY_COLOR};
                color: white;
                border: none;
                border-radius: 5px;
                font-size: 14px;
                font-weight: bold;
            }}
            QPushButton:disabled {{
                background-color: #94a3b8;
            }}
        """)
        button_layout.addWidget(self.start_pause_btn)

        self.extend_btn = QPushButton("+5 min")
        self.extend_btn.setMinimumSize(100, 45)
        self.extend_btn.setToolTip("Add 5 minutes")
        button_layout.addWidget(self.extend_btn)

        button_layout.addStretch()
        layout.addLayout(button_layout)

        layout.addStretch()

    def _connect_signals(self):
        """Connect widget signals to slots."""
        self.timer_engine.tick.connect(self._on_tick)
        self.timer_engine.phase_changed.connect(self._on_phase_changed)
        self.controller.presets_changed.connect(self._refresh_preset_label)

        self.start_pause_btn.clicked.connect(self._on_start_pause_clicked)
        self.reset_btn.clicked.connect(self.timer_engine.reset)
        self.extend_btn.clicked.connect(self.timer_engine.extend)

    @Slot()
    def _refresh_preset_label(self):
        preset = self.controller.active_preset
        if preset is None:
            self.preset_label.setText("No preset selected")
        else:
            self.preset_label.setText(f"Preset: {preset}")

    @Slot()
    def _on_start_pause_clicked(self):
        if self.timer_engine.is_running:
            self.timer_engine.pause()
        else:
            self.timer_engine.start()

    @Slot(TimerContext)
    def _on_tick(self, context: TimerContext):
        """Handle timer tick - update display."""
        self.time_label.setText(context.format_remaining())
        self.progress_bar.setValue(int(context.progress_percentage * 10))

        is_study = context.session_type == SessionType.STUDY
        color = STUDY_COLOR if is_study else REST_COLOR
        self.type_label.setText("Study Session" if is_study else "Rest Session")
        self.subtitle_label.setText("Time to focus!" if is_study else "Time for a break!")
        self.time_label.setStyleSheet(f"color: {color};")
        self.progress_bar.setStyleSheet(
            f"QProgressBar::chunk {{ background-color: {color}; border-radius: 4px; }}"
        )

    @Slot(TimerPhase, TimerPhase)
    def _on_phase_changed(self, old_phase: TimerPhase, new_phase: TimerPhase):
        """Handle phase change - update button state."""
        awaiting = new_phase == TimerPhase.AWAITING_FEEDBACK
        self.start_pause_btn.setText("Pause" if new_phase == TimerPhase.RUNNING else "Start")
        self.start_pause_btn.setEnabled(not awaiting)
        self.reset_btn.setEnabled(not awaiting)
        self.extend_btn.setEnabled(not awaiting)
