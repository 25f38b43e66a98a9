"""
Analysis page widget for the FocusFlow application.
Shows the pending session count, the analyze button and the analysis history.
"""

import html
from datetime import datetime
from typing import Optional, Sequence
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QGroupBox,
    QScrollArea, QFrame, QProgressBar, QFormLayout
)
from PySide6.QtCore import Qt, Slot

from core.controller import AppController
from core.models import Analysis


def format_date(iso: str) -> str:
    """Format an ISO timestamp for display in local time."""
    try:
        return datetime.fromisoformat(iso).astimezone().strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


def suggestions_html(suggestions: Sequence[str]) -> str:
    """Render suggestions as an escaped HTML list."""
    items = "".join(f"<li>{html.escape(s)}</li>" for s in suggestions)
    return f"<b>Suggestions</b><ul>{items}</ul>"


class AnalysisCard(QGroupBox):
    """One analysis record."""

    RATINGS = (
        ("Concentration", "concentration"),
        ("Study capacity", "study_capacity"),
        ("Stress", "stress"),
        ("Happiness", "happiness"),
    )

    def __init__(self, analysis: Analysis, parent: Optional[QWidget] = None):
        super().__init__(format_date(analysis.date), parent)

        layout = QVBoxLayout(self)

        if analysis.session_count:
            totals = QLabel(
                f"{analysis.session_count} sessions, "
                f"{analysis.total_study_duration} minutes of study"
            )
            layout.addWidget(totals)

        form = QFormLayout()
        for label, attr in self.RATINGS:
            bar = QProgressBar()
            bar.setRange(0, 100)
            bar.setValue(getattr(analysis, attr))
            bar.setFormat("%v / 100")
            form.addRow(f"{label}:", bar)
        layout.addLayout(form)

        summary = QLabel(analysis.summary)
        summary.setTextFormat(Qt.TextFormat.PlainText)
        summary.setWordWrap(True)
        layout.addWidget(summary)

        if analysis.suggestions:
            suggestions = QLabel(suggestions_html(analysis.suggestions))
            suggestions.setWordWrap(True)
            suggestions.setTextFormat(Qt.TextFormat.RichText)
            layout.addWidget(suggestions)


class AnalysisPage(QWidget):
    """
    AI analysis dashboard.
    """

    def __init__(self, controller: AppController, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.controller = controller

        self._setup_ui()
        self._connect_signals()
        self.refresh()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(15)
        layout.setContentsMargins(20, 20, 20, 20)

        header = QLabel("AI Analysis")
        header_font = header.font()
        header_font.setPointSize(16)
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        toolbar = QHBoxLayout()
        self.pending_label = QLabel("")
        toolbar.addWidget(self.pending_label)
        toolbar.addStretch()

        self.analyze_btn = QPushButton("Analyze sessions")
        toolbar.addWidget(self.analyze_btn)
        layout.addLayout(toolbar)

        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self.scroll.setFrameShape(QFrame.Shape.NoFrame)
        self.history_container = QWidget()
        self.history_layout = QVBoxLayout(self.history_container)
        self.history_layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        self.scroll.setWidget(self.history_container)
        layout.addWidget(self.scroll)

    def _connect_signals(self):
        self.analyze_btn.clicked.connect(self.controller.request_analysis)
        self.controller.sessions_changed.connect(self.refresh)
        self.controller.analyses_changed.connect(self.refresh)
        self.controller.analysis_running_changed.connect(self._on_running_changed)

    @Slot()
    def refresh(self):
        """Rebuild the pending count and history list."""
        count = len(self.controller.pending_study_sessions())
        self.pending_label.setText(f"{count} study sessions waiting for analysis")
        self.analyze_btn.setEnabled(count > 0 and not self.controller.is_analysis_running)

        while self.history_layout.count():
            item = self.history_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()

        analyses = self.controller.analyses
        if not analyses:
            empty = QLabel(
                "No analyses yet. Complete some study sessions and press "
                "'Analyze sessions'."
            )
            empty.setWordWrap(True)
            self.history_layout.addWidget(empty)
            return

        for analysis in analyses:
            self.history_layout.addWidget(AnalysisCard(analysis))

    @Slot(bool)
    def _on_running_changed(self, running: bool):
        self.analyze_btn.setText("Analyzing..." if running else "Analyze sessions")
        self.analyze_btn.setEnabled(
            not running and bool(self.controller.pending_study_sessions())
        )
