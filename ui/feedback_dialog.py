"""
Feedback dialog shown when a study session completes.
"""

from typing import Optional

from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QLabel, QPlainTextEdit, QVBoxLayout, QWidget
)
from PySide6.QtCore import Slot

from core.models import Session
from core.timer_engine import TimerEngine


class FeedbackDialog(QDialog):
    """
    Asks how the study session went.

    Save submits the notes; Skip, Escape and closing the window dismiss them.
    Either way the engine records the session and moves on to the rest period.
    """

    def __init__(
        self,
        session: Session,
        timer_engine: TimerEngine,
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)

        self.session = session
        self.timer_engine = timer_engine

        self.setWindowTitle("Session complete!")
        self.setModal(True)
        self.setMinimumWidth(380)

        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        header = QLabel(f"<b>{self.session.duration} minute study session complete!</b>")
        layout.addWidget(header)

        prompt = QLabel(
            "How did your study session go? Your notes help the AI "
            "analyze your progress."
        )
        prompt.setWordWrap(True)
        layout.addWidget(prompt)

        self.notes_edit = QPlainTextEdit()
        self.notes_edit.setPlaceholderText("I felt focused, but got distracted...")
        self.notes_edit.setMinimumHeight(110)
        layout.addWidget(self.notes_edit)

        button_box = QDialogButtonBox()
        self.save_btn = button_box.addButton("Save", QDialogButtonBox.ButtonRole.AcceptRole)
        self.skip_btn = button_box.addButton("Skip", QDialogButtonBox.ButtonRole.RejectRole)
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

        self.notes_edit.setFocus()

    @Slot()
    def accept(self):
        self.timer_engine.submit_feedback(self.notes_edit.toPlainText())
        super().accept()

    @Slot()
    def reject(self):
        self.timer_engine.dismiss_feedback()
        super().reject()
