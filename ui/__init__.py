# UI module for FocusFlow application
from .main_window import MainWindow
from .timer_page import TimerPage
from .analysis_page import AnalysisPage
from .settings_page import SettingsPage
from .feedback_dialog import FeedbackDialog

__all__ = ['MainWindow', 'TimerPage', 'AnalysisPage', 'SettingsPage', 'FeedbackDialog']
