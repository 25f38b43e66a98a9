"""
Application stylesheets for the light and dark themes.
"""

_TEMPLATE = """
    QMainWindow, QWidget {{
        background-color: {background};
        color: {text};
    }}

    QTabWidget::pane {{
        border: none;
        background-color: {surface};
    }}
    QTabBar::tab {{
        background-color: {tab};
        color: {muted};
        padding: 12px 25px;
        margin-right: 2px;
        border-top-left-radius: 6px;
        border-top-right-radius: 6px;
        font-size: 13px;
    }}
    QTabBar::tab:selected {{
        background-color: {surface};
        color: {text};
        font-weight: bold;
    }}

    QGroupBox {{
        font-weight: bold;
        font-size: 13px;
        border: 1px solid {border};
        border-radius: 8px;
        margin-top: 12px;
        padding-top: 12px;
        background-color: {surface};
    }}
    QGroupBox::title {{
        subcontrol-origin: margin;
        left: 12px;
        padding: 0 8px;
        color: {accent};
    }}

    QLineEdit, QSpinBox, QComboBox, QPlainTextEdit {{
        background-color: {input};
        color: {text};
        border: 1px solid {border};
        border-radius: 4px;
        padding: 6px;
    }}

    QPushButton {{
        background-color: {tab};
        color: {text};
        border: 1px solid {border};
        border-radius: 5px;
        padding: 8px 15px;
    }}
    QPushButton:hover {{
        border-color: {accent};
    }}
    QPushButton:disabled {{
        color: {muted};
    }}

    QLabel#ErrorBanner {{
        background-color: {error_bg};
        color: {error_text};
        border-left: 4px solid #ef4444;
        border-radius: 4px;
        padding: 10px;
    }}
"""

LIGHT_COLORS = {
    "background": "#f8fafc",
    "surface": "#ffffff",
    "tab": "#e2e8f0",
    "input": "#ffffff",
    "text": "#1e293b",
    "muted": "#64748b",
    "border": "#cbd5e1",
    "accent": "#3b82f6",
    "error_bg": "#fee2e2",
    "error_text": "#b91c1c",
}

DARK_COLORS = {
    "background": "#111827",
    "surface": "#1f2937",
    "tab": "#273449",
    "input": "#334155",
    "text": "#e2e8f0",
    "muted": "#94a3b8",
    "border": "#475569",
    "accent": "#60a5fa",
    "error_bg": "#7f1d1d",
    "error_text": "#fecaca",
}

# Countdown ring colors per session type
STUDY_COLOR = "#3b82f6"
REST_COLOR = "#10b981"


def stylesheet(is_dark: bool) -> str:
    """Return the application stylesheet for a theme."""
    return _TEMPLATE.format(**(DARK_COLORS if is_dark else LIGHT_COLORS))
