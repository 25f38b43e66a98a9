#!/usr/bin/env python3
"""
FocusFlow - A study/rest interval timer with AI session analysis.

A small desktop timer with:
- Study and rest intervals driven by named presets
- Session notes captured after every study interval
- Gemini-powered analysis of your accumulated notes
- Light, dark and system themes
- Local JSON backup import/export

Usage:
    pip install -e .
    python main.py
"""

import logging
import signal
import sys

from PySide6.QtWidgets import QApplication

from core.logging_setup import setup_logging
from core.storage import get_app_data_dir

logger = logging.getLogger("focusflow")


def setup_exception_handling():
    """Log unhandled exceptions before the default hook prints them."""
    def exception_hook(exctype, value, traceback):
        logger.critical("Unhandled exception", exc_info=(exctype, value, traceback))
        sys.__excepthook__(exctype, value, traceback)

    sys.excepthook = exception_hook


def setup_signal_handlers(app: QApplication):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        logger.info("Received signal %s, shutting down...", signum)
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Main entry point for the FocusFlow application."""
    setup_logging(get_app_data_dir())
    setup_exception_handling()

    app = QApplication(sys.argv)
    app.setApplicationName("FocusFlow")
    app.setApplicationDisplayName("FocusFlow")
    app.setOrganizationName("FocusFlow")
    app.setStyle("Fusion")

    setup_signal_handlers(app)

    # Import and create main window
    from ui.main_window import MainWindow
    window = MainWindow()
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
