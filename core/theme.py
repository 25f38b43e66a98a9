"""
Theme resolution for the FocusFlow application.
Combines the user's light/dark/system preference with the OS color scheme.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Qt, Signal, Slot

from .models import Theme

logger = logging.getLogger(__name__)


def resolve_dark(theme: Theme, system_dark: bool) -> bool:
    """Return True if the UI should render dark."""
    return theme == Theme.DARK or (theme == Theme.SYSTEM and system_dark)


class ThemeManager(QObject):
    """
    Tracks the theme preference and the OS color scheme.

    Emits dark_mode_changed whenever the resolved value flips, including
    when the OS scheme changes while the preference is 'system'.
    """

    dark_mode_changed = Signal(bool)

    def __init__(
        self,
        theme: Theme = Theme.SYSTEM,
        system_dark: bool = False,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._theme = theme
        self._system_dark = system_dark
        self._is_dark = resolve_dark(theme, system_dark)

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def is_dark(self) -> bool:
        return self._is_dark

    def attach_style_hints(self, style_hints):
        """Follow a QStyleHints color scheme (QGuiApplication.styleHints())."""
        self._system_dark = style_hints.colorScheme() == Qt.ColorScheme.Dark
        style_hints.colorSchemeChanged.connect(self._on_color_scheme_changed)
        self._update()

    def set_theme(self, theme: Theme):
        self._theme = theme
        self._update()

    @Slot(bool)
    def set_system_dark(self, system_dark: bool):
        """Feed a new OS color scheme value."""
        self._system_dark = system_dark
        self._update()

    @Slot(Qt.ColorScheme)
    def _on_color_scheme_changed(self, scheme: Qt.ColorScheme):
        logger.debug("System color scheme changed to %s", scheme)
        self.set_system_dark(scheme == Qt.ColorScheme.Dark)

    def _update(self):
        is_dark = resolve_dark(self._theme, self._system_dark)
        if is_dark != self._is_dark:
            self._is_dark = is_dark
            self.dark_mode_changed.emit(is_dark)
