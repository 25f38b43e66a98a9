"""
Notification module for the FocusFlow application.
Plays the completion cue and shows desktop notifications when a session ends.
"""

import io
import logging
import math
import os
import struct
import subprocess
import sys
import tempfile
import wave
from typing import Optional

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QSystemTrayIcon

from .models import SessionType

logger = logging.getLogger(__name__)


def generate_completion_sound(sample_rate: int = 44100) -> bytes:
    """Generate the completion cue (two rising tones) as WAV data."""
    max_amplitude = 32767 * 0.4
    samples = []

    def tone(frequency: float, seconds: float, fade_seconds: float):
        count = int(sample_rate * seconds)
        fade = int(sample_rate * fade_seconds)
        for i in range(count):
            value = max_amplitude * math.sin(2 * math.pi * frequency * i / sample_rate)
            # Fade to avoid clicks
            if i < fade:
                value *= i / fade
            elif i > count - fade:
                value *= (count - i) / fade
            samples.append(int(value))

    tone(880, 0.1, 0.01)
    samples.extend([0] * int(sample_rate * 0.05))
    tone(1046, 0.15, 0.015)

    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(struct.pack(f'<{len(samples)}h', *samples))

    return buffer.getvalue()


class SoundPlayer:
    """
    Cross-platform sound player.
    Writes the cue to a temp file once and hands it to the platform player.
    """

    def __init__(self):
        self.enabled = True
        self._temp_file: Optional[str] = None

    def _ensure_temp_file(self) -> Optional[str]:
        if self._temp_file is None:
            try:
                fd, self._temp_file = tempfile.mkstemp(suffix='.wav')
                with os.fdopen(fd, 'wb') as f:
                    f.write(generate_completion_sound())
            except OSError as e:
                logger.warning("Could not write completion sound: %s", e)
                self._temp_file = None
        return self._temp_file

    def play(self):
        """Play the completion sound."""
        if not self.enabled:
            return
        path = self._ensure_temp_file()
        if path is None:
            return

        try:
            self._play_sound(path)
        except OSError as e:
            logger.warning("Could not play sound: %s", e)

    def _play_sound(self, path: str):
        """Platform-specific sound playback."""
        system = sys.platform.lower()

        if system == 'darwin':
            subprocess.Popen(
                ['afplay', path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
        elif system.startswith('linux'):
            # Try PulseAudio, then ALSA
            for cmd in ['paplay', 'aplay']:
                try:
                    subprocess.Popen(
                        [cmd, path],
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL
                    )
                    return
                except FileNotFoundError:
                    continue
            logger.warning("No audio player found (tried paplay, aplay)")
        elif system == 'win32':
            import winsound
            winsound.PlaySound(path, winsound.SND_FILENAME | winsound.SND_ASYNC)

    def cleanup(self):
        """Clean up temporary files."""
        if self._temp_file and os.path.exists(self._temp_file):
            try:
                os.remove(self._temp_file)
            except OSError as e:
                logger.debug("Could not remove %s: %s", self._temp_file, e)
        self._temp_file = None


class NotificationManager(QObject):
    """
    Plays the completion cue and shows desktop notifications.
    Uses the system tray when available, native commands otherwise.
    """

    MESSAGES = {
        SessionType.STUDY: ("Study session complete!", "Great work! Time for a break."),
        SessionType.REST: ("Break over", "Ready for another study session?"),
    }

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._sound_player = SoundPlayer()
        self._tray_icon: Optional[QSystemTrayIcon] = None
        self.notification_enabled = True

    def set_tray_icon(self, tray_icon: QSystemTrayIcon):
        """Set the system tray icon for showing notifications."""
        self._tray_icon = tray_icon

    @property
    def sound_enabled(self) -> bool:
        return self._sound_player.enabled

    @sound_enabled.setter
    def sound_enabled(self, value: bool):
        self._sound_player.enabled = value

    def notify_session_finished(self, session_type: SessionType):
        """Play the cue and show the notification for a finished session."""
        self._sound_player.play()
        title, message = self.MESSAGES[session_type]
        self._show_notification(title, message)

    def _show_notification(self, title: str, message: str):
        """Show a desktop notification."""
        if not self.notification_enabled:
            return

        if self._tray_icon is not None and QSystemTrayIcon.isSystemTrayAvailable():
            self._tray_icon.showMessage(
                title, message, QSystemTrayIcon.MessageIcon.Information, 3000
            )
        else:
            self._show_native_notification(title, message)

    def _show_native_notification(self, title: str, message: str):
        """Show notification using native OS commands."""
        system = sys.platform.lower()

        try:
            if system == 'darwin':
                script = f'display notification "{message}" with title "{title}"'
                subprocess.run(
                    ['osascript', '-e', script],
                    capture_output=True,
                    timeout=5
                )
            elif system.startswith('linux'):
                subprocess.run(
                    ['notify-send', title, message],
                    capture_output=True,
                    timeout=5
                )
            # Windows notifications handled by tray icon
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not show notification: %s", e)

    def cleanup(self):
        """Clean up resources."""
        self._sound_player.cleanup()
