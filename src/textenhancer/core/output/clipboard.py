"""
System clipboard access and copy/paste keystrokes.

Uses the platform clipboard tools (xclip, pbcopy/pbpaste, clip/PowerShell)
and pynput for the shortcut keystrokes.
"""

import subprocess
import time
from typing import List, Optional, Tuple

from ...utils.logger import get_logger
from ...utils.platform import get_platform, get_subprocess_kwargs
from ..settings.config import COPY_SETTLE_SECONDS, PASTE_SETTLE_SECONDS

logger = get_logger(__name__)

_HOTKEY_MODIFIERS = ("alt", "alt_gr", "shift", "ctrl", "cmd")


def clipboard_commands() -> Optional[Tuple[List[str], List[str]]]:
    """Return (copy_cmd, paste_cmd) for this platform."""
    system = get_platform()

    if system == "linux":
        return ["xclip", "-selection", "clipboard"], ["xclip", "-selection", "clipboard", "-o"]
    if system == "macos":
        return ["pbcopy"], ["pbpaste"]
    if system == "windows":
        return ["clip"], ["powershell", "-command", "Get-Clipboard"]
    return None


class Clipboard:

    def __init__(self, keyboard=None):
        self._keyboard = keyboard
        self._commands = clipboard_commands()

    @property
    def keyboard(self):
        if self._keyboard is None:
            from pynput.keyboard import Controller as KeyboardController

            self._keyboard = KeyboardController()
        return self._keyboard

    @property
    def available(self) -> bool:
        return self._commands is not None

    def get_text(self) -> str:
        if self._commands is None:
            return ""
        try:
            result = subprocess.run(
                self._commands[1],
                **get_subprocess_kwargs(capture_output=True, text=True, timeout=1),
            )
            return result.stdout if result.returncode == 0 else ""
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return ""

    def set_text(self, text: str) -> bool:
        if self._commands is None:
            return False
        try:
            subprocess.run(
                self._commands[0],
                **get_subprocess_kwargs(input=text, text=True, timeout=1, check=True),
            )
            return True
        except (
            subprocess.TimeoutExpired,
            FileNotFoundError,
            subprocess.CalledProcessError,
        ) as e:
            logger.error(f"Failed to set clipboard: {e}")
            return False

    def release_modifiers(self, keep=None) -> None:
        """Send key-up for modifiers still held from the global shortcut."""
        from pynput.keyboard import Key

        for name in _HOTKEY_MODIFIERS:
            key = getattr(Key, name, None)
            if key is not None and key != keep:
                self.keyboard.release(key)

    def press_shortcut(self, char: str) -> None:
        """Press the platform command modifier together with char."""
        from pynput.keyboard import Key

        modifier = Key.cmd if get_platform() == "macos" else Key.ctrl
        # A held Alt would turn Ctrl+C into Ctrl+Alt+C (AltGr+C on Windows)
        self.release_modifiers(keep=modifier)
        with self.keyboard.pressed(modifier):
            self.keyboard.tap(char)

    def copy_selection(self, settle_delay: float = COPY_SETTLE_SECONDS) -> str:
        self.press_shortcut("c")
        time.sleep(settle_delay)
        return self.get_text()

    def paste(self, settle_delay: float = PASTE_SETTLE_SECONDS) -> None:
        time.sleep(settle_delay)
        self.press_shortcut("v")
