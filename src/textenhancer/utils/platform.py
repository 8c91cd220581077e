"""Platform-specific utilities for cross-platform compatibility."""

import platform
import subprocess
import sys
from enum import Enum

from .logger import get_logger

logger = get_logger(__name__)


class PrivacyPane(Enum):
    ACCESSIBILITY = "Privacy_Accessibility"
    SCREEN_RECORDING = "Privacy_ScreenCapture"


def get_platform() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macos"
    return system.lower()


def get_subprocess_kwargs(**kwargs) -> dict:
    """Keyword arguments for subprocess.run that avoid console windows on Windows."""
    if sys.platform == "win32":
        kwargs.setdefault("creationflags", subprocess.CREATE_NO_WINDOW)
    return kwargs


def check_accessibility_permissions() -> bool:

    if get_platform() != "macos":
        return True

    try:
        # Attempt a minimal System Events interaction to test accessibility
        result = subprocess.run(
            ["osascript", "-e", 'tell application "System Events" to keystroke ""'],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except subprocess.TimeoutExpired:
        logger.warning("Accessibility permission check timed out")
        return False
    except OSError as e:
        logger.warning(f"Failed to check accessibility permissions: {e}")
        return False


def open_privacy_settings(pane: PrivacyPane = PrivacyPane.ACCESSIBILITY) -> None:
    system = get_platform()

    if system == "macos":
        command = [
            "open",
            f"x-apple.systempreferences:com.apple.preference.security?{pane.value}",
        ]
    elif system == "windows":
        uri = (
            "ms-settings:privacy"
            if pane == PrivacyPane.ACCESSIBILITY
            else "ms-settings:privacy-graphicscaptureprogrammatic"
        )
        command = ["cmd", "/c", "start", "", uri]
    else:
        logger.info("No system privacy settings to open on this platform")
        return

    try:
        subprocess.run(command, **get_subprocess_kwargs(check=False, timeout=5))
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.error(f"Failed to open system settings: {e}")
