"""Screen capture for screenshot-aware shortcuts."""

from typing import Optional

from PIL import Image

from ...utils.logger import get_logger
from ...utils.platform import get_platform

logger = get_logger(__name__)


class ScreenCapturer:

    def __init__(self, all_screens: bool = False):
        self._all_screens = all_screens

    def capture_active_screen(self) -> Optional[Image.Image]:
        try:
            from PIL import ImageGrab

            kwargs = {}
            if get_platform() == "windows":
                kwargs["all_screens"] = self._all_screens
            image = ImageGrab.grab(**kwargs)
        except (OSError, ImportError) as e:
            # Raised when screen recording permission is missing or no
            # display server is reachable.
            logger.error(f"Screen capture failed: {e}")
            return None

        logger.info(f"Captured screen {image.size[0]}x{image.size[1]}")
        return image
