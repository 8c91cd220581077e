"""
Text replacement for enhanced results.

Pastes the result over the current selection (or at the cursor when nothing
is selected) via the clipboard, restoring the previous clipboard contents.
"""

import time
from typing import Callable, Optional

from ...utils.logger import get_logger, preview
from .clipboard import Clipboard

logger = get_logger(__name__)


class TextOutputController:

    def __init__(
        self,
        clipboard: Optional[Clipboard] = None,
        on_complete: Optional[Callable[[], None]] = None,
        restore_clipboard: bool = True,
    ):
        self._clipboard = clipboard or Clipboard()
        self._on_complete = on_complete
        self._restore_clipboard = restore_clipboard

    def replace(self, text: str) -> None:
        logger.debug(f"Pasting text via clipboard: {preview(text)}")

        if not self._clipboard.available:
            logger.warning("No clipboard tool on this platform, falling back to direct typing")
            self._clipboard.keyboard.type(text)
        else:
            old_clipboard = self._clipboard.get_text() if self._restore_clipboard else ""

            if self._clipboard.set_text(text):
                self._clipboard.paste()
                time.sleep(0.1)
                if old_clipboard:
                    self._clipboard.set_text(old_clipboard)
            else:
                self._clipboard.keyboard.type(text)

        if self._on_complete:
            self._on_complete()
