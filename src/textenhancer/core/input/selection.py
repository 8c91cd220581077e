"""Reads the current text selection of the focused application."""

from typing import Optional

from ...utils.logger import get_logger, preview
from ..output.clipboard import Clipboard

logger = get_logger(__name__)


class ClipboardSelectionProvider:
    """
    Copies the selection with the platform copy shortcut and reads it back.

    A sentinel is placed on the clipboard first so an empty selection is not
    mistaken for stale clipboard contents. The previous clipboard is restored.
    """

    _MARKER = "⁣textenhancer-selection⁣"

    def __init__(self, clipboard: Optional[Clipboard] = None):
        self._clipboard = clipboard or Clipboard()

    def get_selected_text(self) -> Optional[str]:
        if not self._clipboard.available:
            logger.warning("Clipboard is not available, cannot read selection")
            return None

        previous = self._clipboard.get_text()
        self._clipboard.set_text(self._MARKER)
        try:
            copied = self._clipboard.copy_selection()
        finally:
            # Also restores an empty clipboard so the marker never lingers
            self._clipboard.set_text(previous)

        if not copied or copied == self._MARKER:
            logger.info("No text selected")
            return None

        logger.debug(f"Selected text: {preview(copied)}")
        return copied
