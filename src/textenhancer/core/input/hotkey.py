"""
Global shortcut listener.

Registers every configured shortcut with pynput's GlobalHotKeys and reports
activations through a Qt signal.
"""

from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from ...utils.logger import get_logger
from ..settings.settings import ShortcutConfig

logger = get_logger(__name__)


def build_hotkey_map(shortcuts: List[ShortcutConfig]) -> Dict[str, str]:
    """Map pynput combination strings to shortcut ids, skipping duplicates."""
    combos: Dict[str, str] = {}
    for shortcut in shortcuts:
        combo = shortcut.to_hotkey_string()
        if combo in combos:
            logger.warning(
                f"Shortcut '{shortcut.id}' reuses {shortcut.to_display_string()} "
                f"already bound to '{combos[combo]}', ignoring"
            )
            continue
        combos[combo] = shortcut.id
    return combos


class ShortcutListener(QObject):
    """
    Listens for the configured shortcut combinations.

    Signals:
        shortcut_triggered: Emitted with the shortcut id when its combination is pressed
    """

    shortcut_triggered = Signal(str)

    def __init__(self, shortcuts: List[ShortcutConfig], parent: Optional[QObject] = None):
        super().__init__(parent)
        self._hotkeys = build_hotkey_map(shortcuts)
        self._listener = None

    @property
    def hotkeys(self) -> Dict[str, str]:
        return dict(self._hotkeys)

    def update_shortcuts(self, shortcuts: List[ShortcutConfig]) -> None:
        was_running = self._listener is not None
        self.stop()
        self._hotkeys = build_hotkey_map(shortcuts)
        if was_running:
            self.start()

    def start(self) -> None:
        from pynput import keyboard

        if self._listener is not None:
            return

        callbacks = {
            combo: (lambda shortcut_id=shortcut_id: self._on_activate(shortcut_id))
            for combo, shortcut_id in self._hotkeys.items()
        }
        self._listener = keyboard.GlobalHotKeys(callbacks)
        self._listener.start()
        logger.info(f"Registered {len(callbacks)} global shortcuts")

        if hasattr(self._listener, "IS_TRUSTED") and not self._listener.IS_TRUSTED:
            logger.warning(
                "Shortcut listener is NOT TRUSTED. Accessibility permissions not granted."
            )

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    def _on_activate(self, shortcut_id: str) -> None:
        logger.debug(f"Shortcut activated: {shortcut_id}")
        self.shortcut_triggered.emit(shortcut_id)
