from .hotkey import ShortcutListener
from .selection import ClipboardSelectionProvider

__all__ = ["ShortcutListener", "ClipboardSelectionProvider"]
