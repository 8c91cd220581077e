"""
System tray icon, menu and alert presentation using PySide6.

Provides a tray icon with a status indicator and context menu, and shows
alerts from worker threads as message boxes on the Qt thread.
"""

from enum import Enum, auto
from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QApplication, QMenu, QMessageBox, QSystemTrayIcon

from .. import __app_name__
from ..core.enhancer.alerts import Alert, AlertAction
from ..core.settings.settings import ShortcutConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TrayStatus(Enum):
    IDLE = auto()
    PROCESSING = auto()
    ERROR = auto()


STATUS_COLORS: Dict[TrayStatus, str] = {
    TrayStatus.IDLE: "#4CAF50",
    TrayStatus.PROCESSING: "#2196F3",
    TrayStatus.ERROR: "#F44336",
}


class SystemTray(QObject):
    """
    System tray icon with context menu.

    Signals:
        shortcut_requested: Emitted with a shortcut id picked from the menu
        settings_requested: Emitted when user clicks "Settings"
        reload_requested: Emitted when user clicks "Reload Settings"
        quit_requested: Emitted when user clicks "Quit"
    """

    shortcut_requested = Signal(str)
    settings_requested = Signal()
    reload_requested = Signal()
    quit_requested = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._status = TrayStatus.IDLE
        self._detail = ""
        self._tray_icon = QSystemTrayIcon(self)
        self._menu = QMenu()
        self._shortcuts_menu = QMenu("Shortcuts", self._menu)

        self._status_action = QAction("Ready", self._menu)
        self._status_action.setEnabled(False)
        self._menu.addAction(self._status_action)
        self._menu.addSeparator()
        self._menu.addMenu(self._shortcuts_menu)

        settings_action = QAction("Settings...", self._menu)
        settings_action.triggered.connect(self.settings_requested.emit)
        self._menu.addAction(settings_action)

        reload_action = QAction("Reload Settings", self._menu)
        reload_action.triggered.connect(self.reload_requested.emit)
        self._menu.addAction(reload_action)

        self._menu.addSeparator()

        quit_action = QAction("Quit", self._menu)
        quit_action.triggered.connect(self.quit_requested.emit)
        self._menu.addAction(quit_action)

        self._tray_icon.setContextMenu(self._menu)
        self._update_icon()

    @property
    def status(self) -> TrayStatus:
        return self._status

    def show(self) -> None:
        self._tray_icon.show()

    def hide(self) -> None:
        self._tray_icon.hide()

    def set_shortcuts(self, shortcuts: List[ShortcutConfig]) -> None:
        self._shortcuts_menu.clear()
        for shortcut in shortcuts:
            action = QAction(
                f"{shortcut.name or shortcut.id}\t{shortcut.to_display_string()}",
                self._shortcuts_menu,
            )
            action.triggered.connect(
                lambda checked=False, sid=shortcut.id: self.shortcut_requested.emit(sid)
            )
            self._shortcuts_menu.addAction(action)

    def set_status(self, status: TrayStatus, message: str = "") -> None:
        self._status = status
        self._detail = message

        status_texts = {
            TrayStatus.IDLE: "Ready",
            TrayStatus.PROCESSING: "Enhancing...",
            TrayStatus.ERROR: f"Error: {message}",
        }
        text = status_texts[status]
        if status == TrayStatus.PROCESSING and message:
            text = f"Enhancing... ({message})"
        self._status_action.setText(text)
        self._update_icon()

    def tooltip(self) -> str:
        if self._status == TrayStatus.PROCESSING:
            suffix = f" - {self._detail}" if self._detail else " - Enhancing"
        elif self._status == TrayStatus.ERROR:
            suffix = " - Error"
        else:
            suffix = " - Ready"
        return f"{__app_name__}{suffix}"

    def notify(self, title: str, message: str) -> None:
        if QSystemTrayIcon.supportsMessages():
            self._tray_icon.showMessage(title, message, QSystemTrayIcon.Information, 3000)

    def _update_icon(self) -> None:
        size = 22
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.Antialiasing)

        color = QColor(STATUS_COLORS.get(self._status, "#808080"))
        painter.setBrush(QBrush(color))
        painter.setPen(QPen(color.darker(120), 1))

        margin = 2
        painter.drawEllipse(margin, margin, size - 2 * margin, size - 2 * margin)

        if self._status == TrayStatus.ERROR:
            painter.setPen(QPen(QColor("#FFFFFF"), 2))
            inner = 6
            painter.drawLine(inner, inner, size - inner, size - inner)
            painter.drawLine(size - inner, inner, inner, size - inner)

        painter.end()

        self._tray_icon.setIcon(QIcon(pixmap))
        self._tray_icon.setToolTip(self.tooltip())


class AlertPresenter(QObject):
    """
    Shows alerts as message boxes with one button per remediation action.

    post() may be called from any thread; the dialog is shown on the Qt thread.

    Signals:
        action_chosen: Emitted with (alert, action) after the user picks a button
    """

    alert_posted = Signal(object)
    action_chosen = Signal(object, object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.alert_posted.connect(self._show, Qt.QueuedConnection)

    def post(self, alert: Alert) -> None:
        self.alert_posted.emit(alert)

    def _show(self, alert: Alert) -> None:
        logger.info(f"Showing alert: {alert.title}")
        box = QMessageBox()
        box.setIcon(QMessageBox.Warning)
        box.setWindowTitle(alert.title)
        box.setText(alert.message)

        buttons = {}
        for action in alert.actions:
            role = QMessageBox.AcceptRole if action == AlertAction.OK else QMessageBox.ActionRole
            buttons[box.addButton(action.label, role)] = action

        box.exec()
        action = buttons.get(box.clickedButton(), AlertAction.OK)

        if action == AlertAction.COPY_DETAILS:
            QApplication.clipboard().setText(alert.details or alert.message)

        self.action_chosen.emit(alert, action)
