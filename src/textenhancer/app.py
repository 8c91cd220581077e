"""Application runtime."""

import signal
import sys
from typing import List, Optional

from PySide6.QtCore import QObject, Qt, QUrl, Signal
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import QApplication

from . import __app_name__, __version__
from .core.enhancer import (
    Alert,
    AlertAction,
    EnhancementOrchestrator,
    EnhancementOutcome,
    EnhancementWorkerThread,
    EventChannel,
    ProcessingFinished,
    ProcessingStarted,
    RetryAttempted,
    build_adapters,
)
from .core.input import ClipboardSelectionProvider, ShortcutListener
from .core.llm import ModelCache, ProviderId, RequestsTransport
from .core.output import Clipboard, TextOutputController
from .core.screen import ScreenCapturer
from .core.settings.settings import Settings, get_settings, get_settings_file
from .ui.tray import AlertPresenter, SystemTray, TrayStatus
from .utils.logger import get_logger, mask_secret, shutdown_logging
from .utils.platform import PrivacyPane, open_privacy_settings

logger = get_logger(__name__)


class TextEnhancerApp(QObject):

    # Lifecycle events arrive on worker threads and are re-delivered on the Qt thread
    event_received = Signal(object)

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()

        self._settings = settings or get_settings()
        self._workers: List[EnhancementWorkerThread] = []

        self._tray = SystemTray()
        self._alerts = AlertPresenter(self)
        self._events = EventChannel()
        self._transport = RequestsTransport()
        self._cache = ModelCache()

        clipboard = Clipboard()
        self._selection = ClipboardSelectionProvider(clipboard)
        self._text_output = TextOutputController(clipboard)
        self._capturer = ScreenCapturer()

        self._orchestrator = self._build_orchestrator()
        self._shortcut_listener = ShortcutListener(self._settings.shortcuts)

        self._events.subscribe(self.event_received.emit)
        self.event_received.connect(self._on_event, Qt.QueuedConnection)
        self._tray.shortcut_requested.connect(self._run_shortcut)
        self._tray.settings_requested.connect(self._show_settings)
        self._tray.reload_requested.connect(self._reload_settings)
        self._tray.quit_requested.connect(self._quit)
        self._alerts.action_chosen.connect(self._on_alert_action)
        self._shortcut_listener.shortcut_triggered.connect(self._run_shortcut)

    def _build_orchestrator(self) -> EnhancementOrchestrator:
        adapters = build_adapters(self._settings, self._transport, self._cache, self._events)
        return EnhancementOrchestrator(
            settings=self._settings,
            adapters=adapters,
            selection_provider=self._selection,
            text_replacer=self._text_output,
            screen_capturer=self._capturer,
            alert_sink=self._alerts.post,
            events=self._events,
        )

    def _run_shortcut(self, shortcut_id: str) -> None:
        shortcut = self._settings.find_shortcut(shortcut_id)
        if shortcut is None:
            logger.warning(f"Unknown shortcut id: {shortcut_id}")
            return

        worker = EnhancementWorkerThread(self._orchestrator, shortcut)
        worker.finished.connect(self._on_worker_finished)
        self._workers.append(worker)
        worker.start()

    def _on_worker_finished(self, outcome: EnhancementOutcome) -> None:
        worker = self.sender()
        if not isinstance(worker, EnhancementWorkerThread):
            return
        if worker in self._workers:
            self._workers.remove(worker)
        # finished is emitted at the end of run(), the thread exits right after
        worker.wait()
        worker.deleteLater()

        logger.info(
            f"Shortcut '{worker.shortcut.id}' finished: {outcome.status.value} "
            f"after {outcome.attempts} attempt(s)"
        )
        if outcome.succeeded and self._settings.enable_notifications:
            self._tray.notify(__app_name__, f"{worker.shortcut.name or worker.shortcut.id} done")

    def _on_event(self, event: object) -> None:
        if isinstance(event, ProcessingStarted):
            self._tray.set_status(TrayStatus.PROCESSING)
        elif isinstance(event, RetryAttempted):
            self._tray.set_status(
                TrayStatus.PROCESSING,
                f"retry {event.attempt}/{event.max_attempts} with {event.provider}",
            )
        elif isinstance(event, ProcessingFinished):
            status = TrayStatus.IDLE if event.status == "succeeded" else TrayStatus.ERROR
            self._tray.set_status(status, event.status.replace("_", " "))

    def _on_alert_action(self, alert: Alert, action: AlertAction) -> None:
        if action == AlertAction.OPEN_SETTINGS:
            self._show_settings()
        elif action == AlertAction.OPEN_PRIVACY_SETTINGS:
            open_privacy_settings(PrivacyPane.ACCESSIBILITY)
        elif action == AlertAction.OPEN_SCREEN_RECORDING_SETTINGS:
            open_privacy_settings(PrivacyPane.SCREEN_RECORDING)

    def _show_settings(self) -> None:
        settings_file = get_settings_file()
        if not settings_file.exists():
            self._settings.save()
        QDesktopServices.openUrl(QUrl.fromLocalFile(str(settings_file)))

    def _reload_settings(self) -> None:
        logger.info("Reloading settings")
        self._settings = Settings.load()
        self._orchestrator.close()
        self._orchestrator = self._build_orchestrator()
        self._shortcut_listener.update_shortcuts(self._settings.shortcuts)
        self._tray.set_shortcuts(self._settings.shortcuts)

    def _quit(self) -> None:
        logger.info("Shutting down application")
        self._shortcut_listener.stop()
        self._orchestrator.close()
        self._transport.close()
        self._tray.hide()
        QApplication.quit()
        logger.info("Application shutdown complete")
        shutdown_logging()

    def run(self) -> None:
        logger.info(f"Starting {__app_name__} v{__version__}")

        self._tray.set_shortcuts(self._settings.shortcuts)
        if self._settings.show_status_icon:
            self._tray.show()

        for shortcut in self._settings.shortcuts:
            logger.info(f"Shortcut '{shortcut.id}': {shortcut.to_display_string()}")
        for provider_id in ProviderId:
            key = self._settings.api_key_for(provider_id)
            logger.info(f"{provider_id.display_name} API key: {mask_secret(key)}")
        self._shortcut_listener.start()

        logger.info("Application initialization complete")


def main():
    app = QApplication(sys.argv)
    app.setApplicationName(__app_name__)
    app.setQuitOnLastWindowClosed(False)
    signal.signal(signal.SIGINT, lambda *args: QApplication.quit())

    enhancer_app = TextEnhancerApp()
    enhancer_app.run()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
