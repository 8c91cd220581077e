"""Background thread that runs one enhancement without blocking the UI."""

from PySide6.QtCore import QThread, Signal

from ...utils.logger import get_logger
from ..settings.settings import ShortcutConfig
from .orchestrator import EnhancementOrchestrator

logger = get_logger(__name__)


class EnhancementWorkerThread(QThread):
    finished = Signal(object)  # EnhancementOutcome

    def __init__(self, orchestrator: EnhancementOrchestrator, shortcut: ShortcutConfig):
        super().__init__()
        self._orchestrator = orchestrator
        self._shortcut = shortcut

    @property
    def shortcut(self) -> ShortcutConfig:
        return self._shortcut

    def run(self):
        outcome = self._orchestrator.process_shortcut(self._shortcut)
        logger.debug(f"Worker for '{self._shortcut.id}' finished: {outcome.status.value}")
        self.finished.emit(outcome)
