"""Tests for the background enhancement thread."""

from unittest.mock import MagicMock

from textenhancer.core.enhancer.orchestrator import EnhancementOutcome, OutcomeStatus
from textenhancer.core.enhancer.worker import EnhancementWorkerThread
from textenhancer.core.settings.settings import ShortcutConfig


def test_worker_emits_outcome(qtbot):
    shortcut = ShortcutConfig(id="improve", key="1", prompt="Fix")
    outcome = EnhancementOutcome(OutcomeStatus.SUCCEEDED, text="done", attempts=1)
    orchestrator = MagicMock()
    orchestrator.process_shortcut.return_value = outcome

    worker = EnhancementWorkerThread(orchestrator, shortcut)
    with qtbot.waitSignal(worker.finished, timeout=5000) as blocker:
        worker.start()
    worker.wait()

    assert blocker.args == [outcome]
    assert worker.shortcut is shortcut
    orchestrator.process_shortcut.assert_called_once_with(shortcut)
