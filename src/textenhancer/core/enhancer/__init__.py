"""Enhancement pipeline: orchestration, lifecycle events and alerts."""

from .alerts import Alert, AlertAction, alert_for_error
from .events import EventChannel, ProcessingFinished, ProcessingStarted, RetryAttempted
from .orchestrator import (
    EnhancementOrchestrator,
    EnhancementOutcome,
    OutcomeStatus,
    build_adapters,
)
from .worker import EnhancementWorkerThread

__all__ = [
    "Alert",
    "AlertAction",
    "alert_for_error",
    "EventChannel",
    "ProcessingFinished",
    "ProcessingStarted",
    "RetryAttempted",
    "EnhancementOrchestrator",
    "EnhancementOutcome",
    "OutcomeStatus",
    "build_adapters",
    "EnhancementWorkerThread",
]
