"""Lifecycle events broadcast while a shortcut is being processed."""

import threading
from dataclasses import dataclass
from typing import Callable, List

from ...utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessingStarted:
    shortcut_id: str


@dataclass(frozen=True)
class ProcessingFinished:
    shortcut_id: str
    status: str


@dataclass(frozen=True)
class RetryAttempted:
    attempt: int
    max_attempts: int
    provider: str


Listener = Callable[[object], None]


class EventChannel:
    """
    Observer list handed to the orchestrator.

    Delivery is fire-and-forget: a listener that raises is logged and the
    remaining listeners still receive the event.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(self, event: object) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Event listener failed for {type(event).__name__}: {e}")
