"""
Bounded retry policy for provider calls.

A RetryController lives for one enhancement request. run_with_retry drives
sequential attempts through it, waiting between attempts and reporting each
scheduled retry to an optional callback.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

from ...utils.logger import get_logger
from .errors import ProviderError, TransportError, TransportFailureError

logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3

# Delay (seconds) after the given completed attempt number.
RETRY_DELAYS = {1: 0.0, 2: 2.0}


@dataclass(frozen=True)
class RetryEvent:
    attempt: int  # the attempt about to run
    max_attempts: int
    provider: str


class RetryExhaustedError(RuntimeError):
    pass


class RetryCancelledError(RuntimeError):
    """Raised when a request is cancelled before its first attempt."""


class RetryController:

    def __init__(self, max_attempts: int = MAX_ATTEMPTS):
        self.max_attempts = max_attempts
        self.attempt_count = 0

    def next_attempt(self) -> int:
        if not self.has_attempts_remaining():
            raise RetryExhaustedError(
                f"All {self.max_attempts} attempts have already been used"
            )
        self.attempt_count += 1
        return self.attempt_count

    def has_attempts_remaining(self) -> bool:
        return self.attempt_count < self.max_attempts

    def should_retry(self, error: BaseException) -> bool:
        if isinstance(error, ProviderError):
            return error.is_retryable
        if isinstance(error, TransportError):
            return TransportFailureError(error.kind).is_retryable
        return False

    def delay_before_next_attempt(self, completed_attempt: int) -> float:
        return RETRY_DELAYS.get(completed_attempt, 0.0)

    def reset(self) -> None:
        self.attempt_count = 0


def run_with_retry(
    operation: Callable[[int], T],
    provider: str,
    controller: Optional[RetryController] = None,
    on_retry: Optional[Callable[[RetryEvent], None]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[T, int]:
    """
    Run operation until it succeeds, fails with a non-retryable error, or the
    attempts are exhausted.

    Returns:
        Tuple of (result, attempts used). On failure the last error is raised
        unchanged.
    """
    controller = controller or RetryController()

    def wait(seconds: float) -> None:
        if sleep is not None:
            sleep(seconds)
        elif cancel_event is not None:
            cancel_event.wait(seconds)
        else:
            time.sleep(seconds)

    last_error: Optional[BaseException] = None

    while controller.has_attempts_remaining():
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"{provider}: request cancelled, stopping retries")
            if last_error is not None:
                raise last_error
            raise RetryCancelledError(f"{provider} request cancelled")

        attempt = controller.next_attempt()
        try:
            return operation(attempt), attempt
        except Exception as e:
            last_error = e

            if not controller.should_retry(e):
                logger.error(f"{provider}: non-retryable error on attempt {attempt}: {e}")
                raise

            if not controller.has_attempts_remaining():
                logger.error(f"{provider}: final attempt ({attempt}) failed: {e}")
                raise

            delay = controller.delay_before_next_attempt(attempt)
            logger.warning(
                f"{provider}: attempt {attempt} failed, retrying in {delay:.0f}s: {e}"
            )

            if on_retry is not None:
                try:
                    on_retry(RetryEvent(attempt + 1, controller.max_attempts, provider))
                except Exception as callback_error:
                    logger.warning(f"Retry notification failed: {callback_error}")

            wait(delay)

    raise RetryExhaustedError(f"{provider}: no attempts were made")
