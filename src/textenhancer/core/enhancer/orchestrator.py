"""
Enhancement orchestration.

Runs one shortcut invocation end to end: resolve provider and model, check
preconditions, read the selection, optionally capture and compress the
screen, call the provider adapter and hand the result to the text replacer.
The provider call races a wall-clock timeout; the loser is cancelled through
a per-request cancel token.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from ...utils.logger import get_logger, preview
from ...utils.platform import check_accessibility_permissions
from ..llm.errors import ProviderError
from ..llm.model_cache import ModelCache
from ..llm.providers import ADAPTERS, EnhancementRequest, ProviderAdapter, ProviderId
from ..llm.response_parser import SCREENSHOT_SENTINEL, ResponseMode
from ..llm.retry import RetryCancelledError, RetryEvent
from ..llm.transport import Transport
from ..screen.compression import MAX_QUALITY, ImageCompressor
from ..settings.config import ENHANCER_MAX_WORKERS
from ..settings.settings import Settings, ShortcutConfig
from .alerts import (
    Alert,
    accessibility_alert,
    alert_for_error,
    missing_api_key_alert,
    no_text_selected_alert,
    screenshot_failed_alert,
    timeout_alert,
)
from .events import EventChannel, ProcessingFinished, ProcessingStarted, RetryAttempted

logger = get_logger(__name__)


class SelectionProvider(Protocol):
    def get_selected_text(self) -> Optional[str]: ...


class TextReplacer(Protocol):
    def replace(self, text: str) -> None: ...


class ScreenCapturerLike(Protocol):
    def capture_active_screen(self): ...


class OutcomeStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class EnhancementOutcome:
    status: OutcomeStatus
    text: Optional[str] = None
    error: Optional[BaseException] = None
    attempts: int = 0
    mode: Optional[ResponseMode] = None

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class CancelToken:
    """
    Per-request cancel flag shared between the caller and the worker.

    Once the worker commits to replacing text the token can no longer be
    cancelled, and once cancelled the worker can no longer commit.
    """

    def __init__(self):
        self.event = threading.Event()
        self._lock = threading.Lock()
        self._committed = False

    @property
    def cancelled(self) -> bool:
        return self.event.is_set()

    def cancel(self) -> bool:
        with self._lock:
            if self._committed:
                return False
            self.event.set()
            return True

    def commit(self) -> bool:
        with self._lock:
            if self.event.is_set():
                return False
            self._committed = True
            return True


class PreconditionFailed(Exception):
    def __init__(self, alert: Alert):
        super().__init__(alert.message)
        self.alert = alert


def build_adapters(
    settings: Settings,
    transport: Optional[Transport] = None,
    cache: Optional[ModelCache] = None,
    events: Optional[EventChannel] = None,
) -> Dict[ProviderId, ProviderAdapter]:
    """Construct one adapter per provider sharing transport, cache and retry reporting."""
    cache = cache or ModelCache()

    def on_retry(event: RetryEvent) -> None:
        if events is not None:
            events.emit(RetryAttempted(event.attempt, event.max_attempts, event.provider))

    adapters = {}
    for provider_id, adapter_cls in ADAPTERS.items():
        adapters[provider_id] = adapter_cls(
            # Resolved per call so edited keys take effect without a rebuild
            api_key=lambda p=provider_id: settings.api_key_for(p),
            transport=transport,
            cache=cache,
            on_retry=on_retry,
            max_tokens=settings.max_tokens,
            request_timeout=settings.request_timeout,
            api_base=settings.provider_settings(provider_id).api_base,
        )
    return adapters


class EnhancementOrchestrator:

    def __init__(
        self,
        settings: Settings,
        adapters: Dict[ProviderId, ProviderAdapter],
        selection_provider: SelectionProvider,
        text_replacer: TextReplacer,
        screen_capturer: Optional[ScreenCapturerLike] = None,
        alert_sink: Optional[Callable[[Alert], None]] = None,
        events: Optional[EventChannel] = None,
        compressor: Optional[ImageCompressor] = None,
        accessibility_checker: Callable[[], bool] = check_accessibility_permissions,
        timeout: Optional[float] = None,
        max_workers: int = ENHANCER_MAX_WORKERS,
    ):
        self.settings = settings
        self.adapters = adapters
        self.selection_provider = selection_provider
        self.text_replacer = text_replacer
        self.screen_capturer = screen_capturer
        self.alert_sink = alert_sink
        self.events = events or EventChannel()
        self.compressor = compressor or ImageCompressor()
        self.accessibility_checker = accessibility_checker
        self.timeout = timeout if timeout is not None else settings.processing_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="enhancer"
        )

    def process_shortcut(self, shortcut: ShortcutConfig) -> EnhancementOutcome:
        """Process one shortcut invocation, blocking until it finishes or times out."""
        logger.info(f"Processing shortcut '{shortcut.id}' ({shortcut.to_display_string()})")
        self.events.emit(ProcessingStarted(shortcut.id))

        token = CancelToken()
        outcome = EnhancementOutcome(OutcomeStatus.FAILED)
        try:
            future = self._executor.submit(self._run, shortcut, token)
            try:
                outcome = future.result(timeout=self.timeout)
            except FuturesTimeoutError:
                if token.cancel():
                    future.cancel()
                    logger.error(f"Shortcut '{shortcut.id}' timed out after {self.timeout}s")
                    self._alert(timeout_alert(self.timeout))
                    outcome = EnhancementOutcome(OutcomeStatus.TIMED_OUT)
                else:
                    logger.info(f"Shortcut '{shortcut.id}' is already replacing text, waiting")
                    outcome = future.result()
        except Exception as e:
            logger.exception(f"Unexpected error while processing '{shortcut.id}'")
            self._alert(alert_for_error(e))
            outcome = EnhancementOutcome(OutcomeStatus.FAILED, error=e)
        finally:
            self.events.emit(ProcessingFinished(shortcut.id, outcome.status.value))

        return outcome

    def process_shortcut_id(self, shortcut_id: str) -> Optional[EnhancementOutcome]:
        shortcut = self.settings.find_shortcut(shortcut_id)
        if shortcut is None:
            logger.warning(f"Unknown shortcut id: {shortcut_id}")
            return None
        return self.process_shortcut(shortcut)

    def close(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run(self, shortcut: ShortcutConfig, token: CancelToken) -> EnhancementOutcome:
        try:
            return self._enhance(shortcut, token)
        except PreconditionFailed as e:
            logger.warning(f"Precondition failed for '{shortcut.id}': {e}")
            alert, error = e.alert, e
        except (ProviderError, RetryCancelledError) as e:
            logger.error(f"Enhancement failed for '{shortcut.id}': {e}")
            alert, error = alert_for_error(e), e
        except Exception as e:
            logger.exception(f"Unexpected error in enhancement for '{shortcut.id}'")
            alert, error = alert_for_error(e), e

        if token.cancelled:
            logger.info(f"Discarding failure for '{shortcut.id}' reported after timeout")
        else:
            self._alert(alert)
        return EnhancementOutcome(OutcomeStatus.FAILED, error=error)

    def _enhance(self, shortcut: ShortcutConfig, token: CancelToken) -> EnhancementOutcome:
        if token.cancelled:
            logger.info(f"Skipping '{shortcut.id}', it timed out before starting")
            return EnhancementOutcome(OutcomeStatus.TIMED_OUT)

        provider = shortcut.provider
        adapter = self.adapters[provider]

        if not adapter.is_configured():
            raise PreconditionFailed(missing_api_key_alert(provider.display_name))

        model = self.settings.model_for(shortcut)
        text = self._read_selection(shortcut)

        screenshot = None
        if shortcut.include_screenshot:
            if token.cancelled:
                logger.info(f"Skipping screen capture for '{shortcut.id}' after timeout")
                return EnhancementOutcome(OutcomeStatus.TIMED_OUT)
            screenshot = self._capture_screenshot()

        request = EnhancementRequest(
            selected_text=text,
            instruction_prompt=shortcut.prompt,
            provider_id=provider,
            model_id=model,
            screenshot_context=screenshot,
        )
        if shortcut.include_screenshot and request.screenshot_context is None:
            if text == SCREENSHOT_SENTINEL:
                raise PreconditionFailed(screenshot_failed_alert())
            logger.warning("Screenshot unavailable, continuing with text only")

        mode = request.mode
        logger.info(f"Enhancing with {provider.display_name}/{model} in {mode.value} mode")

        response = adapter.enhance_request(request, cancel_event=token.event)

        if not token.commit():
            logger.warning(f"Discarding result for '{shortcut.id}' that arrived after timeout")
            return EnhancementOutcome(
                OutcomeStatus.TIMED_OUT, attempts=response.attempts, mode=mode
            )

        logger.info(f"Replacing selection with {preview(response.content)}")
        self.text_replacer.replace(response.content)
        return EnhancementOutcome(
            OutcomeStatus.SUCCEEDED,
            text=response.content,
            attempts=response.attempts,
            mode=mode,
        )

    def _read_selection(self, shortcut: ShortcutConfig) -> str:
        has_access = self.accessibility_checker()

        if not shortcut.include_screenshot:
            if not has_access:
                raise PreconditionFailed(accessibility_alert())
            text = self.selection_provider.get_selected_text()
            if not text or not text.strip():
                raise PreconditionFailed(no_text_selected_alert())
            return text

        text = self.selection_provider.get_selected_text() if has_access else None
        if text and text.strip():
            return text
        return SCREENSHOT_SENTINEL

    def _capture_screenshot(self) -> Optional[bytes]:
        if self.screen_capturer is None:
            logger.warning("No screen capturer configured")
            return None

        image = self.screen_capturer.capture_active_screen()
        if image is None:
            return None

        compression = self.settings.compression
        if compression.enabled:
            result = self.compressor.compress_for_request(
                image,
                compression.preset,
                compression.quality,
                compression.max_size_bytes,
            )
        else:
            result = self.compressor.compress(image, MAX_QUALITY)

        if result is None:
            logger.error("Screenshot compression failed")
            return None

        logger.info(
            f"Screenshot compressed to {result.encoded_byte_size} bytes "
            f"(quality {result.quality_used:.2f}, ratio {result.ratio:.2f})"
        )
        return result.encoded_bytes

    def _alert(self, alert: Alert) -> None:
        if self.alert_sink is None:
            logger.warning(f"Unhandled alert: {alert.title}: {alert.message}")
            return
        try:
            self.alert_sink(alert)
        except Exception as e:
            logger.warning(f"Alert delivery failed: {e}")
