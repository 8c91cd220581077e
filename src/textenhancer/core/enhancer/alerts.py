"""
User-facing alerts for terminal failures.

Every alert carries a list of remediation actions for the presenter to offer
as buttons. Copying the technical details and dismissing are always offered.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..llm.errors import ContextMismatchError, ProviderError
from ..llm.retry import RetryCancelledError


class AlertAction(Enum):
    OPEN_SETTINGS = "open_settings"
    OPEN_PRIVACY_SETTINGS = "open_privacy_settings"
    OPEN_SCREEN_RECORDING_SETTINGS = "open_screen_recording_settings"
    COPY_DETAILS = "copy_details"
    OK = "ok"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    AlertAction.OPEN_SETTINGS: "Open Settings",
    AlertAction.OPEN_PRIVACY_SETTINGS: "Open Privacy Settings",
    AlertAction.OPEN_SCREEN_RECORDING_SETTINGS: "Open Screen Recording Settings",
    AlertAction.COPY_DETAILS: "Copy Details",
    AlertAction.OK: "OK",
}


@dataclass(frozen=True)
class Alert:
    title: str
    message: str
    actions: List[AlertAction] = field(default_factory=list)
    details: str = ""


def _with_standard_actions(actions: List[AlertAction]) -> List[AlertAction]:
    result = list(actions)
    for action in (AlertAction.COPY_DETAILS, AlertAction.OK):
        if action not in result:
            result.append(action)
    return result


def make_alert(
    title: str,
    message: str,
    actions: Optional[List[AlertAction]] = None,
    details: str = "",
) -> Alert:
    return Alert(title, message, _with_standard_actions(actions or []), details or message)


def alert_for_error(error: BaseException) -> Alert:
    if isinstance(error, ProviderError):
        actions = [AlertAction.OPEN_SETTINGS] if error.needs_credential_action else []
        if isinstance(error, ContextMismatchError):
            title = "Screenshot Context Needed"
        else:
            title = "Enhancement Failed"
        return make_alert(title, error.user_message, actions, error.technical_details)

    if isinstance(error, RetryCancelledError):
        return make_alert("Enhancement Cancelled", "The request was cancelled.", details=str(error))

    return make_alert(
        "Enhancement Failed",
        "An unexpected error occurred while enhancing the text.",
        details=f"{type(error).__name__}: {error}",
    )


def accessibility_alert() -> Alert:
    return make_alert(
        "Accessibility Permission Required",
        "TextEnhancer needs accessibility access to read and replace selected text. "
        "Grant access in the system privacy settings and try again.",
        [AlertAction.OPEN_PRIVACY_SETTINGS],
    )


def missing_api_key_alert(provider: str) -> Alert:
    return make_alert(
        "API Key Required",
        f"No API key is configured for {provider}. Add one in Settings.",
        [AlertAction.OPEN_SETTINGS],
    )


def no_text_selected_alert() -> Alert:
    return make_alert(
        "No Text Selected",
        "Select some text before using this shortcut.",
    )


def screenshot_failed_alert() -> Alert:
    return make_alert(
        "Screenshot Failed",
        "The screen could not be captured. Check that screen recording access is granted.",
        [AlertAction.OPEN_SCREEN_RECORDING_SETTINGS],
    )


def timeout_alert(seconds: float) -> Alert:
    return make_alert(
        "Request Timed Out",
        f"The request did not finish within {seconds:.0f} seconds. "
        "Check your connection and try again.",
    )
