"""Tests for the provider error taxonomy and the alerts built from it."""

import pytest

from textenhancer.core.enhancer.alerts import (
    AlertAction,
    accessibility_alert,
    alert_for_error,
    missing_api_key_alert,
    no_text_selected_alert,
    screenshot_failed_alert,
    timeout_alert,
)
from textenhancer.core.llm.errors import (
    ContextMismatchError,
    ContextMismatchReason,
    EmptyContentError,
    MissingCredentialError,
    RemoteError,
    TransportErrorKind,
    TransportFailureError,
)
from textenhancer.core.llm.retry import RetryCancelledError


class TestRemoteError:
    @pytest.mark.parametrize("status", [500, 502, 503, 529, 429])
    def test_retryable_statuses(self, status):
        assert RemoteError(status).is_retryable

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_non_retryable_statuses(self, status):
        assert not RemoteError(status).is_retryable

    def test_unauthorized_needs_credentials(self):
        assert RemoteError(401).needs_credential_action
        assert not RemoteError(403).needs_credential_action

    def test_messages(self):
        assert "API key invalid" in RemoteError(401, provider="Claude").user_message
        assert "Rate limit" in RemoteError(429).user_message
        assert "temporarily unavailable" in RemoteError(503).user_message
        assert "bad model" in RemoteError(400, b"bad model").user_message

    def test_technical_details_include_body(self):
        assert RemoteError(418, b"teapot").technical_details == "RemoteError(418, teapot)"
        assert RemoteError(418).technical_details == "RemoteError(418, No data)"


class TestTransportFailureError:
    def test_messages(self):
        assert "timed out" in TransportFailureError(TransportErrorKind.TIMEOUT, provider="Claude").user_message
        assert "No internet" in TransportFailureError(TransportErrorKind.NOT_CONNECTED).user_message


class TestAlertForError:
    def test_credential_error_offers_settings(self):
        alert = alert_for_error(MissingCredentialError("Claude"))

        assert AlertAction.OPEN_SETTINGS in alert.actions
        assert alert.actions[-2:] == [AlertAction.COPY_DETAILS, AlertAction.OK]
        assert "Claude" in alert.message

    def test_unauthorized_offers_settings(self):
        alert = alert_for_error(RemoteError(401, provider="OpenAI"))
        assert AlertAction.OPEN_SETTINGS in alert.actions

    def test_server_error_has_only_standard_actions(self):
        alert = alert_for_error(RemoteError(500, b"boom"))

        assert alert.actions == [AlertAction.COPY_DETAILS, AlertAction.OK]
        assert alert.details == "RemoteError(500, boom)"

    def test_context_mismatch_includes_suggestion(self):
        error = ContextMismatchError(
            ContextMismatchReason.SCREENSHOT_EXPECTED,
            "Screenshot analysis requested but no screenshot provided.",
            "Use the screenshot shortcut.",
        )
        alert = alert_for_error(error)

        assert alert.title == "Screenshot Context Needed"
        assert "Use the screenshot shortcut." in alert.message

    def test_cancelled(self):
        alert = alert_for_error(RetryCancelledError("Claude request cancelled"))
        assert alert.title == "Enhancement Cancelled"

    def test_unexpected_error(self):
        alert = alert_for_error(KeyError("boom"))
        assert "KeyError" in alert.details
        assert alert.actions == [AlertAction.COPY_DETAILS, AlertAction.OK]

    def test_empty_content(self):
        alert = alert_for_error(EmptyContentError("Claude"))
        assert "No response content" in alert.message


class TestPreconditionAlerts:
    def test_accessibility(self):
        assert AlertAction.OPEN_PRIVACY_SETTINGS in accessibility_alert().actions

    def test_missing_key(self):
        alert = missing_api_key_alert("OpenAI")
        assert AlertAction.OPEN_SETTINGS in alert.actions
        assert "OpenAI" in alert.message

    def test_screenshot_failed(self):
        assert AlertAction.OPEN_SCREEN_RECORDING_SETTINGS in screenshot_failed_alert().actions

    @pytest.mark.parametrize(
        "alert",
        [no_text_selected_alert(), timeout_alert(45), accessibility_alert()],
    )
    def test_standard_actions_always_present(self, alert):
        assert AlertAction.COPY_DETAILS in alert.actions
        assert AlertAction.OK in alert.actions
        assert alert.details

    def test_timeout_mentions_duration(self):
        assert "45 seconds" in timeout_alert(45).message
