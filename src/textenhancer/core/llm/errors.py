"""
Shared error taxonomy for LLM providers.

Every vendor-specific failure is mapped onto one of the ProviderError
subclasses below so the retry policy and the alert layer can treat both
vendors uniformly.
"""

from enum import Enum
from typing import Optional


class TransportErrorKind(Enum):
    TIMEOUT = "timeout"
    DNS_FAILURE = "dns_failure"
    CANNOT_CONNECT = "cannot_connect"
    CONNECTION_LOST = "connection_lost"
    NOT_CONNECTED = "not_connected"
    INVALID_URL = "invalid_url"
    OTHER = "other"


RETRYABLE_TRANSPORT_KINDS = frozenset(
    {
        TransportErrorKind.TIMEOUT,
        TransportErrorKind.DNS_FAILURE,
        TransportErrorKind.CANNOT_CONNECT,
        TransportErrorKind.CONNECTION_LOST,
        TransportErrorKind.NOT_CONNECTED,
    }
)


class TransportError(Exception):
    """Raised by a transport when no HTTP response was received."""

    def __init__(self, kind: TransportErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


class ExtractionFailure(Enum):
    NO_JSON_FOUND = "no_json_found"
    INVALID_JSON = "invalid_json"
    MISSING_FIELD = "missing_field"


class ContextMismatchReason(Enum):
    SCREENSHOT_EXPECTED = "screenshot_expected"
    MODEL_IGNORED_FORMAT = "model_ignored_format"


class ProviderError(Exception):
    is_retryable: bool = False
    needs_credential_action: bool = False

    def __init__(self, message: str = "", provider: str = "LLM"):
        super().__init__(message or self.__class__.__name__)
        self.provider = provider

    @property
    def user_message(self) -> str:
        return str(self)

    @property
    def technical_details(self) -> str:
        return f"{self.__class__.__name__}({self})"


class MissingCredentialError(ProviderError):
    needs_credential_action = True

    def __init__(self, provider: str = "LLM"):
        super().__init__(f"{provider} API key is missing", provider)

    @property
    def user_message(self) -> str:
        return (
            f"{self.provider} API key missing or invalid.\n\n"
            f"Fix: Open Settings and enter your {self.provider} API key."
        )


class InvalidEndpointError(ProviderError):
    def __init__(self, url: str, provider: str = "LLM"):
        super().__init__(f"Invalid API URL: {url}", provider)
        self.url = url

    @property
    def user_message(self) -> str:
        return f"Invalid {self.provider} API URL configuration."


class MalformedResponseError(ProviderError):
    is_retryable = True

    @property
    def user_message(self) -> str:
        return f"Invalid response from the {self.provider} API."


class RemoteError(ProviderError):
    def __init__(self, status_code: int, raw_body: bytes = b"", provider: str = "LLM"):
        super().__init__(f"{provider} API error (HTTP {status_code})", provider)
        self.status_code = status_code
        self.raw_body = raw_body

    @property
    def body_text(self) -> str:
        return self.raw_body.decode("utf-8", errors="replace")

    @property
    def is_retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429

    @property
    def needs_credential_action(self) -> bool:
        return self.status_code == 401

    @property
    def user_message(self) -> str:
        if self.status_code == 401:
            return (
                f"{self.provider} API key invalid.\n\n"
                "Your API key appears to be incorrect or expired. "
                "Update it in Settings."
            )
        if self.status_code == 429:
            return (
                "Rate limit exceeded.\n\n"
                f"Too many requests to the {self.provider} API. "
                "Wait a moment and try again."
            )
        if self.status_code >= 500:
            return (
                f"{self.provider} API temporarily unavailable.\n\n"
                f"Server error (HTTP {self.status_code}). "
                "This usually resolves quickly."
            )
        body = self.body_text
        if body:
            return f"{self.provider} API error ({self.status_code}): {body}"
        return f"{self.provider} API error ({self.status_code})"

    @property
    def technical_details(self) -> str:
        return f"RemoteError({self.status_code}, {self.body_text or 'No data'})"


class EmptyContentError(ProviderError):
    def __init__(self, provider: str = "LLM"):
        super().__init__(f"No response content received from {provider}", provider)


class PayloadExtractionError(ProviderError):
    def __init__(
        self,
        reason: ExtractionFailure,
        cause: Optional[BaseException] = None,
        provider: str = "LLM",
    ):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Payload extraction failed ({reason.value}){detail}", provider)
        self.reason = reason
        self.cause = cause

    @property
    def user_message(self) -> str:
        return f"Invalid response format from {self.provider}: {self}"


class ContextMismatchError(ProviderError):
    def __init__(
        self,
        reason: ContextMismatchReason,
        message: str,
        suggestion: str,
        cause: Optional[PayloadExtractionError] = None,
        provider: str = "LLM",
    ):
        super().__init__(message, provider)
        self.reason = reason
        self.message = message
        self.suggestion = suggestion
        self.cause = cause

    @property
    def user_message(self) -> str:
        return f"{self.message}\n\n{self.suggestion}"

    @property
    def technical_details(self) -> str:
        return f"ContextMismatchError({self.reason.value}, cause={self.cause!r})"


class TransportFailureError(ProviderError):
    def __init__(
        self,
        kind: TransportErrorKind,
        cause: Optional[BaseException] = None,
        provider: str = "LLM",
    ):
        super().__init__(f"Network error talking to {provider}: {kind.value}", provider)
        self.kind = kind
        self.cause = cause

    @property
    def is_retryable(self) -> bool:
        return self.kind in RETRYABLE_TRANSPORT_KINDS

    @property
    def user_message(self) -> str:
        if self.kind == TransportErrorKind.TIMEOUT:
            return f"The request to {self.provider} timed out."
        if self.kind in (TransportErrorKind.NOT_CONNECTED, TransportErrorKind.DNS_FAILURE):
            return "No internet connection. Check your network and try again."
        return f"Could not reach the {self.provider} API ({self.kind.value})."

    @property
    def technical_details(self) -> str:
        return f"TransportFailureError({self.kind.value}, {self.cause!r})"
