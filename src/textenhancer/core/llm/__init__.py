"""LLM provider adapters, retry policy, response parsing and model caching."""

from .errors import (
    ContextMismatchError,
    EmptyContentError,
    InvalidEndpointError,
    MalformedResponseError,
    MissingCredentialError,
    PayloadExtractionError,
    ProviderError,
    RemoteError,
    TransportError,
    TransportErrorKind,
    TransportFailureError,
)
from .model_cache import CachedModelList, ModelCache
from .providers import (
    ADAPTERS,
    ClaudeAdapter,
    EnhancementRequest,
    EnhancementResponse,
    OpenAIAdapter,
    ProviderAdapter,
    ProviderId,
)
from .response_parser import SCREENSHOT_SENTINEL, ResponseMode, classify, extract_payload
from .retry import MAX_ATTEMPTS, RetryController, RetryEvent, run_with_retry
from .transport import HttpRequest, HttpResponse, RequestsTransport, Transport

__all__ = [
    "ContextMismatchError",
    "EmptyContentError",
    "InvalidEndpointError",
    "MalformedResponseError",
    "MissingCredentialError",
    "PayloadExtractionError",
    "ProviderError",
    "RemoteError",
    "TransportError",
    "TransportErrorKind",
    "TransportFailureError",
    "CachedModelList",
    "ModelCache",
    "ADAPTERS",
    "ClaudeAdapter",
    "EnhancementRequest",
    "EnhancementResponse",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderId",
    "SCREENSHOT_SENTINEL",
    "ResponseMode",
    "classify",
    "extract_payload",
    "MAX_ATTEMPTS",
    "RetryController",
    "RetryEvent",
    "run_with_retry",
    "HttpRequest",
    "HttpResponse",
    "RequestsTransport",
    "Transport",
]
