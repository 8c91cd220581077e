"""
HTTP transport used by provider adapters.

Adapters only depend on the Transport protocol; RequestsTransport is the
default implementation backed by a pooled requests.Session.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import requests

from ...utils.logger import get_logger
from .errors import TransportError, TransportErrorKind

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: bytes


class Transport(Protocol):
    def send(self, request: HttpRequest) -> HttpResponse: ...


_DNS_MARKERS = (
    "NameResolutionError",
    "Name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "Temporary failure in name resolution",
)
_OFFLINE_MARKERS = ("Network is unreachable", "No route to host")
_INVALID_URL_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
)


def classify_request_exception(error: requests.RequestException) -> TransportErrorKind:
    if isinstance(error, _INVALID_URL_ERRORS):
        return TransportErrorKind.INVALID_URL
    if isinstance(error, requests.exceptions.Timeout):
        return TransportErrorKind.TIMEOUT
    if isinstance(error, requests.exceptions.ChunkedEncodingError):
        return TransportErrorKind.CONNECTION_LOST
    if isinstance(error, requests.exceptions.ConnectionError):
        message = str(error)
        if any(marker in message for marker in _DNS_MARKERS):
            return TransportErrorKind.DNS_FAILURE
        if any(marker in message for marker in _OFFLINE_MARKERS):
            return TransportErrorKind.NOT_CONNECTED
        if "RemoteDisconnected" in message or "Connection aborted" in message:
            return TransportErrorKind.CONNECTION_LOST
        return TransportErrorKind.CANNOT_CONNECT
    return TransportErrorKind.OTHER


class RequestsTransport:

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()

    def send(self, request: HttpRequest) -> HttpResponse:
        logger.debug(
            f"{request.method} {request.url} "
            f"({len(request.body) if request.body else 0} bytes)"
        )
        try:
            response = self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=request.timeout,
            )
        except requests.RequestException as e:
            kind = classify_request_exception(e)
            logger.warning(f"Transport failure ({kind.value}) for {request.url}: {e}")
            raise TransportError(kind, str(e)) from e

        return HttpResponse(status_code=response.status_code, body=response.content)

    def close(self) -> None:
        self._session.close()
