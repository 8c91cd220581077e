"""Tests for the requests-backed transport."""

from unittest.mock import MagicMock

import pytest
import requests

from textenhancer.core.llm.errors import TransportError, TransportErrorKind
from textenhancer.core.llm.transport import (
    HttpRequest,
    RequestsTransport,
    classify_request_exception,
)


class TestClassifyRequestException:
    @pytest.mark.parametrize(
        "error,kind",
        [
            (requests.exceptions.ConnectTimeout("slow"), TransportErrorKind.TIMEOUT),
            (requests.exceptions.ReadTimeout("slow"), TransportErrorKind.TIMEOUT),
            (requests.exceptions.InvalidURL("bad"), TransportErrorKind.INVALID_URL),
            (requests.exceptions.MissingSchema("bad"), TransportErrorKind.INVALID_URL),
            (
                requests.exceptions.ConnectionError(
                    "NameResolutionError: Failed to resolve 'api.anthropic.com'"
                ),
                TransportErrorKind.DNS_FAILURE,
            ),
            (
                requests.exceptions.ConnectionError("[Errno 101] Network is unreachable"),
                TransportErrorKind.NOT_CONNECTED,
            ),
            (
                requests.exceptions.ConnectionError(
                    "('Connection aborted.', RemoteDisconnected('closed'))"
                ),
                TransportErrorKind.CONNECTION_LOST,
            ),
            (requests.exceptions.ChunkedEncodingError("cut"), TransportErrorKind.CONNECTION_LOST),
            (
                requests.exceptions.ConnectionError("[Errno 111] Connection refused"),
                TransportErrorKind.CANNOT_CONNECT,
            ),
            (requests.exceptions.TooManyRedirects("loop"), TransportErrorKind.OTHER),
        ],
    )
    def test_classification(self, error, kind):
        assert classify_request_exception(error) == kind


class TestRequestsTransport:
    def test_send_returns_status_and_body(self):
        session = MagicMock()
        session.request.return_value = MagicMock(status_code=201, content=b'{"ok": true}')
        transport = RequestsTransport(session)

        response = transport.send(
            HttpRequest(
                method="POST",
                url="https://api.example.com/v1/messages",
                headers={"x": "y"},
                body=b"{}",
                timeout=12,
            )
        )

        assert response.status_code == 201
        assert response.body == b'{"ok": true}'
        session.request.assert_called_once_with(
            "POST",
            "https://api.example.com/v1/messages",
            headers={"x": "y"},
            data=b"{}",
            timeout=12,
        )

    def test_request_exception_becomes_transport_error(self):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ReadTimeout("slow")
        transport = RequestsTransport(session)

        with pytest.raises(TransportError) as exc_info:
            transport.send(HttpRequest(method="GET", url="https://api.example.com/v1/models"))

        assert exc_info.value.kind == TransportErrorKind.TIMEOUT

    def test_close(self):
        session = MagicMock()
        RequestsTransport(session).close()
        session.close.assert_called_once()
