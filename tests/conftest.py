"""
Pytest configuration and shared fixtures.

Provides Qt cleanup between tests, a scripted HTTP transport, a controllable
clock and helpers for building vendor response bodies.
"""

import json
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest
from PySide6.QtWidgets import QApplication

from textenhancer.core.llm.model_cache import ModelCache
from textenhancer.core.llm.transport import HttpResponse


@pytest.fixture(autouse=True)
def cleanup_qt_objects(qtbot, request):
    """
    Process pending Qt events after each test so objects are destroyed
    before the next test starts.
    """
    yield

    app = QApplication.instance()
    if app:
        app.processEvents()


class FakeTransport:
    """Replays queued responses (or raises queued exceptions) and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def send(self, request):
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request to {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].body)


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def json_response(payload, status: int = 200) -> HttpResponse:
    return HttpResponse(status_code=status, body=json.dumps(payload).encode("utf-8"))


def claude_reply(text: str, status: int = 200) -> HttpResponse:
    return json_response(
        {
            "content": [{"type": "text", "text": text}],
            "usage": {"input_tokens": 12, "output_tokens": 7},
        },
        status,
    )


def openai_reply(text: str, status: int = 200) -> HttpResponse:
    return json_response(
        {
            "choices": [{"message": {"role": "assistant", "content": text}}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 7},
        },
        status,
    )


def enhanced_json(text: str) -> str:
    return json.dumps({"enhancedText": text})


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def model_cache(tmp_path, fake_clock):
    return ModelCache(cache_dir=tmp_path / "model_cache", clock=fake_clock)


class SleepRecorder:
    """Stands in for time.sleep and records the requested delays."""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def replies():
    """Factories for vendor response bodies."""

    class Replies:
        json = staticmethod(json_response)
        claude = staticmethod(claude_reply)
        openai = staticmethod(openai_reply)
        enhanced = staticmethod(enhanced_json)

    return Replies
