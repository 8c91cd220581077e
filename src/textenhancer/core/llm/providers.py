"""
Provider adapters for the supported LLM vendors.

Each adapter builds vendor-specific requests (text-only or multimodal),
decodes the vendor envelope, maps failures onto the shared ProviderError
taxonomy and lists the vendor's chat models through the model cache.
Adapters are selected through the ADAPTERS lookup table.
"""

import base64
import json
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...utils.logger import get_logger, preview
from .catalog import is_usable_chat_model, supports_vision
from .errors import (
    EmptyContentError,
    InvalidEndpointError,
    MalformedResponseError,
    MissingCredentialError,
    PayloadExtractionError,
    RemoteError,
    TransportError,
    TransportErrorKind,
    TransportFailureError,
)
from .model_cache import ModelCache
from .response_parser import (
    JSON_INSTRUCTIONS,
    SCREENSHOT_SENTINEL,
    ResponseMode,
    classify,
    explain_extraction_failure,
    parse_payload,
)
from .retry import RetryController, RetryEvent, run_with_retry
from .transport import DEFAULT_TIMEOUT, HttpRequest, HttpResponse, RequestsTransport, Transport

logger = get_logger(__name__)

DEFAULT_MAX_TOKENS = 1000
OPENAI_TEMPERATURE = 0.7
ANTHROPIC_VERSION = "2023-06-01"
JPEG_MEDIA_TYPE = "image/jpeg"

ApiKeySource = Union[str, Callable[[], Optional[str]], None]


class ProviderId(str, Enum):
    CLAUDE = "claude"
    OPENAI = "openai"

    @property
    def display_name(self) -> str:
        return PROVIDERS[self][0]

    @property
    def env_var(self) -> str:
        return PROVIDERS[self][1]

    @property
    def default_model(self) -> str:
        return PROVIDERS[self][2]


# provider -> (display name, API key environment variable, default model)
PROVIDERS: Dict[ProviderId, tuple] = {
    ProviderId.CLAUDE: ("Claude", "ANTHROPIC_API_KEY", "claude-sonnet-4-20250514"),
    ProviderId.OPENAI: ("OpenAI", "OPENAI_API_KEY", "gpt-4o"),
}


class EnhancementRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_text: str
    instruction_prompt: str
    provider_id: ProviderId
    model_id: str
    screenshot_context: Optional[bytes] = None

    @field_validator("screenshot_context", mode="before")
    @classmethod
    def empty_screenshot_is_absent(cls, v):
        return v or None

    @property
    def mode(self) -> ResponseMode:
        return classify(self.selected_text, self.screenshot_context)


@dataclass
class EnhancementResponse:
    content: str
    attempts: int = 1
    usage: Optional[dict] = None


def build_prompt_text(text: str, prompt: str, mode: ResponseMode) -> str:
    if text == SCREENSHOT_SENTINEL or not text:
        prompt_text = prompt
    else:
        prompt_text = f"{prompt}\n\nText to enhance:\n{text}"

    if mode == ResponseMode.TEXT_ONLY:
        prompt_text += JSON_INSTRUCTIONS
    return prompt_text


def _encode_image(screenshot_context: bytes) -> str:
    return base64.b64encode(screenshot_context).decode("ascii")


class ProviderAdapter(ABC):
    """
    Uniform interface implemented once per vendor.

    Subclasses supply the endpoint URLs, request/response encoding and the
    model list filtering; retries, error mapping and caching live here.
    """

    provider_id: ProviderId
    default_base: str
    model_type: Type[BaseModel]

    def __init__(
        self,
        api_key: ApiKeySource = None,
        transport: Optional[Transport] = None,
        cache: Optional[ModelCache] = None,
        on_retry: Optional[Callable[[RetryEvent], None]] = None,
        sleep: Optional[Callable[[float], None]] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        request_timeout: float = DEFAULT_TIMEOUT,
        api_base: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._api_key = api_key
        self.transport = transport or RequestsTransport()
        self.cache = cache or ModelCache()
        self.on_retry = on_retry
        self._sleep = sleep
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self.api_base = (api_base or self.default_base).rstrip("/")
        self._clock = clock

    @property
    def display_name(self) -> str:
        return self.provider_id.display_name

    @property
    def api_key(self) -> Optional[str]:
        key = self._api_key() if callable(self._api_key) else self._api_key
        return key or None

    def is_configured(self) -> bool:
        return self.api_key is not None

    def enhance(
        self,
        text: str,
        prompt: str,
        model: str,
        screenshot_context: Optional[bytes] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EnhancementResponse:
        screenshot_context = screenshot_context or None
        mode = classify(text, screenshot_context)
        logger.info(
            f"{self.display_name}: enhancing {len(text)} chars with {model} "
            f"(mode={mode.value})"
        )
        if screenshot_context and not supports_vision(model):
            logger.warning(f"{model} is not known to support images, sending anyway")

        (content, usage), attempts = run_with_retry(
            lambda attempt: self._perform(text, prompt, model, screenshot_context, mode),
            provider=self.display_name,
            controller=RetryController(),
            on_retry=self.on_retry,
            sleep=self._sleep,
            cancel_event=cancel_event,
        )
        return EnhancementResponse(content=content, attempts=attempts, usage=usage)

    def enhance_request(
        self, request: EnhancementRequest, cancel_event: Optional[threading.Event] = None
    ) -> EnhancementResponse:
        return self.enhance(
            request.selected_text,
            request.instruction_prompt,
            request.model_id,
            request.screenshot_context,
            cancel_event=cancel_event,
        )

    def _perform(
        self,
        text: str,
        prompt: str,
        model: str,
        screenshot_context: Optional[bytes],
        mode: ResponseMode,
    ) -> Tuple[str, Optional[dict]]:
        api_key = self.api_key
        if not api_key:
            logger.error(f"{self.display_name}: API key missing or empty")
            raise MissingCredentialError(self.display_name)

        prompt_text = build_prompt_text(text, prompt, mode)
        request = self.build_request(prompt_text, api_key, model, screenshot_context)
        response = self._send(request)

        if response.status_code != 200:
            logger.error(
                f"{self.display_name}: API error (status: {response.status_code}) "
                f"{preview(response.body.decode('utf-8', errors='replace'), 200)}"
            )
            raise RemoteError(response.status_code, response.body, self.display_name)

        content, usage = self.parse_content(response.body)

        if mode in (ResponseMode.SCREENSHOT_ONLY, ResponseMode.MIXED):
            logger.info(f"{self.display_name}: returning free-form {mode.value} response")
            return content, usage

        try:
            payload = parse_payload(content)
        except PayloadExtractionError as e:
            logger.error(f"{self.display_name}: JSON extraction failed: {e}")
            error = explain_extraction_failure(
                e, text, prompt, screenshot_context, content, self.display_name
            )
            if error is e:
                raise
            raise error from e

        logger.info(f"{self.display_name}: enhancement completed successfully")
        return payload.enhanced_text, usage

    def _endpoint(self, path: str) -> str:
        url = f"{self.api_base}{path}"
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidEndpointError(url, self.display_name)
        return url

    def _send(self, request: HttpRequest) -> HttpResponse:
        try:
            return self.transport.send(request)
        except TransportError as e:
            if e.kind == TransportErrorKind.INVALID_URL:
                raise InvalidEndpointError(request.url, self.display_name) from e
            raise TransportFailureError(e.kind, e, self.display_name) from e

    def _decode(self, body: bytes, envelope: Type[BaseModel]) -> BaseModel:
        try:
            return envelope.model_validate_json(body)
        except (ValidationError, ValueError) as e:
            logger.error(f"{self.display_name}: could not decode response: {e}")
            raise MalformedResponseError(
                f"Undecodable {self.display_name} response: {e}", self.display_name
            ) from e

    def fetch_available_models(self) -> List[BaseModel]:
        cached = self.cache.get(self.provider_id.value, self.model_type)
        if cached is not None:
            logger.info(f"{self.display_name}: using cached models ({len(cached)} models)")
            return cached

        logger.info(f"{self.display_name}: cache miss or expired, fetching from API")

        api_key = self.api_key
        if not api_key:
            raise MissingCredentialError(self.display_name)

        response = self._send(self.models_request(api_key))
        if response.status_code != 200:
            logger.error(f"{self.display_name}: models API error (status: {response.status_code})")
            raise RemoteError(response.status_code, response.body, self.display_name)

        listing = self._decode(response.body, self.models_envelope())
        filtered = self.filter_models(listing.data)
        logger.info(
            f"{self.display_name}: fetched {len(listing.data)} models, "
            f"filtered to {len(filtered)}"
        )

        self.cache.put(self.provider_id.value, filtered)
        return filtered

    def _json_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @abstractmethod
    def build_request(
        self,
        prompt_text: str,
        api_key: str,
        model: str,
        screenshot_context: Optional[bytes],
    ) -> HttpRequest:
        pass

    @abstractmethod
    def parse_content(self, body: bytes) -> Tuple[str, Optional[dict]]:
        pass

    @abstractmethod
    def models_request(self, api_key: str) -> HttpRequest:
        pass

    @abstractmethod
    def models_envelope(self) -> Type[BaseModel]:
        pass

    @abstractmethod
    def filter_models(self, models: List[BaseModel]) -> List[BaseModel]:
        pass


# =============================================================================
# Claude
# =============================================================================


class ClaudeContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    text: Optional[str] = None


class ClaudeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: List[ClaudeContentBlock]
    usage: Optional[dict] = None


class ClaudeModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: str = ""
    type: str = "model"
    created_at: str = ""


class ClaudeModelsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: List[ClaudeModel]


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ClaudeAdapter(ProviderAdapter):
    provider_id = ProviderId.CLAUDE
    default_base = "https://api.anthropic.com/v1"
    model_type = ClaudeModel

    max_model_age = timedelta(days=365)

    def _claude_headers(self, api_key: str) -> Dict[str, str]:
        headers = self._json_headers()
        headers["x-api-key"] = api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def build_request(self, prompt_text, api_key, model, screenshot_context):
        if screenshot_context:
            content = [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": JPEG_MEDIA_TYPE,
                        "data": _encode_image(screenshot_context),
                    },
                },
                {"type": "text", "text": prompt_text},
            ]
        else:
            content = prompt_text

        body = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        return HttpRequest(
            method="POST",
            url=self._endpoint("/messages"),
            headers=self._claude_headers(api_key),
            body=json.dumps(body).encode("utf-8"),
            timeout=self.request_timeout,
        )

    def parse_content(self, body):
        envelope = self._decode(body, ClaudeResponse)
        for block in envelope.content:
            if block.type == "text" and block.text:
                return block.text, envelope.usage
        logger.error(f"{self.display_name}: no content in response")
        raise EmptyContentError(self.display_name)

    def models_request(self, api_key):
        return HttpRequest(
            method="GET",
            url=self._endpoint("/models"),
            headers=self._claude_headers(api_key),
            timeout=self.request_timeout,
        )

    def models_envelope(self):
        return ClaudeModelsResponse

    def filter_models(self, models):
        cutoff = self._clock() - self.max_model_age
        today = self._clock().date()
        kept = []
        for model in models:
            created = _parse_timestamp(model.created_at)
            # Unparseable dates are kept.
            if created is not None and created < cutoff:
                continue
            if not is_usable_chat_model(model.id, today):
                continue
            kept.append(model)
        return kept


# =============================================================================
# OpenAI
# =============================================================================


class OpenAIMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str = "assistant"
    content: Optional[str] = None


class OpenAIChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: OpenAIMessage
    finish_reason: Optional[str] = None


class OpenAIResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: List[OpenAIChoice]
    usage: Optional[dict] = None


_OPENAI_DISPLAY_NAMES = {
    "gpt-4o": "GPT-4o",
    "gpt-4o-mini": "GPT-4o Mini",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-4": "GPT-4",
    "o1-preview": "o1 Preview",
    "o1-mini": "o1 Mini",
}


class OpenAIModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "model"
    created: int = 0
    owned_by: str = ""

    @property
    def display_name(self) -> str:
        if self.id in _OPENAI_DISPLAY_NAMES:
            return _OPENAI_DISPLAY_NAMES[self.id]
        return self.id.replace("-", " ").replace("_", " ").title()


class OpenAIModelsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: List[OpenAIModel] = Field(default_factory=list)


OPENAI_EXCLUDE_PATTERNS = (
    "whisper",
    "tts",
    "dall-e",
    "gpt-image",
    "embedding",
    "moderation",
    "realtime",
    "audio",
    "transcribe",
    "babbage",
    "curie",
    "davinci",
    "code-search",
    "code-edit",
    "similarity",
    "gpt-3.5",
    "gpt-3-",
    "gpt-2",
    "gpt-1",
)

_MODERN_GPT = re.compile(r"^(gpt-([4-9]|\d{2,})|chatgpt)")
_REASONING = re.compile(r"^o\d")
_ADA = re.compile(r"(^|[-_])ada($|[-_])")


def openai_model_priority(model_id: str) -> int:
    """Lower number sorts first."""
    lower = model_id.lower()

    if re.match(r"^gpt-([5-9]|\d{2,})", lower):
        return 1
    if lower.startswith("gpt-4o"):
        return 10
    if _REASONING.match(lower):
        return 15
    if lower.startswith("gpt-4"):
        if "turbo" in lower:
            return 20
        if "vision" in lower:
            return 22
        return 25
    if lower.startswith("gpt-"):
        return 60
    if "chat" in lower:
        return 70
    if "instruct" in lower:
        return 75
    if "vision" in lower:
        return 80
    return 99


def is_relevant_openai_model(model_id: str) -> bool:
    lower = model_id.lower()

    if any(pattern in lower for pattern in OPENAI_EXCLUDE_PATTERNS) or _ADA.search(lower):
        return False

    return bool(
        _MODERN_GPT.match(lower)
        or _REASONING.match(lower)
        or "vision" in lower
        or "chat" in lower
        or "instruct" in lower
        or "completion" in lower
    )


class OpenAIAdapter(ProviderAdapter):
    provider_id = ProviderId.OPENAI
    default_base = "https://api.openai.com/v1"
    model_type = OpenAIModel

    def _openai_headers(self, api_key: str) -> Dict[str, str]:
        headers = self._json_headers()
        headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def build_request(self, prompt_text, api_key, model, screenshot_context):
        if screenshot_context:
            content = [
                {
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{JPEG_MEDIA_TYPE};base64,{_encode_image(screenshot_context)}"
                    },
                },
                {"type": "text", "text": prompt_text},
            ]
        else:
            content = prompt_text

        body = {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "max_tokens": self.max_tokens,
            "temperature": OPENAI_TEMPERATURE,
        }
        return HttpRequest(
            method="POST",
            url=self._endpoint("/chat/completions"),
            headers=self._openai_headers(api_key),
            body=json.dumps(body).encode("utf-8"),
            timeout=self.request_timeout,
        )

    def parse_content(self, body):
        envelope = self._decode(body, OpenAIResponse)
        if not envelope.choices or not envelope.choices[0].message.content:
            logger.error(f"{self.display_name}: no content in response")
            raise EmptyContentError(self.display_name)
        return envelope.choices[0].message.content, envelope.usage

    def models_request(self, api_key):
        return HttpRequest(
            method="GET",
            url=self._endpoint("/models"),
            headers=self._openai_headers(api_key),
            timeout=self.request_timeout,
        )

    def models_envelope(self):
        return OpenAIModelsResponse

    def filter_models(self, models):
        today = self._clock().date()
        kept = [
            m
            for m in models
            if is_relevant_openai_model(m.id) and is_usable_chat_model(m.id, today)
        ]
        return sorted(kept, key=lambda m: (openai_model_priority(m.id), m.id))


ADAPTERS: Dict[ProviderId, Type[ProviderAdapter]] = {
    ProviderId.CLAUDE: ClaudeAdapter,
    ProviderId.OPENAI: OpenAIAdapter,
}
