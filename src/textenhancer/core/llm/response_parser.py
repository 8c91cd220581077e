"""
Response mode classification and tolerant payload extraction.

Text-only requests ask the model for a single JSON object
{"enhancedText": "..."}; models often wrap it in prose or code fences, so the
first balanced JSON object anywhere in the output is used. Screenshot
requests are free-form and bypass extraction.
"""

import json
import re
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import (
    ContextMismatchError,
    ContextMismatchReason,
    ExtractionFailure,
    PayloadExtractionError,
)

SCREENSHOT_SENTINEL = "[Screenshot analysis requested]"

JSON_INSTRUCTIONS = """

CRITICAL: You must respond with ONLY a valid JSON object. No explanations, no markdown, no code blocks, no additional text.

Required JSON format:
{"enhancedText": "your enhanced text here"}

Do not include any text before or after the JSON object."""

_SCREENSHOT_VOCABULARY = re.compile(
    r"\b(screenshots?|screens?|images?|pictures?|visual(ly)?|display(ed)?|windows?|interface|ui)\b"
    r"|what you see",
    re.IGNORECASE,
)

_JSON_HINTS = ("{", "}", '"key":', '"value":', "enhancedText")


class ResponseMode(Enum):
    TEXT_ONLY = "text_only"
    SCREENSHOT_ONLY = "screenshot_only"
    MIXED = "mixed"


class EnhancementPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    enhanced_text: str = Field(alias="enhancedText")
    model: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("enhanced_text", mode="before")
    @classmethod
    def must_be_string(cls, v):
        if not isinstance(v, str):
            raise ValueError("enhancedText must be a string")
        return v


def classify(selected_text: str, screenshot_context: Optional[bytes]) -> ResponseMode:
    has_screenshot = bool(screenshot_context)
    is_sentinel = selected_text == SCREENSHOT_SENTINEL
    has_text = bool(selected_text) and not is_sentinel

    if has_screenshot and has_text:
        return ResponseMode.MIXED
    if has_screenshot or is_sentinel:
        return ResponseMode.SCREENSHOT_ONLY
    return ResponseMode.TEXT_ONLY


def find_json_object(text: str) -> Optional[str]:
    """Return the first brace-balanced object substring, ignoring braces in strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]

            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]

        start = text.find("{", start + 1)

    return None


def parse_payload(raw_output: str) -> EnhancementPayload:
    candidate = find_json_object(raw_output)
    if candidate is None:
        raise PayloadExtractionError(ExtractionFailure.NO_JSON_FOUND)

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise PayloadExtractionError(ExtractionFailure.INVALID_JSON, e) from e

    if not isinstance(data, dict) or "enhancedText" not in data:
        raise PayloadExtractionError(ExtractionFailure.MISSING_FIELD)

    try:
        payload = EnhancementPayload.model_validate(data)
    except ValidationError as e:
        raise PayloadExtractionError(ExtractionFailure.MISSING_FIELD, e) from e

    if not payload.enhanced_text:
        raise PayloadExtractionError(ExtractionFailure.MISSING_FIELD)

    return payload


def extract_payload(raw_output: str) -> str:
    return parse_payload(raw_output).enhanced_text


def is_screenshot_related(text: str) -> bool:
    return bool(_SCREENSHOT_VOCABULARY.search(text or ""))


def contains_json_hints(content: str) -> bool:
    return any(hint in content for hint in _JSON_HINTS)


def explain_extraction_failure(
    error: PayloadExtractionError,
    text: str,
    prompt: str,
    screenshot_context: Optional[bytes],
    raw_output: str,
    provider: str = "LLM",
) -> Union[PayloadExtractionError, ContextMismatchError]:
    """
    Turn an extraction failure into a context-aware error when the request
    looks like it needed a screenshot, or the model ignored the JSON format.
    """
    has_screenshot = bool(screenshot_context)

    if not has_screenshot and (is_screenshot_related(text) or is_screenshot_related(prompt)):
        return ContextMismatchError(
            ContextMismatchReason.SCREENSHOT_EXPECTED,
            "Screenshot analysis requested but no screenshot provided.\n\n"
            "It looks like you're trying to analyze the screen, "
            "but this shortcut does not capture one.",
            "Try a shortcut with screenshot capture enabled for visual analysis, "
            "or a text-only shortcut with selected text.",
            cause=error,
            provider=provider,
        )

    if not has_screenshot and contains_json_hints(raw_output):
        return ContextMismatchError(
            ContextMismatchReason.MODEL_IGNORED_FORMAT,
            f"Invalid response format from {provider}.\n\n"
            "Expected a structured JSON response but the model did not follow it.",
            "Try again, or pick a different model for this shortcut in Settings.",
            cause=error,
            provider=provider,
        )

    error.provider = provider
    return error
