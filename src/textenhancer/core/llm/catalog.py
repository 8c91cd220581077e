"""
Model catalog helpers.

Vendor model listings carry little metadata, so litellm's bundled model cost
map is consulted to drop deprecated and non-chat entries.
"""

from datetime import date
from typing import Optional

import litellm

from ...utils.logger import get_logger

logger = get_logger(__name__)

CHAT_MODES = ("chat", "responses")


def get_model_info(model_id: str) -> dict:
    try:
        return litellm.model_cost.get(model_id, {}) or {}
    except Exception as e:
        logger.warning(f"Failed to read litellm model info for {model_id}: {e}")
        return {}


def is_deprecated(model_id: str, today: Optional[date] = None) -> bool:
    raw = get_model_info(model_id).get("deprecation_date")
    if not raw:
        return False

    try:
        deprecation = date.fromisoformat(str(raw)[:10])
    except ValueError:
        return False

    return deprecation <= (today or date.today())


def is_chat_model(model_id: str) -> bool:
    """Unknown models are assumed to be chat models."""
    mode = get_model_info(model_id).get("mode")
    return mode is None or mode in CHAT_MODES


def is_usable_chat_model(model_id: str, today: Optional[date] = None) -> bool:
    return is_chat_model(model_id) and not is_deprecated(model_id, today)


def supports_vision(model_id: str) -> bool:
    return bool(get_model_info(model_id).get("supports_vision", False))
