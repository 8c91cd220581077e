"""
Developer-facing tunables that are not exposed in settings.json.

Log options can be overridden per run with TEXTENHANCER_LOG_LEVEL and
TEXTENHANCER_LOG_CONSOLE.
"""

import logging
import os

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = os.environ.get("TEXTENHANCER_LOG_LEVEL", "DEBUG")
LOG_TO_CONSOLE = os.environ.get("TEXTENHANCER_LOG_CONSOLE", "1") not in ("0", "false", "no")
# =============================================================================

# =============================================================================
# PIPELINE
# =============================================================================
MODEL_CACHE_TTL_HOURS = 24  # fetched model lists stay valid this long
ENHANCER_MAX_WORKERS = 4  # concurrent shortcut invocations
COPY_SETTLE_SECONDS = 0.15  # wait for the focused app to fill the clipboard
PASTE_SETTLE_SECONDS = 0.05
# =============================================================================


def get_log_level() -> int:
    return getattr(logging, LOG_LEVEL.upper(), logging.INFO)
