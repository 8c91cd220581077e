import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from platformdirs import user_log_path

LOGGER_ROOT = "textenhancer"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_dir() -> Path:
    log_dir = user_log_path(LOGGER_ROOT, appauthor=False)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


_logger_instance: Optional[logging.Logger] = None


def get_logger(name: str = LOGGER_ROOT) -> logging.Logger:
    global _logger_instance

    if name.startswith("src.textenhancer."):
        name = name.replace("src.", "", 1)

    if _logger_instance is None:
        from ..core.settings.config import LOG_TO_CONSOLE, get_log_level

        root_logger = logging.getLogger(LOGGER_ROOT)

        if root_logger.handlers:
            _logger_instance = root_logger
        else:
            level = get_log_level()
            root_logger.setLevel(level)

            formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

            file_handler = RotatingFileHandler(
                get_log_dir() / "app.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            if LOG_TO_CONSOLE:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(level)
                console_handler.setFormatter(formatter)
                root_logger.addHandler(console_handler)

            root_logger.propagate = False
            _logger_instance = root_logger

    if name == LOGGER_ROOT:
        return _logger_instance

    return logging.getLogger(name)


def preview(text: Optional[str], limit: int = 50) -> str:
    """Shorten user text for log lines."""
    if text is None:
        return "<none>"
    if len(text) <= limit:
        return repr(text)
    return repr(text[:limit] + "...")


def mask_secret(secret: Optional[str]) -> str:
    if not secret:
        return "<unset>"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"


def shutdown_logging() -> None:
    """Shutdown logging and close all file handlers to release file locks."""
    global _logger_instance
    root_logger = logging.getLogger(LOGGER_ROOT)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    _logger_instance = None
