"""
Settings management with JSON persistence.

Handles loading, saving, and validating user settings: shortcuts, provider
credentials and screenshot compression. Uses platformdirs for cross-platform
directory resolution.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from platformdirs import user_config_path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...utils.logger import get_logger
from ..llm.providers import ProviderId
from ..screen.compression import MAX_QUALITY, MIN_QUALITY, CompressionPreset

logger = get_logger(__name__)

APP_NAME = "textenhancer"

_KEY_ALIASES = {
    "ctrl": "<ctrl>",
    "control": "<ctrl>",
    "alt": "<alt>",
    "option": "<alt>",
    "shift": "<shift>",
    "cmd": "<cmd>",
    "command": "<cmd>",
    "super": "<cmd>",
}


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, ensure_exists=True)


def get_settings_file() -> Path:
    return get_config_dir() / "settings.json"


class ProviderSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    api_key: str = ""
    model: str = ""
    enabled: bool = True
    api_base: Optional[str] = None


class ShortcutConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    id: str
    name: str = ""
    modifiers: List[str] = Field(default_factory=lambda: ["ctrl", "alt"])
    key: str
    prompt: str
    provider: ProviderId = ProviderId.CLAUDE
    model: str = ""
    include_screenshot: bool = False

    @field_validator("modifiers")
    @classmethod
    def modifiers_not_empty(cls, v):
        if not v or not all(isinstance(m, str) and m.strip() for m in v):
            raise ValueError("modifiers must be a non-empty list of non-empty strings")
        return v

    @field_validator("key", "id")
    @classmethod
    def not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    def to_display_string(self) -> str:
        parts = [mod.capitalize() for mod in self.modifiers]
        parts.append(self.key.capitalize())
        return " + ".join(parts)

    def to_hotkey_string(self) -> str:
        """Combination in pynput GlobalHotKeys syntax, e.g. <ctrl>+<alt>+1."""
        parts = [_KEY_ALIASES.get(mod.lower(), f"<{mod.lower()}>") for mod in self.modifiers]
        key = self.key.lower()
        parts.append(key if len(key) == 1 else f"<{key}>")
        return "+".join(parts)


class CompressionSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    preset: CompressionPreset = CompressionPreset.BALANCED
    enabled: bool = True
    custom_quality: Optional[float] = Field(default=None, ge=MIN_QUALITY, le=MAX_QUALITY)
    max_size_bytes: Optional[int] = Field(default=None, gt=0)

    @property
    def quality(self) -> float:
        if self.custom_quality is not None:
            return self.custom_quality
        return self.preset.quality


def get_default_shortcuts() -> List[ShortcutConfig]:
    return [
        ShortcutConfig(
            id="improve-text",
            name="Improve Text",
            modifiers=["ctrl", "alt"],
            key="1",
            prompt=(
                "Improve the writing of the following text. Fix grammar, spelling "
                "and clarity while keeping the original meaning and tone."
            ),
            provider=ProviderId.CLAUDE,
        ),
        ShortcutConfig(
            id="describe-screen",
            name="Describe Screen",
            modifiers=["ctrl", "alt"],
            key="6",
            prompt="Describe what is shown on this screen and summarise the key information.",
            provider=ProviderId.CLAUDE,
            include_screenshot=True,
        ),
    ]


def _default_providers() -> Dict[ProviderId, ProviderSettings]:
    return {provider: ProviderSettings() for provider in ProviderId}


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    shortcuts: List[ShortcutConfig] = Field(default_factory=get_default_shortcuts)
    providers: Dict[ProviderId, ProviderSettings] = Field(default_factory=_default_providers)

    max_tokens: int = Field(default=1000, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    processing_timeout: float = Field(default=45.0, gt=0)

    show_status_icon: bool = True
    enable_notifications: bool = True

    compression: CompressionSettings = Field(default_factory=CompressionSettings)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        config_file = path or get_settings_file()

        if not config_file.exists():
            return cls()

        try:
            with open(config_file, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load settings: {e}. Using defaults.")
            return cls()

        if not isinstance(data, dict):
            logger.warning("Settings file is not a JSON object, using defaults")
            return cls()

        return cls._validate_with_fallback(data)

    @classmethod
    def _validate_with_fallback(cls, data: dict) -> "Settings":
        """Validate each field on its own, resetting invalid ones to defaults."""
        defaults = cls()
        result_data = {}

        for field_name in cls.model_fields:
            if field_name not in data:
                result_data[field_name] = getattr(defaults, field_name)
                continue
            try:
                partial = cls.model_validate({field_name: data[field_name]})
                result_data[field_name] = getattr(partial, field_name)
            except Exception:
                default_val = getattr(defaults, field_name)
                logger.warning(f"Invalid {field_name} in settings, resetting to default")
                result_data[field_name] = default_val

        settings = cls.model_construct(**result_data)
        for provider in ProviderId:
            settings.providers.setdefault(provider, ProviderSettings())
        return settings

    def save(self, path: Optional[Path] = None) -> None:
        config_file = path or get_settings_file()
        data = self.model_dump(mode="json")

        with open(config_file, "w") as f:
            json.dump(data, f, indent=2)

    def provider_settings(self, provider: ProviderId) -> ProviderSettings:
        return self.providers.get(provider) or ProviderSettings()

    def api_key_for(self, provider: ProviderId) -> Optional[str]:
        settings = self.provider_settings(provider)
        if not settings.enabled:
            return None
        key = settings.api_key.strip() or os.environ.get(provider.env_var, "").strip()
        return key or None

    def model_for(self, shortcut: ShortcutConfig) -> str:
        if shortcut.model:
            return shortcut.model
        return self.provider_settings(shortcut.provider).model or shortcut.provider.default_model

    def find_shortcut(self, shortcut_id: str) -> Optional[ShortcutConfig]:
        for shortcut in self.shortcuts:
            if shortcut.id == shortcut_id:
                return shortcut
        return None


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.load()
    return _settings_instance
