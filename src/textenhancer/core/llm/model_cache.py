"""
Disk cache for provider model lists.

Each provider gets its own JSON file holding {"models": [...], "cachedAt": ...}.
Entries expire after 24 hours. An unreadable or undecodable file is treated as
a cache miss so callers simply re-fetch.
"""

import json
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generic, List, Optional, Sequence, Type, TypeVar

from platformdirs import user_cache_path
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...utils.logger import get_logger
from ..settings.config import MODEL_CACHE_TTL_HOURS

logger = get_logger(__name__)

APP_NAME = "textenhancer"
CACHE_TTL = timedelta(hours=MODEL_CACHE_TTL_HOURS)

T = TypeVar("T", bound=BaseModel)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_cache_dir() -> Path:
    return user_cache_path(APP_NAME, appauthor=False) / "model_cache"


class CachedModelList(BaseModel, Generic[T]):
    model_config = ConfigDict(populate_by_name=True)

    models: List[T]
    cached_at: datetime = Field(alias="cachedAt")

    def age(self, now: datetime) -> timedelta:
        return now - self.cached_at

    def is_expired(self, now: datetime, ttl: timedelta = CACHE_TTL) -> bool:
        return self.age(now) > ttl


class ModelCache:

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        ttl: timedelta = CACHE_TTL,
        clock: Clock = _utcnow,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else get_cache_dir()
        self.ttl = ttl
        self._clock = clock

    def cache_file(self, provider_id: str) -> Path:
        return self.cache_dir / f"{provider_id}_models.json"

    def get(self, provider_id: str, model_type: Type[T]) -> Optional[List[T]]:
        cached = self._load(provider_id, model_type)
        if cached is None:
            logger.debug(f"No cached {provider_id} models found")
            return None

        if cached.is_expired(self._clock(), self.ttl):
            logger.debug(f"Cached {provider_id} models are expired")
            return None

        logger.info(f"Loaded {len(cached.models)} cached {provider_id} models")
        return list(cached.models)

    def put(self, provider_id: str, models: Sequence[BaseModel]) -> None:
        cached_at = self._clock()
        data = {
            "models": [m.model_dump(mode="json") for m in models],
            "cachedAt": cached_at.isoformat(),
        }

        target = self.cache_file(provider_id)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            # Readers only ever see a complete file.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{provider_id}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            logger.info(f"Cached {len(models)} {provider_id} models to {target}")
        except OSError as e:
            logger.error(f"Failed to save cached models to {target}: {e}")

    def clear(self, provider_id: Optional[str] = None) -> None:
        if provider_id is None:
            files = list(self.cache_dir.glob("*_models.json")) if self.cache_dir.exists() else []
        else:
            files = [self.cache_file(provider_id)]

        for cache_file in files:
            try:
                cache_file.unlink(missing_ok=True)
                logger.info(f"Cleared model cache {cache_file.name}")
            except OSError as e:
                logger.error(f"Failed to clear cache {cache_file}: {e}")

    def age_of(self, provider_id: str) -> Optional[timedelta]:
        cache_file = self.cache_file(provider_id)
        if not cache_file.exists():
            return None

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            cached_at = datetime.fromisoformat(data["cachedAt"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Could not read cache age for {provider_id}: {e}")
            return None

        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        return self._clock() - cached_at

    def _load(self, provider_id: str, model_type: Type[T]) -> Optional[CachedModelList[T]]:
        cache_file = self.cache_file(provider_id)
        if not cache_file.exists():
            return None

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                raw = f.read()
            cached = CachedModelList[model_type].model_validate_json(raw)
        except (OSError, ValidationError, ValueError) as e:
            logger.warning(f"Failed to load cached models from {cache_file}: {e}")
            return None

        if cached.cached_at.tzinfo is None:
            cached.cached_at = cached.cached_at.replace(tzinfo=timezone.utc)
        return cached
