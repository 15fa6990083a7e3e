"""
Settings for the content pipeline.

Values come from environment variables (a local .env file is loaded first
via python-dotenv). get_settings() is cached so every caller in one process
sees the same object.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from abmind.storage import ContentCache, default_data_dir

DEV_CACHE_TTL = 300.0


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_ttl(environment: str) -> Optional[float]:
    raw = os.getenv("ABMIND_CACHE_TTL")
    if raw is not None and raw.strip():
        if raw.strip().lower() == "none":
            return None
        return float(raw)
    # production builds keep the cache for the whole process
    return None if environment == "production" else DEV_CACHE_TTL


class Settings(BaseModel):
    environment: str = "dev"
    data_dir: Path = default_data_dir()

    # True: one broken file aborts the load. False: log it and skip it.
    strict_loading: bool = True

    cache_ttl_seconds: Optional[float] = DEV_CACHE_TTL
    search_threshold: float = 0.4
    link_timeout: float = 10.0
    log_level: str = "INFO"

    def make_cache(self) -> ContentCache:
        return ContentCache(ttl_seconds=self.cache_ttl_seconds)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load .env (if present) and build the Settings object once per process.
    """
    load_dotenv()
    environment = os.getenv("ABMIND_ENV", "dev").strip().lower()
    data_dir = os.getenv("ABMIND_DATA_DIR")
    return Settings(
        environment=environment,
        data_dir=Path(data_dir) if data_dir else default_data_dir(),
        strict_loading=_env_bool("ABMIND_STRICT_LOADING", True),
        cache_ttl_seconds=_env_ttl(environment),
        search_threshold=float(os.getenv("ABMIND_SEARCH_THRESHOLD", "0.4")),
        link_timeout=float(os.getenv("ABMIND_LINK_TIMEOUT", "10")),
        log_level=os.getenv("ABMIND_LOG_LEVEL", "INFO").upper(),
    )
