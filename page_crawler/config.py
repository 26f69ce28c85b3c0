"""
Settings for the page crawler.

Values come from PAGE_CRAWLER_* environment variables; a .env file in the
working directory is loaded first when present.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .exceptions import ConfigError

ENV_PREFIX = "PAGE_CRAWLER_"

STORE_BACKENDS = ("redis", "file", "memory")

HTML_PARSERS = ("html5lib", "lxml", "html.parser")


class Settings(BaseModel):
    """Runtime settings."""

    # --- Cache store ---
    store_backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 5.0
    cache_dir: str = "page_cache"
    cache_ttl_minutes: int = 1440
    # False keeps the "page:<path>" key, so http and https share an entry
    cache_key_with_scheme: bool = False

    # --- Fetching ---
    fetch_timeout: float = 10.0
    fetch_retries: int = 0
    user_agent: str = "page-crawler/0.1"
    html_parser: str = "html5lib"

    # --- Extraction ---
    max_articles: int = 100
    block_word_threshold: int = 16

    # --- Logging ---
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("store_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in STORE_BACKENDS:
            raise ValueError(f"store_backend must be one of {', '.join(STORE_BACKENDS)}")
        return value

    @field_validator("html_parser")
    @classmethod
    def _known_parser(cls, value: str) -> str:
        if value not in HTML_PARSERS:
            raise ValueError(f"html_parser must be one of {', '.join(HTML_PARSERS)}")
        return value

    @field_validator("cache_ttl_minutes", "max_articles")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("fetch_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def _read_env() -> dict:
    """Collect PAGE_CRAWLER_* variables matching Settings fields."""
    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            values[name] = raw
    return values


def load_settings(env_file: Optional[str] = None, **overrides) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env path (default: .env in the working directory)
        **overrides: Values that take precedence over the environment

    Raises:
        ConfigError: if a value is invalid
    """
    load_dotenv(env_file)
    values = _read_env()
    values.update(overrides)
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}", details={"errors": e.errors()})


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
