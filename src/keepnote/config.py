"""
Application configuration using pydantic-settings.

Environment variables use the ``KEEPNOTE_`` prefix and ``__`` for nesting:
``KEEPNOTE_STORE__PATH``, ``KEEPNOTE_SEARCH__DEBOUNCE_MS``,
``KEEPNOTE_LOG__LEVEL``. Consumers call ``get_settings()``; tests build
``Settings(...)`` directly.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseModel):
    """Where the local note store keeps its JSON file."""

    path: Path = Path.home() / ".keepnote" / "notes.json"


class SearchConfig(BaseModel):
    debounce_ms: int = Field(default=300, ge=0)


class LogConfig(BaseModel):
    level: str = "INFO"
    json_format: bool = True


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KEEPNOTE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    store: StoreConfig = StoreConfig()
    search: SearchConfig = SearchConfig()
    log: LogConfig = LogConfig()
    default_user: str = "local"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns a cached Settings instance.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return Settings()
