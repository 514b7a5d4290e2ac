"""FastAPI dependencies shared by the app factory and routes."""

from functools import lru_cache

from docrag.core.config import AppConfig, get_config


@lru_cache
def get_cached_config() -> AppConfig:
    """Get cached application config."""
    return get_config()
