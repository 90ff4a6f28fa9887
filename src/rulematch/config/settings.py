"""
Application settings using Pydantic.

Provides environment-based configuration loading with RULEMATCH_ prefix.
Only the CLI reads settings; the matching functions take explicit arguments.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Logging
    log_level: str = "WARNING"
    log_format: Literal["json", "console"] = "json"

    # Query canonicalization strategy ("promql" or "text")
    query_language: Literal["promql", "text"] = "promql"

    # Fingerprint cache entries per CLI run (0 disables the cache)
    fingerprint_cache_size: int = 4096

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "RULEMATCH_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
