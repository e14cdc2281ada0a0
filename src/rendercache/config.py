"""Configuration module using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RENDERCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Directories
    cache_dir: Path = Path("data/cache")
    compile_dir: Path = Path("data/compiled")

    # Rendered output cache
    default_cache_duration: int = 0  # 0 = disabled, -1 = infinite, n = seconds
    cache_file_mode: int = 0o666

    # Compiled artifacts
    version_tag: str = "rc1.py"  # Bump when generated code becomes incompatible

    # Logging
    log_level: str = "INFO"

    @field_validator("default_cache_duration")
    @classmethod
    def _check_duration(cls, value: int) -> int:
        if value < -1:
            raise ValueError("default_cache_duration must be -1, 0 or a positive number of seconds")
        return value

    @field_validator("version_tag")
    @classmethod
    def _check_version_tag(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("version_tag must be a non-empty file name suffix")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience function for quick access
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for a host embedding the library.

    Args:
        level: Log level name, defaults to ``settings.log_level``
    """
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=LOG_FORMAT,
    )
