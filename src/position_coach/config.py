"""Centralized configuration.

Settings are read from environment variables prefixed with POSITION_COACH_
(or a .env.coach file). Every field has a default, so the package works
with no configuration at all.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "Settings",
    "get_settings",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POSITION_COACH_", env_file=".env.coach", env_file_encoding="utf-8",
    )

    # Report scoring: a sample losing at least this much is a severe leak
    cp_threshold: float = Field(default=150, gt=0)

    # CLI
    log_level: str = "WARNING"
    json_indent: int = 2


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
