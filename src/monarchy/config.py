"""Settings for the Monarchy rules service.

Every field can be set from the environment with a ``MONARCHY_`` prefix,
e.g. ``MONARCHY_DATA_DIR=/var/lib/monarchy``, or from a local ``.env``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MONARCHY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: Path = Field(default=Path("games"), description="Directory of game snapshots")
    rules_version: str = Field(default="1.0", description="Version reported for the ruleset")
    rng_seed: str | None = Field(
        default=None,
        description="Round seed; actions then draw from a source keyed by game, turn and action",
    )
    host: str = Field(default="127.0.0.1", description="Interface the server binds")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(
        default_factory=list, description="Browser origins allowed to call the API"
    )
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
