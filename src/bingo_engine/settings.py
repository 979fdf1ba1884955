"""Engine-wide configuration loaded from the environment."""

from __future__ import annotations

from functools import cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Centralized settings for the bingo progress engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BINGO_",
        extra="ignore",
    )

    rng_seed: int | None = None
    default_species_namespace: str = "cobblemon"
    default_item_namespace: str = "minecraft"
    min_challenges: int = Field(default=25, ge=1)
    preserve_runtime_toggles: bool = True


@cache
def get_settings() -> EngineSettings:
    """Return the cached settings instance."""

    return EngineSettings()


__all__ = ["EngineSettings", "get_settings"]
