"""Webhook logger configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the webhook logger."""

    webhooks_dir: Path = Path("webhooks")
    logs_dir: Path = Path("logs")

    # Shared secret for the github channel. Empty = accept unauthenticated.
    github_secret: str = Field(
        default="",
        validation_alias=AliasChoices("GITHUB_SECRET", "WEBHOOK_LOGGER_GITHUB_SECRET"),
    )
    # raw: HMAC over received bytes; reserialized: HMAC over compact JSON re-encoding
    signature_payload: Literal["raw", "reserialized"] = "raw"

    # Seconds to wait for the next body chunk (0 disables)
    body_idle_timeout: float = 30.0

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "WEBHOOK_LOGGER_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def verification_enabled(self) -> bool:
        return bool(self.github_secret)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
