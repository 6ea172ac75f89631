"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    port: int = 8787
    upload_dir: Path = Path("uploads")
    data_path: Path = Path("~/.macrocam/storage.json")
    store_key: str = "@macrocam_meals_v1"
    day_timezone: str = "UTC"
    server_base_url: str = "https://macrocam-server.onrender.com"
    estimate_timeout_seconds: float = 60
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
