"""
Runtime configuration helpers for the messaging gateway.

Loads DATABASE_URL and the websocket tuning knobs from the environment and
from the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required field — must come from .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="Tutoring Chat Gateway", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Realtime messaging
    ws_path: str = Field(default="/ws", alias="WS_PATH")
    ws_heartbeat_interval: float = Field(default=30.0, gt=0, alias="WS_HEARTBEAT_INTERVAL")
    ws_close_superseded: bool = Field(default=False, alias="WS_CLOSE_SUPERSEDED")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
