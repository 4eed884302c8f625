"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from tryon_studio.adapters.google_vision_client import DEFAULT_VISION_URL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    google_vision_api_key: str
    vision_api_url: str = DEFAULT_VISION_URL
    storage_bucket: str = "tryon-images"
    poll_interval_seconds: float = 3.0
    poll_max_attempts: int | None = 200
    observe_timeout_seconds: float | None = 600.0
    require_front_facing: bool = True
    front_camera_index: int = 0
    back_camera_index: int = 1
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
