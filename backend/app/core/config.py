# File: backend/app/core/config.py
# Version: v0.1.0
"""
Centralized application settings using Pydantic Settings.

Controls:
- App metadata and API prefix
- CORS origins
- Database URL (SQLAlchemy) and dev-only schema auto-heal
- Import limits (feature cap, preview size)
- Render-time reduction defaults (max features, density window, cache size)
"""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "AnnoTrack API"
    APP_VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"

    # --- CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated or '*' for all

    # --- DB ---
    DB_URL: str = "sqlite:///backend/app/data/annotrack.db"
    SCHEMA_AUTOHEAL: bool = True

    # --- Import ---
    MAX_FEATURES: int = 5000
    PREVIEW_FEATURES: int = 10

    # --- Render-time reduction ---
    RENDER_MAX_FEATURES: int = 1500
    DENSITY_WINDOW_SIZE: int = 1000
    OPTIMIZER_CACHE_SIZE: int = 50

    LOG_LEVEL: str = "info"

    # - extra="allow": unknown env vars won't crash
    # - env_file=None: do NOT auto-load any .env inside the container
    model_config = SettingsConfigDict(
        extra="allow",
        env_file=None,
        env_file_encoding="utf-8",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
