"""Application settings for the Lexi legal assistant (FastAPI + Firestore + Gemini)."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GEMINI_MODELS = ["gemini-2.5-flash", "gemini-1.5-flash", "gemini-pro"]


class Settings(BaseSettings):
    """Application settings loaded from ``LEXI_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEXI_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Core application settings
    app_env: Literal["development", "staging", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # CORS - use string to avoid JSON parsing issues
    cors_origins_str: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        validation_alias=AliasChoices("lexi_cors_origins", "cors_origins"),
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from string."""
        if not self.cors_origins_str.strip():
            return ["http://localhost:3000", "https://localhost:3000"]
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Google Gemini
    google_api_key: str | None = None
    gemini_models: list[str] = Field(default_factory=lambda: list(DEFAULT_GEMINI_MODELS))
    provider_health_timeout: float = 5.0

    # Firebase / Firestore
    firestore_project: str | None = None
    firestore_database: str = "(default)"
    firebase_admin_sdk_json: str | None = None
    firebase_admin_sdk_path: str | None = None
    conversations_collection: str = "conversations"

    # AI response cache
    redis_url: str | None = None
    cache_enabled: bool = False
    ai_cache_ttl: int = 3600

    @field_validator("gemini_models")
    @classmethod
    def gemini_models_not_empty(cls, v: list[str]) -> list[str]:
        """The fallback list needs at least one model."""
        models = [m.strip() for m in v if m and m.strip()]
        if not models:
            raise ValueError("At least one Gemini model must be configured")
        return models

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
