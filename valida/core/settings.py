"""Application settings using Pydantic Settings for typed configuration.

This module centralizes all configuration and provides type-safe access to settings.
Settings are loaded from environment variables with sensible defaults. Upstream
API keys are optional here and checked at call time, so a missing secret only
breaks the gateway that needs it.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env_name: str = Field(default="development", alias="ENV_NAME")

    # Database (Supabase Postgres)
    database_url: str = Field(alias="DATABASE_URL")

    # Admin panel
    session_secret_key: str = Field(alias="SESSION_SECRET_KEY")
    admin_username: str = Field(alias="ADMIN_USERNAME")
    admin_password: str = Field(alias="ADMIN_PASSWORD")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000", alias="CORS_ORIGINS"
    )
    cors_origin_regex: str | None = Field(
        default=r"https://.*\.vercel\.app", alias="CORS_ORIGIN_REGEX"
    )

    # Supabase (auth, storage)
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_jwt_secret: str | None = Field(default=None, alias="SUPABASE_JWT_SECRET")
    supabase_jwt_audience: str = Field(
        default="authenticated", alias="SUPABASE_JWT_AUDIENCE"
    )
    storage_bucket: str = Field(default="product-images", alias="STORAGE_BUCKET")

    # Copy generation (Google Gemini)
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com", alias="GEMINI_BASE_URL"
    )
    gemini_models: str = Field(
        default=(
            "models/gemini-1.5-flash-latest,"
            "models/gemini-1.5-pro-latest,"
            "v1/models/gemini-1.5-flash-latest,"
            "v1/models/gemini-1.5-pro-latest,"
            "v1beta/models/gemini-1.5-flash-latest,"
            "v1beta/models/gemini-1.5-pro-latest,"
            "v1/models/gemini-1.5-flash,"
            "v1/models/gemini-1.5-pro,"
            "v1beta/models/gemini-1.5-flash,"
            "v1beta/models/gemini-1.5-pro"
        ),
        alias="GEMINI_MODELS",
    )
    gemini_discover_models: bool = Field(default=True, alias="GEMINI_DISCOVER_MODELS")

    # Background removal (remove.bg)
    remove_bg_api_key: str | None = Field(default=None, alias="REMOVE_BG_API_KEY")
    remove_bg_url: str = Field(
        default="https://api.remove.bg/v1.0/removebg", alias="REMOVE_BG_URL"
    )

    # Studio photography (OpenAI)
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_vision_model: str = Field(default="gpt-4o", alias="OPENAI_VISION_MODEL")
    openai_image_model: str = Field(default="dall-e-3", alias="OPENAI_IMAGE_MODEL")

    # External workflow engine (n8n)
    n8n_image_webhook_url: str | None = Field(
        default=None, alias="N8N_IMAGE_WEBHOOK_URL"
    )
    n8n_timeout_seconds: float = Field(default=300.0, alias="N8N_TIMEOUT_SECONDS", gt=0)
    n8n_callback_secret: str | None = Field(default=None, alias="N8N_CALLBACK_SECRET")

    # Purchase webhook (Hotmart)
    hotmart_secret: str | None = Field(default=None, alias="HOTMART_SECRET")

    # Email (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    email_from: str = Field(
        default="Valida AI <onboarding@resend.dev>", alias="EMAIL_FROM"
    )
    site_url: str = Field(default="http://localhost:5173", alias="SITE_URL")

    # Generations left in "processando" longer than this are marked "erro".
    # Unset means they are never expired.
    processing_timeout_minutes: int | None = Field(
        default=None, alias="PROCESSING_TIMEOUT_MINUTES", ge=1
    )

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        origins = []
        for o in self.cors_origins.split(","):
            trimmed = o.strip()
            if trimmed:
                origins.append(trimmed)
        return origins

    @computed_field
    @property
    def gemini_models_list(self) -> list[str]:
        """Parse GEMINI_MODELS into an ordered list of candidate models."""
        return [m.strip() for m in self.gemini_models.split(",") if m.strip()]

    @computed_field
    @property
    def login_url(self) -> str:
        """Public login page linked from the welcome email."""
        return f"{self.site_url.rstrip('/')}/login"

    @property
    def processing_timeout(self) -> timedelta | None:
        """Get the stale-generation cutoff as timedelta, if configured."""
        if self.processing_timeout_minutes is None:
            return None
        return timedelta(minutes=self.processing_timeout_minutes)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
