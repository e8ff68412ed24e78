# cook4me/config/settings.py
"""
Application configuration using pydantic-settings (pydantic v2 style).

All environment-driven configuration lives here. Services read from the
module-level `settings` object instead of calling os.getenv inline.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment.

    Relevant environment variables:
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE_KEY
      - SUPABASE_STORAGE_BUCKET
      - OPENAI_API_KEY
      - OPENAI_MODEL
      - GENERATION_MAX_TOKENS
      - MAX_UPLOAD_BYTES
      - HEALTH_CHECK_TIMEOUT
      - FAIL_ON_DB_STARTUP
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    supabase_storage_bucket: str = "profile-pictures"

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    generation_max_tokens: int = Field(default=4000, gt=0)

    # Uploads
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # Startup / probes
    health_check_timeout: float = 5.0
    fail_on_db_startup: bool = False

    @field_validator("supabase_url", "supabase_service_role_key", "openai_api_key")
    @classmethod
    def maybe_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    def model_post_init(self, __context) -> None:
        """Log missing credentials early; never fail construction."""
        if not self.supabase_url or not self.supabase_service_role_key:
            logger.warning(
                "Supabase credentials are not configured. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY to enable storage and auth."
            )
        if not self.openai_api_key:
            logger.info(
                "OPENAI_API_KEY not set. Recipe generation will be unavailable."
            )


# single exporter
settings = Settings()
