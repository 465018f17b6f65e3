"""Application configuration loaded from environment variables."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Blog content service settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    secret_key: str = "change-me-in-production"
    debug: bool = False
    expose_docs: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    # CORS
    cors_origins: list[str] = Field(default_factory=list)

    # Content source (Prismic REST API v2)
    cms_api_url: str = "https://spacetraveling.cdn.prismic.io/api/v2"
    cms_access_token: str = ""
    cms_timeout_seconds: float = Field(default=10.0, gt=0)
    cms_max_retries: int = Field(default=2, ge=0, le=10)
    cms_retry_backoff_seconds: float = Field(default=0.5, ge=0)
    cms_preview_hosts: list[str] = Field(default_factory=list)

    # Content shape
    post_type: str = "post"
    posts_page_size: int = Field(default=2, ge=1, le=100)
    display_locale: str = "pt-br"

    # Preview mode
    preview_cookie_max_age_seconds: int = Field(default=3600, ge=60)

    def validate_runtime_security(self) -> None:
        """Validate security-critical production settings."""
        if self.debug:
            return

        violations: list[str] = []
        if self.secret_key == "change-me-in-production" or len(self.secret_key) < 32:
            violations.append(
                "SECRET_KEY must be overridden with a high-entropy value (>=32 chars)"
            )
        if urlparse(self.cms_api_url).scheme != "https":
            violations.append("CMS_API_URL must use https in production")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Insecure production configuration: {joined}")
