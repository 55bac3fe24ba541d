"""Onboarding configuration loaded from environment variables.

Settings for the candidate backend REST contract, HTTP behaviour, and
attachment limits. Uses pydantic-settings for validation and .env file support.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Onboarding settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Candidate backend
    api_base_url: str = "http://localhost:3000/api/v2"
    # Provider-specific creation call used to provision a missing candidate
    provision_path: str = "/onboarding/init"
    source_app: str = "candidate"

    # HTTP
    http_timeout_seconds: float = 10.0

    # Attachments
    max_attachment_size_mb: int = 10

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def max_attachment_size_bytes(self) -> int:
        """Attachment size limit in bytes (MiB based)."""
        return self.max_attachment_size_mb * 1024 * 1024

    @model_validator(mode="after")
    def check_settings(self) -> "Settings":
        """Validate numeric limits and production transport security.

        Checks:
        - HTTP timeout must be positive (all environments)
        - Attachment size limit must be positive (all environments)
        - Backend URL must use https in production
        """
        if self.http_timeout_seconds <= 0:
            msg = (
                "HTTP_TIMEOUT_SECONDS must be positive. "
                f"Got: {self.http_timeout_seconds}"
            )
            raise ValueError(msg)

        if self.max_attachment_size_mb <= 0:
            msg = (
                "MAX_ATTACHMENT_SIZE_MB must be positive. "
                f"Got: {self.max_attachment_size_mb}"
            )
            raise ValueError(msg)

        if self.environment == "production" and not self.api_base_url.startswith(
            "https://"
        ):
            msg = (
                "API_BASE_URL must use https in production. "
                "Bearer tokens are sent on every request."
            )
            raise ValueError(msg)

        return self


settings = Settings()
