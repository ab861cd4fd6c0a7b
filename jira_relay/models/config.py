"""Configuration models for the Jira relay gateway."""

import tempfile
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Jira Cloud
    jira_base_url: str = Field(
        default="https://your-domain.atlassian.net",
        validation_alias="JIRA_DOMAIN",
    )
    http_timeout: float = Field(default=30.0, validation_alias="HTTP_TIMEOUT")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, validation_alias="PROXY_USER_AGENT")

    # Uploads
    max_upload_size: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_UPLOAD_SIZE")
    upload_dir: Path = Field(
        default=Path(tempfile.gettempdir()) / "jira_relay_uploads",
        validation_alias="UPLOAD_DIR",
    )

    # Application Configuration
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ORIGINS")

    @field_validator("jira_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

