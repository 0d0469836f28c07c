"""
Configuration management for the Slack AI relay.
Uses Pydantic settings for type-safe environment variable handling.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Slack Configuration
    slack_bot_token: str = Field(default="", description="Bot token (xoxb-...)")
    slack_signing_secret: Optional[str] = Field(default=None)

    # AI pipeline API
    ai_api_url: str = Field(default="")
    ai_api_key: Optional[str] = Field(default=None)
    ai_request_timeout: float = Field(default=60.0)

    # Environment / logging
    environment: str = Field(default="development")
    verbose_logging: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    # Slack interaction tuning
    interactive_timeout_seconds: float = Field(default=2.0)
    slash_command: str = Field(default="/ask-ai")
    unfurl_domain: Optional[str] = Field(default=None)

    # Summarization
    summary_max_chars: int = Field(default=10000)
    context_before_limit: int = Field(default=3)
    context_after_limit: int = Field(default=2)
    recent_history_limit: int = Field(default=10)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def verbose(self) -> bool:
        """Verbose diagnostics are never enabled in production."""
        return not self.is_production and self.verbose_logging


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
