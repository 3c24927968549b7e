"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./collab_chat.db",
        description="Async SQLAlchemy connection URL"
    )

    # Redis (empty URL disables caching)
    redis_url: str = Field(default="", description="Redis connection URL")
    redis_password: str = Field(default="", description="Redis password")

    # User directory (external collaborator)
    user_directory_api_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the platform user service"
    )
    user_directory_api_key: str = Field(default="", description="Server-to-server API key for the user service")
    user_directory_timeout: int = Field(default=10, description="User service request timeout in seconds")

    # Security
    jwt_secret: str = Field(
        default="change-me-in-production-change-me-in-production",
        min_length=32,
        description="JWT secret key (min 32 chars)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable per-client rate limiting")
    rate_limit_per_minute: int = Field(default=120, description="API rate limit per minute per client")
    rate_limit_send_per_minute: int = Field(default=30, description="Message sends per minute per client")

    # Messaging limits
    max_message_length: int = Field(default=10000, description="Maximum message length in characters")
    max_group_name_length: int = Field(default=100, description="Maximum group chat name length")
    max_group_description_length: int = Field(default=500, description="Maximum group chat description length")

    # Sync client
    sync_poll_interval_seconds: float = Field(default=2.0, description="Polling interval while a thread is open")
    unread_poll_interval_seconds: float = Field(default=10.0, description="Polling interval of the unread badge")

    # Cache TTL (in seconds)
    cache_user_ttl: int = Field(default=600, description="User summary cache TTL in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    def get_allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


# Global settings instance
settings = Settings()
