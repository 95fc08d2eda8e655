"""Pydantic Settings model for application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    OUTPUT: str = "text"

    # Bitbucket API settings
    BITBUCKET_API_URL: str = "https://api.bitbucket.org/2.0"
    BITBUCKET_WORKSPACE: str | None = None

    # Bitbucket basic authentication settings
    BITBUCKET_USERNAME: str | None = None
    BITBUCKET_APP_PASSWORD: str | None = None


settings = Settings()
