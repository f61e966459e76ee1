"""Configuration settings for the reconciliation client."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend API
    recon_api_url: str = Field(
        default="http://localhost:8080/api", validation_alias="RECON_API_URL"
    )
    recon_api_token: SecretStr | None = Field(
        default=None, validation_alias="RECON_API_TOKEN"
    )
    recon_timeout: float = Field(default=30.0, validation_alias="RECON_TIMEOUT")

    # Downloads
    export_dir: str = Field(default=".", validation_alias="RECON_EXPORT_DIR")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
