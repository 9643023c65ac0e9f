"""
Application configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.
The security header policy is deliberately not configurable here.
"""

from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration class for the Playlist Gateway.
    All settings are loaded from environment variables with type validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Application ---
    APP_NAME: str = "Playlist Gateway"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = Field(default="production")
    API_PREFIX: str = "/api/v1"
    ALLOWED_HOSTS: Annotated[List[str], NoDecode] = ["*"]

    # --- CORS ---
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000"]
    CORS_ALLOW_CREDENTIALS: bool = True

    # --- Rate Limiting ---
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_GENERAL_PER_MINUTE: int = Field(default=100, ge=1)
    RATE_LIMIT_GENERATE_PER_MINUTE: int = Field(default=10, ge=1)

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator("CORS_ORIGINS", "ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_list(cls, v: str | list) -> List[str]:
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except ValueError:
                return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor for application settings."""
    return Settings()


settings: Settings = get_settings()
