"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

import re
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LIFETIME_PATTERN = re.compile(r"([0-9]+)([dhm])")

DEV_JWT_SECRET = "luna-super-secret-key-change-in-production"
DEV_JWT_REFRESH_SECRET = "luna-refresh-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Security
    jwt_secret: str = DEV_JWT_SECRET
    jwt_expires_in: str = "7d"
    jwt_refresh_secret: str = DEV_JWT_REFRESH_SECRET
    jwt_refresh_expires_in: str = "30d"
    jwt_issuer: str = "luna-api"
    jwt_audience: str = "luna-frontend"
    jwt_algorithm: str = "HS256"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    port: int = 3000

    # API Settings
    api_prefix: str = "/api"
    project_name: str = "Luna Dream API"
    version: str = "1.0.0"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:3000",
    ]

    # Rate limiting (auth routes, per client address)
    rate_limit_enabled: bool = True
    rate_limit_auth_max_requests: int = 50
    rate_limit_auth_window_ms: int = 15 * 60 * 1000
    trust_proxy_headers: bool = False

    @field_validator("jwt_expires_in", "jwt_refresh_expires_in")
    @classmethod
    def validate_lifetime(cls, v: str) -> str:
        if not LIFETIME_PATTERN.fullmatch(v):
            raise ValueError("Token lifetime must look like '7d', '12h' or '30m'")
        return v

    @property
    def uses_dev_secrets(self) -> bool:
        return (
            self.jwt_secret == DEV_JWT_SECRET
            or self.jwt_refresh_secret == DEV_JWT_REFRESH_SECRET
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
