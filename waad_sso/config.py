"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "WAAD SSO"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # SSO service
    # "test" switches to mock mode: every login is the placeholder user
    SSO_SERVICE_NAME: str = "waad"
    # JSON file with appUrl, identityMetadata, loginCallback, issuer, ...
    SSO_CONFIG_FILE: Optional[str] = None
    LOGIN_FAILURE_REDIRECT: str = "/"

    # Host session (signed cookie)
    SESSION_SECRET: str = ""
    SESSION_COOKIE: str = "waad_session"
    SESSION_MAX_AGE: int = 8 * 60 * 60  # 8 hours

    # Directory graph (Azure AD Graph)
    GRAPH_AUTHORITY_HOST: str = "https://login.microsoftonline.com"
    GRAPH_RESOURCE: str = "https://graph.windows.net"
    GRAPH_API_VERSION: str = "1.6"
    GRAPH_TIMEOUT_SECONDS: float = 30.0

    # Monitoring
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # 'text' or 'json' (json for production)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("SESSION_SECRET")
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Reject weak session secrets in production."""
        environment = os.getenv("ENVIRONMENT", "development")

        if environment == "production" and len(v) < 32:
            raise ValueError(
                "Insecure SESSION_SECRET detected in production! "
                "Generate a secure key with: openssl rand -hex 32"
            )

        return v

    @field_validator("SSO_SERVICE_NAME")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        """Mock login must never be enabled in production."""
        environment = os.getenv("ENVIRONMENT", "development")

        if environment == "production" and v == "test":
            raise ValueError("SSO_SERVICE_NAME=test (mock login) is not allowed in production")

        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
