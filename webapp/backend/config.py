"""
Application configuration.

Settings are read from the environment (and a local .env file outside
production), validated once at startup and handed to the app. Nothing else
in the backend reads os.environ directly.
"""
import logging
import os
import sys
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_GOOGLE_REDIRECT_URI = "http://localhost:8000/api/v1/auth/google/callback"

# Environment variable name -> Settings field
_ENV_FIELDS = {
    "ENVIRONMENT": "environment",
    "LOG_LEVEL": "log_level",
    "DATABASE_URL": "database_url",
    "REDIS_URL": "redis_url",
    "JWT_SECRET": "jwt_secret",
    "ADMIN_USERNAME": "admin_username",
    "ADMIN_PASSWORD": "admin_password",
    "RESEND_API_KEY": "resend_api_key",
    "EMAIL_FROM": "email_from",
    "EMAIL_FROM_NAME": "email_from_name",
    "PROJECT_NAME": "project_name",
    "FRONTEND_URL": "frontend_url",
    "GOOGLE_CLIENT_ID": "google_client_id",
    "GOOGLE_CLIENT_SECRET": "google_client_secret",
    "GOOGLE_REDIRECT_URI": "google_redirect_uri",
    "ALLOWED_ORIGINS": "allowed_origins",
    "TRUSTED_PROXIES": "trusted_proxies",
}


class Settings(BaseModel):
    """Immutable process configuration."""

    model_config = ConfigDict(frozen=True)

    environment: str = "development"
    log_level: str = "INFO"
    database_url: str = Field(..., min_length=1)
    redis_url: str
    jwt_secret: str = Field(..., min_length=32)
    admin_username: str = Field(..., min_length=3)
    admin_password: str = Field(..., min_length=6)
    resend_api_key: str = Field(..., min_length=1)
    email_from: EmailStr
    email_from_name: str = Field(..., min_length=1)
    project_name: str = Field(..., min_length=1)
    frontend_url: str
    google_client_id: str = Field(..., min_length=1)
    google_client_secret: str = Field(..., min_length=1)
    google_redirect_uri: str = DEFAULT_GOOGLE_REDIRECT_URI
    allowed_origins: List[str] = ["http://localhost:3000"]
    # Peers whose X-Forwarded-For header is believed
    trusted_proxies: List[str] = []

    @field_validator("environment")
    @classmethod
    def _check_environment(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be development, production or test")
        return v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return v

    @field_validator("redis_url")
    @classmethod
    def _check_redis_url(cls, v: str) -> str:
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("REDIS_URL must start with redis:// or rediss://")
        return v

    @field_validator("frontend_url")
    @classmethod
    def _check_frontend_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("FRONTEND_URL must be a valid URL")
        return v.rstrip("/")

    @field_validator("allowed_origins", "trusted_proxies", mode="before")
    @classmethod
    def _split_csv(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def settings_from_env(environ: Mapping[str, str]) -> Settings:
    """Build Settings from an environment mapping. Raises ValidationError."""
    values: Dict[str, str] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = environ.get(env_name)
        if raw is not None and raw != "":
            values[field_name] = raw
    return Settings(**values)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load and validate settings, exiting the process on invalid configuration.

    Args:
        environ: Optional mapping to read instead of os.environ

    Returns:
        Validated Settings
    """
    if environ is None:
        if os.getenv("ENVIRONMENT", "development").strip().lower() != "production":
            load_dotenv()
        environ = os.environ

    try:
        return settings_from_env(environ)
    except ValidationError as e:
        logger.critical("Invalid environment configuration:")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            logger.critical("  %s: %s", field, error["msg"])
        sys.exit(1)
