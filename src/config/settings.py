"""Application settings using Pydantic Settings.

Centralized configuration for the agency metrics service.

The managed backend is reached with:
- SUPABASE_URL: project base URL (https://<ref>.supabase.co)
- SUPABASE_SERVICE_KEY: service-role key used for server-side reads

Nothing else is required to boot in development.
"""

import sys
import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class BackendSettings(BaseSettings):
    """Managed backend (PostgREST + edge functions) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default="http://localhost:54321", description="Backend base URL")
    service_key: Optional[str] = Field(default=None, description="Service-role API key")
    anon_key: Optional[str] = Field(default=None, description="Public anon API key")

    rest_path: str = Field(default="/rest/v1", description="PostgREST mount point")
    functions_path: str = Field(default="/functions/v1", description="Edge functions mount point")
    timeout: float = Field(default=20.0, description="HTTP timeout in seconds")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def api_key(self) -> Optional[str]:
        """Key sent with every request; the service key wins over the anon key."""
        return self.service_key or self.anon_key

    @property
    def rest_url(self) -> str:
        return f"{self.url}{self.rest_path}"

    @property
    def functions_url(self) -> str:
        return f"{self.url}{self.functions_path}"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Agency Metrics", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    # Upload limits
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Max .xlsx upload size")

    # Winback defaults
    winback_contact_days_before: int = Field(
        default=45, description="Days before competitor renewal to reach out"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def backend(self) -> BackendSettings:
        return BackendSettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration required in production.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.is_production:
            return errors

        backend = self.backend
        if not backend.service_key:
            errors.append("SUPABASE_SERVICE_KEY: Required in production for server-side reads")
        if backend.url.startswith("http://localhost"):
            errors.append("SUPABASE_URL: Points at localhost in a production environment")
        if self.debug:
            errors.append("APP_DEBUG: Must be False in production")

        return errors


class StartupConfigError(Exception):
    """Raised when configuration validation fails at startup."""
    pass


def validate_startup_config(settings: Settings, exit_on_failure: bool = True) -> bool:
    """
    Validate settings at application startup.

    In production, fails fast when the backend is not configured.

    Raises:
        StartupConfigError: If validation fails and exit_on_failure is False
    """
    errors = settings.validate_production_config()

    if not errors:
        if settings.is_production:
            logger.info("Production configuration validation PASSED")
        return True

    error_msg = "Configuration errors:\n" + "\n".join(f"  {i}. {err}" for i, err in enumerate(errors, 1))
    logger.critical(error_msg)

    if exit_on_failure:
        print(error_msg, file=sys.stderr)
        sys.exit(1)
    raise StartupConfigError(error_msg)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings instance."""
    return Settings()


@lru_cache
def get_backend_settings() -> BackendSettings:
    """Get cached backend settings instance."""
    return BackendSettings()
