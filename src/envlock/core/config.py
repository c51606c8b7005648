"""Application configuration via Pydantic Settings.

Engine settings are loaded from ``ENVLOCK_``-prefixed environment variables.
The user's own ``.env`` files are schema input, not engine configuration, so
no env file is read here.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ENVLOCK_",
        case_sensitive=False,
        extra="ignore",
    )

    # Schema
    schema_path: str = Field(
        default=".env.schema",
        description="Path of the schema file to load",
    )
    environment: str | None = Field(
        default=None,
        description="Default environment overlay name (selects .env.<name> beside the schema)",
    )

    # Resolution
    command_timeout: float = Field(
        default=10.0,
        description="Per-call timeout in seconds for exec() resolvers",
        gt=0,
    )
    max_concurrency: int = Field(
        default=8,
        description="Maximum number of fields resolved concurrently",
        gt=0,
        le=256,
    )

    # Rendering
    mask_token: str = Field(
        default="********",
        description="Fixed-width token printed in place of sensitive values",
        min_length=1,
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in _LOG_LEVELS:
            msg = f"Invalid log_level: must be one of {sorted(_LOG_LEVELS)}"
            raise ValueError(msg)
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if "/" in v or "\\" in v or v.startswith("."):
            msg = "environment must be a plain name (no path separators or leading dot)"
            raise ValueError(msg)
        return v


def get_settings() -> Settings:
    """Create and return engine settings."""
    return Settings()
