"""
Configuration management for the job board service.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BoardConfig(BaseSettings):
    """
    Configuration settings for the job board service.

    All settings can be configured via environment variables with the JOBBOARD_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="JOBBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///jobboard.db",
        description="SQLAlchemy database URL for the job board tables"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement issued by SQLAlchemy"
    )

    # Loader settings
    loader_max_batch_size: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum keys per batched query (unlimited if unset)"
    )
    loader_cache: bool = Field(
        default=True,
        description="Cache loaded rows for the lifetime of a request"
    )

    # Pagination settings
    default_page_limit: int = Field(
        default=20,
        ge=1,
        description="Number of jobs returned when no limit is given"
    )
    max_page_limit: int = Field(
        default=100,
        ge=1,
        description="Upper bound for the jobs page size"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @model_validator(mode="after")
    def _check_page_limits(self) -> "BoardConfig":
        if self.default_page_limit > self.max_page_limit:
            raise ValueError("default_page_limit cannot exceed max_page_limit")
        return self

    def clamp_limit(self, limit: Optional[int]) -> int:
        """Resolve a requested page size against the configured bounds."""
        if limit is None:
            return self.default_page_limit
        return max(0, min(limit, self.max_page_limit))


# Global config instance
_config: Optional[BoardConfig] = None


def get_config() -> BoardConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = BoardConfig()
    return _config


def set_config(config: BoardConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
