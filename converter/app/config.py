"""
Centralized configuration for the canvas converter service.

Pydantic v2 settings management. Values are read from the environment
(prefix ``CONVERTER_``) or a ``.env`` file and validated once at
startup.

Settings carry service limits only. How a given request escapes,
formats or treats unresolved placeholders is decided by that request's
ConversionOptions, never by ambient configuration.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class Settings(BaseSettings):
    """Application settings parsed from the environment."""

    # ---------------------------------------------------------------------
    # Logging
    # ---------------------------------------------------------------------

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO",
        description="Root log level",
    )

    # ---------------------------------------------------------------------
    # Safety and resource limits
    # ---------------------------------------------------------------------

    max_template_size_mb: int = Field(
        10,
        gt=0,
        description="Maximum size of an HTML template accepted for replacement",
    )

    variable_warning_threshold: int = Field(
        1000,
        gt=0,
        description=(
            "Placeholder count above which a PERFORMANCE_WARNING "
            "is attached to the replacement result"
        ),
    )

    max_elements: int = Field(
        5000,
        gt=0,
        description="Maximum number of canvas elements per document",
    )

    # ---------------------------------------------------------------------
    # HTTP
    # ---------------------------------------------------------------------

    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )

    # ---------------------------------------------------------------------
    # Pydantic Configuration
    # ---------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_prefix="CONVERTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @property
    def max_template_bytes(self) -> int:
        return self.max_template_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings accessor.

    Ensures environment variables are parsed and validated only once.
    """
    return Settings()
