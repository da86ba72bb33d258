"""
Configuration management for DeliveryDataHub.

This module provides environment-based configuration using Pydantic BaseSettings,
allowing the same code to run against a local SQLite copy of the warehouse in
tests and against the PostgreSQL warehouse in production.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("DDH_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

DEFAULT_COMPANY_STATUSES = ["Onboarding", "Cliente Activo", "Stand By", "PiP"]


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Lower-case fields are loaded with the DDH_ prefix; for example
    DDH_SOURCE_SCHEMA overrides ``source_schema``.

    Upper-case fields are read without prefix:
    - ENVIRONMENT: Deployment environment (dev, staging, prod)
    - LOG_LEVEL: Logging level
    - MAX_WORKERS: Worker threads used for concurrent dimension queries
    """

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Deployment environment",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    MAX_WORKERS: int = Field(
        default=4,
        ge=1,
        validation_alias="MAX_WORKERS",
        description="Maximum worker threads for concurrent dimension fetches",
    )

    # Warehouse connection
    database_uri: Optional[str] = Field(
        default=None,
        description="Complete database URI of the dimension warehouse",
        validation_alias=AliasChoices("DDH_DATABASE__URI", "DDH_DATABASE_URI"),
    )
    source_schema: Optional[str] = Field(
        default="public",
        description="Schema holding the crp_portal__* tables (empty for SQLite)",
    )
    query_row_limit: int = Field(
        default=50000,
        ge=1,
        description="Upper bound on rows fetched per dimension query",
    )

    # Domain defaults
    valid_company_statuses: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COMPANY_STATUSES),
        description="Company statuses shown to users (checked on the latest snapshot)",
    )
    default_country: str = Field(
        default="ES", description="Country assigned to business areas"
    )
    default_timezone: str = Field(
        default="Europe/Madrid", description="Timezone assigned to business areas"
    )

    @field_validator("source_schema", mode="before")
    @classmethod
    def _blank_schema_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def get_database_connection_string(self) -> str:
        """Get the warehouse connection string.

        Automatically corrects 'postgres://' scheme to 'postgresql://' for
        SQLAlchemy compatibility.

        Raises:
            ValueError: If no database URI is configured.
        """
        if not self.database_uri:
            raise ValueError(
                "No warehouse configured. Set DDH_DATABASE__URI or DDH_DATABASE_URI."
            )

        final_uri = self.database_uri
        if final_uri.startswith("postgres://"):
            final_uri = final_uri.replace("postgres://", "postgresql://", 1)
        return final_uri

    @model_validator(mode="after")
    def validate_production_database_url(self) -> "Settings":
        """Production must point at PostgreSQL when a URI is configured."""
        if self.ENVIRONMENT == "prod" and self.database_uri:
            db_url = self.get_database_connection_string()
            if not db_url.startswith("postgresql"):
                raise ValueError(
                    "Production environment requires PostgreSQL database. "
                    f"got: {db_url[:20]}..."
                )
        return self

    model_config = SettingsConfigDict(
        env_prefix="DDH_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and reused across the application lifecycle.
    Tests that change the environment call ``get_settings.cache_clear()``.
    """
    return Settings()
