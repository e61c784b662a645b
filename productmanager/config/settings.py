"""
==============================================================================
Catalog Settings Module
==============================================================================

Environment-driven configuration for the Product Manager service, built on
Pydantic Settings.

Sources, in order of precedence:
--------------------------------
1. Process environment (case-insensitive, e.g. ``FALLBACK_CATEGORY_NAME``)
2. ``.env`` file in the working directory
3. Field defaults below

Groups:
-------
- Service: app name, environment, debug flag, log level, bind address
- Storage: SQLAlchemy URL (file-backed SQLite by default)
- Catalog: fallback category name, optional demo data
- CORS: allowed origins for browser clients

A single Settings object is shared through ``get_settings()``.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)

ENVIRONMENTS = ("development", "staging", "production")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

_SQLITE_FILE_PREFIX = "sqlite:///"


class Settings(BaseSettings):
    """
    Product Manager configuration.

    Attributes:
        app_name: Title shown in the OpenAPI docs and startup logs
        app_env: development, staging or production
        debug: Verbose logging and SQL echo
        log_level: Root log level when debug is off
        host: Address uvicorn binds to
        port: Port uvicorn listens on
        database_url: SQLAlchemy URL of the catalog database
        fallback_category_name: Category that receives products which would
            otherwise belong to no category
        seed_demo_data: Insert a demo catalog on startup (development only)
        cors_origins: JSON array of allowed origins

    Example:
        >>> settings = get_settings()
        >>> settings.fallback_category_name
        'Other'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # SERVICE
    # =========================================================================
    app_name: str = Field(default="Product Manager API", description="Service title")
    app_env: str = Field(default="development", description="Deployment environment")
    debug: bool = Field(default=False, description="Verbose logging and SQL echo")
    log_level: str = Field(default="INFO", description="Log level when debug is off")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")

    # =========================================================================
    # STORAGE
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/catalog.db",
        description="SQLAlchemy URL of the catalog database"
    )

    # =========================================================================
    # CATALOG
    # =========================================================================
    fallback_category_name: str = Field(
        default="Other",
        min_length=1,
        max_length=100,
        description="Category for products that belong to no other category"
    )

    seed_demo_data: bool = Field(
        default=False,
        description="Insert the demo catalog on startup (development only)"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="JSON array of allowed CORS origins"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Lowercase the environment; unknown names fall back to development."""
        normalized = value.strip().lower()
        if normalized in ENVIRONMENTS:
            return normalized

        logger.warning(f"Unknown environment '{value}', using 'development'")
        return "development"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return normalized

    @field_validator("fallback_category_name")
    @classmethod
    def validate_fallback_category_name(cls, value: str) -> str:
        """The fallback name is stored stripped and may not be blank."""
        stripped = value.strip()
        if not stripped:
            raise ValueError("Fallback category name cannot be blank")
        return stripped

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def effective_log_level(self) -> str:
        """DEBUG while debugging, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Allowed origins as a list.

        Malformed or non-list values allow every origin.
        """
        try:
            origins = json.loads(self.cors_origins)
        except json.JSONDecodeError:
            logger.warning(f"Invalid CORS origins JSON: {self.cors_origins}, allowing all")
            return ["*"]

        return origins if isinstance(origins, list) else ["*"]

    def get_database_path(self) -> Optional[Path]:
        """
        File behind a ``sqlite:///`` URL.

        Returns:
            Relative or absolute path, or None for in-memory SQLite and
            every other database
        """
        if not self.database_url.startswith(_SQLITE_FILE_PREFIX):
            return None

        location = self.database_url[len(_SQLITE_FILE_PREFIX):]
        if location in ("", ":memory:"):
            return None
        return Path(location[2:] if location.startswith("./") else location)

    def ensure_directories(self) -> None:
        """Create the parent directory of a file-backed SQLite database."""
        db_path = self.get_database_path()
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ready: {db_path.parent}")

    def __repr__(self) -> str:
        return (
            f"Settings(app_env={self.app_env!r}, "
            f"database_url={self.database_url!r}, "
            f"fallback_category_name={self.fallback_category_name!r})"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Shared Settings instance, read from the environment on first call.

    Tests that change the environment call ``get_settings.cache_clear()``.
    """
    settings = Settings()
    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
