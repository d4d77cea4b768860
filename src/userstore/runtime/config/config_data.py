"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field, field_validator
from sqlalchemy.engine import URL, make_url


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )

    @field_validator("file", mode="before")
    @classmethod
    def _empty_file_is_none(cls, value: str | None) -> str | None:
        return value or None


class DatabaseConfig(BaseModel):
    """Database configuration model.

    Either ``url`` is given as a complete SQLAlchemy URL, or the URL is
    assembled from the discrete connection parameters.
    """

    url: str | None = Field(
        default=None, description="Full database URL; overrides the parameters below"
    )
    driver: str = Field(
        default="postgresql+psycopg2", description="SQLAlchemy driver name"
    )
    host: str = Field(default="localhost", description="Database host")
    port: int | None = Field(default=5432, description="Database port")
    user: str = Field(default="userstore", description="Database username")
    password: str | None = Field(default=None, description="Database password")
    name: str = Field(default="userstore", description="Database name")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    create_tables: bool = Field(
        default=True, description="Create the users table on startup if missing"
    )

    @field_validator("url", "password", mode="before")
    @classmethod
    def _empty_is_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("port", mode="before")
    @classmethod
    def _empty_port_is_none(cls, value: int | str | None) -> int | str | None:
        if value == "":
            return None
        return value

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string."""
        if self.url:
            return make_url(self.url).render_as_string(hide_password=False)

        url = URL.create(
            drivername=self.driver,
            username=self.user or None,
            password=self.password,
            host=self.host or None,
            port=self.port,
            database=self.name or None,
        )
        return url.render_as_string(hide_password=False)

    @property
    def backend(self) -> str:
        """Backend name of the configured dialect (``postgresql``, ``sqlite``...)."""
        return make_url(self.connection_string).get_backend_name()


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    name: str = Field(default="userstore", description="Service name")
    host: str = Field(default="0.0.0.0", description="Application host")
    port: int = Field(default=3000, description="Application port")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )

    def validate_runtime(self) -> None:
        """Validate configuration for the current environment."""
        if self.app.environment == "production":
            if self.database.backend == "sqlite":
                raise ValueError("SQLite is not supported in production")
        elif self.database.backend == "sqlite":
            logger.warning("Using SQLite database in {}", self.app.environment)
