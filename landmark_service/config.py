"""
Configuration settings for the Landmark Service.

Uses Pydantic Settings to load environment variables for database connections,
the secret store, the object store, and logging. Database credentials come
either from the static DB_* variables or, when DB_SECRET_NAME is set, from the
secret store (see `landmark_service.infrastructure.credentials`).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database (static credentials)
    db_host: Optional[str] = Field(None, alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: Optional[str] = Field(None, alias="DB_USER")
    db_password: Optional[str] = Field(None, alias="DB_PASSWORD")
    db_name: Optional[str] = Field(None, alias="DB_NAME")

    # Database (secret store override)
    db_secret_name: Optional[str] = Field(None, alias="DB_SECRET_NAME")

    # Database transport and pool
    db_sslmode: str = Field("prefer", alias="DB_SSLMODE")
    db_pool_max_idle_seconds: float = Field(120.0, alias="DB_POOL_MAX_IDLE_SECONDS")
    db_connect_timeout_seconds: int = Field(10, alias="DB_CONNECT_TIMEOUT_SECONDS")
    db_health_timeout_seconds: float = Field(5.0, alias="DB_HEALTH_TIMEOUT_SECONDS")

    # Object store
    aws_region: str = Field("us-east-1", alias="AWS_REGION")
    s3_endpoint_url: Optional[str] = Field(None, alias="S3_ENDPOINT_URL")
    s3_max_attempts: int = Field(5, alias="S3_MAX_ATTEMPTS")
    s3_timeout_seconds: int = Field(60, alias="S3_TIMEOUT_SECONDS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def has_static_credentials(self) -> bool:
        """True when every static DB_* connection field is set."""
        return all(
            value
            for value in (self.db_host, self.db_user, self.db_password, self.db_name)
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
