"""Configuration management using Pydantic Settings."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Only load .env file outside Lambda
        env_file=".env" if os.getenv("AWS_EXECUTION_ENV") is None else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AWS Configuration
    aws_region: str = "us-east-2"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_session_token: str | None = None

    @field_validator(
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
        "admin_key",
        mode="before",
    )
    @classmethod
    def convert_empty_string_to_none(cls, v):
        """Convert empty strings to None so unset secrets stay unset."""
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    # DynamoDB Configuration
    dynamodb_endpoint_url: str | None = None
    dynamodb_table_api_keys: str = "api_keys"
    dynamodb_table_requests: str = "requests"

    # Application Configuration
    environment: str = "development"
    log_level: str = "INFO"
    api_title: str = "DevMetrics API"
    api_version: str = "1.0.0"

    # Administrative credential (X-Admin-Key header)
    admin_key: str | None = None

    # API Limits
    max_request_size_bytes: int = 64 * 1024  # 64KB
    default_page_limit: int = 50
    max_page_limit: int = 1000

    # API Keys
    api_key_prefix: str = "dm_"
    default_requests_per_hour: int = 10_000
    default_requests_per_day: int = 100_000

    @property
    def is_production(self) -> bool:
        """Whether error details must be hidden from clients."""
        return self.environment.lower() == "production"


# Global settings instance
settings = Settings()
