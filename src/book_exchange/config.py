"""Configuration management for the book exchange server.

This module provides centralized configuration management using Pydantic settings
with environment variable support, validation, and error handling.
"""

from typing import Annotated
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support and validation."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Database Configuration
    database_url: Annotated[str, Field(description="PostgreSQL or SQLite database connection URL")]
    debug: Annotated[bool, Field(description="Enable debug mode")] = False
    log_level: Annotated[str, Field(description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")] = "INFO"

    # JWT Configuration
    jwt_secret: Annotated[str, Field(description="JWT secret key for token signing")]
    jwt_algorithm: Annotated[str, Field(description="JWT algorithm for token signing")] = "HS256"
    jwt_expire_minutes: Annotated[int, Field(description="JWT token expiration time in minutes")] = 60 * 24 * 30

    # Media host (Cloudinary) Configuration
    cloudinary_cloud_name: Annotated[str | None, Field(description="Cloudinary cloud name")] = None
    cloudinary_api_key: Annotated[str | None, Field(description="Cloudinary API key")] = None
    cloudinary_api_secret: Annotated[str | None, Field(description="Cloudinary API secret")] = None
    media_max_upload_bytes: Annotated[int, Field(description="Maximum accepted image upload size in bytes")] = 5 * 1024 * 1024
    default_book_image_url: Annotated[str, Field(description="Placeholder image for books without a cover")] = "https://via.placeholder.com/150"
    default_profile_image_url: Annotated[str, Field(description="Placeholder image for user profiles")] = "https://via.placeholder.com/150"

    # CORS Configuration
    cors_origins: Annotated[list[str], Field(description="Allowed CORS origins outside development")] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Server Configuration
    server_host: Annotated[str, Field(description="Interface the uvicorn server binds to")] = "127.0.0.1"
    server_port: Annotated[int, Field(description="Port the uvicorn server listens on")] = 8000

    # Environment Configuration
    environment: Annotated[str, Field(description="Application environment (development, testing, production)")] = "development"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("jwt_expire_minutes")
    @classmethod
    def validate_jwt_expire_minutes(cls, v: int) -> int:
        """Validate JWT expiration time is positive."""
        if v <= 0:
            raise ValueError("jwt_expire_minutes must be a positive integer")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is a supported HMAC algorithm."""
        allowed_algorithms = {"HS256", "HS384", "HS512"}
        if v not in allowed_algorithms:
            raise ValueError(f"jwt_algorithm must be one of {allowed_algorithms}")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite:///")):
            raise ValueError("database_url must be a valid PostgreSQL or SQLite URL")
        return v

    @field_validator("media_max_upload_bytes")
    @classmethod
    def validate_media_max_upload_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("media_max_upload_bytes must be a positive integer")
        return v

    @property
    def media_configured(self) -> bool:
        """Check if all media host credentials are present."""
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


def get_settings() -> Settings:
    """Get application settings with error handling.

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigurationError: If configuration validation fails
    """
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {str(e)}") from e


# Global settings instance
settings = get_settings()
