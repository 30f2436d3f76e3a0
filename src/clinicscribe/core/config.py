"""
Configuration management for Clinic-Scribe.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

from typing import Optional

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CaptureSettings(BaseSettings):
    """Live capture and retranscription cadence."""

    model_config = SettingsConfigDict(env_prefix="CAPTURE_")

    tick_interval_seconds: float = Field(
        default=3.0, description="Seconds between periodic retranscription ticks"
    )
    min_pending_bytes: int = Field(
        default=1024,
        description="Minimum untranscribed audio (bytes) before a tick submits a snapshot",
    )

    @field_validator("tick_interval_seconds")
    @classmethod
    def validate_tick_interval(cls, v: float) -> float:
        """Validate tick interval."""
        if v <= 0:
            raise ValueError("Tick interval must be greater than 0 seconds")
        return v

    @field_validator("min_pending_bytes")
    @classmethod
    def validate_min_pending_bytes(cls, v: int) -> int:
        """Validate pending threshold."""
        if v < 0:
            raise ValueError("Minimum pending bytes cannot be negative")
        return v


class TranscriptionSettings(BaseSettings):
    """Speech-to-text collaborator settings."""

    model_config = SettingsConfigDict(env_prefix="TRANSCRIPTION_")

    provider: str = Field(default="http", description="Transcription provider (http or openai)")
    endpoint_url: str = Field(
        default="http://localhost:3000/api/transcribe",
        description="Speech-to-text endpoint used by the http provider",
    )
    stream: bool = Field(default=True, description="Request line-delimited streaming responses")
    timeout_seconds: float = Field(default=60.0, description="Hard timeout per transcription call")
    model: str = Field(default="gpt-4o-mini-transcribe", description="Model for the openai provider")
    filename: str = Field(default="recording.webm", description="Upload filename for audio snapshots")
    content_type: str = Field(default="audio/webm", description="Upload content type for audio snapshots")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate transcription provider."""
        valid_providers = ["http", "openai"]
        if v.lower() not in valid_providers:
            raise ValueError(f"Transcription provider must be one of: {valid_providers}")
        return v.lower()

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout."""
        if v <= 0:
            raise ValueError("Transcription timeout must be greater than 0 seconds")
        return v


class ExtractionSettings(BaseSettings):
    """Structured extraction settings."""

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_")

    model: str = Field(default="gpt-4o", description="Model for structured extraction")
    temperature: float = Field(default=0.3, description="Temperature for structured extraction")
    timeout_seconds: float = Field(default=60.0, description="Hard timeout per extraction call")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature."""
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v


class OpenAISettings(BaseSettings):
    """OpenAI API configuration settings."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: str = Field(default="", description="OpenAI API key")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(default="", description="MongoDB connection URI")
    db_name: str = Field(default="clinicscribe", description="MongoDB database name")

    @field_validator("uri")
    @classmethod
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if v and not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate logging format."""
        if v.lower() not in ["json", "text"]:
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Clinic-Scribe", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")
    store: str = Field(default="mongo", description="Appointment store (mongo or memory)")

    # Sub-settings
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("store")
    @classmethod
    def validate_store(cls, v: str) -> str:
        """Validate appointment store type."""
        valid_stores = ["mongo", "memory"]
        if v.lower() not in valid_stores:
            raise ValueError(f"Store must be one of: {valid_stores}")
        return v.lower()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.app_env == "testing"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    Already-set environment variables always win.
    """
    from dotenv import load_dotenv

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
