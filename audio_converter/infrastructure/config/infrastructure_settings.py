"""
Infrastructure settings for the audio converter.
Configuration for object storage, the transcoder binary and logging.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


# S3 rejects multipart parts smaller than this (except the last one)
MIN_UPLOAD_PART_SIZE = 5 * 1024 * 1024


class ConverterSettings(BaseSettings):
    """
    Infrastructure configuration.

    Output audio parameters (channels, sample rate, format) are fixed
    constants of the domain and intentionally not part of these settings.
    """

    # ENVIRONMENT & DEPLOYMENT
    environment: str = "development"
    service_name: str = "audio-converter"

    # AWS CORE CONFIGURATION
    aws_region: str = "us-east-1"
    aws_max_retry_attempts: int = 3
    aws_max_pool_connections: int = 10

    # STORAGE CONFIGURATION
    s3_endpoint_url: Optional[str] = None
    s3_use_ssl: bool = True
    s3_signature_version: str = "s3v4"

    # TRANSCODER CONFIGURATION
    ffmpeg_path: Optional[str] = None
    stream_chunk_size: int = 64 * 1024
    upload_part_size: int = 8 * 1024 * 1024

    # LOGGING
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=[".env.local", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("upload_part_size")
    @classmethod
    def _check_part_size(cls, value: int) -> int:
        if value < MIN_UPLOAD_PART_SIZE:
            raise ValueError(
                f"upload_part_size must be at least {MIN_UPLOAD_PART_SIZE} bytes"
            )
        return value

    @field_validator("stream_chunk_size")
    @classmethod
    def _check_chunk_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("stream_chunk_size must be positive")
        return value

    @property
    def use_local_s3(self) -> bool:
        """Check if should use a local S3-compatible endpoint (MinIO)."""
        return self.s3_endpoint_url is not None

    @property
    def is_production_env(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


# Global settings instance
converter_settings = ConverterSettings()
