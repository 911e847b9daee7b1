"""Configuration management using Pydantic Settings.

Values come from LOGSTORM_* environment variables or a .env file.
NO try-catch blocks - let Pydantic raise ValidationError if a value is invalid.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024

# S3 rejects multipart parts smaller than 5 MiB (except the last one)
MIN_PART_SIZE = 5 * MIB


class LogstormConfig(BaseSettings):
    """Global configuration - loads from environment variables or .env file."""

    # Destination
    bucket: str | None = Field(default=None, description="S3 bucket for archives")
    key_prefix: str = Field(default="multipart-test", description="Key prefix for uploaded archives")

    # AWS
    aws_region: str = Field(default="us-east-2", description="AWS region")
    aws_profile: str | None = Field(default=None, description="AWS profile name")
    endpoint_url: str | None = Field(default=None, description="Custom S3 endpoint (MinIO, Ceph RGW, ...)")

    # Source corpus
    source_path: str = Field(default="source.log", description="Line template file")

    # Multipart upload
    part_size: int = Field(default=MIN_PART_SIZE, ge=MIN_PART_SIZE, description="Multipart chunk size in bytes")
    max_part_attempts: int = Field(default=5, description="Attempts per request, <= 0 retries forever")
    retry_base_delay: float = Field(default=0.5, ge=0, description="First retry delay in seconds")
    retry_max_delay: float = Field(default=30.0, ge=0, description="Retry delay cap in seconds")

    model_config = SettingsConfigDict(
        env_prefix="LOGSTORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Singleton instance
config = LogstormConfig()
