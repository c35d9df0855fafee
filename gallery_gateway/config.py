"""
Application configuration using Pydantic Settings.
All environment variables are loaded here with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # AWS S3 storage
    aws_region: str = "ap-northeast-2"
    aws_bucket_name: str = ""
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    # Set by the Lambda runtime; credentials then come from the execution role
    aws_lambda_function_name: Optional[str] = None

    # Admin secret compared against the `authorization` header.
    # When unset every privileged request is rejected.
    admin_token: Optional[str] = None

    # Gallery constraints
    gallery_prefix: str = "gallery/"
    max_files_per_upload: int = 10
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # CORS allow-list (JSON list in env). localhost / 127.0.0.1 on any port
    # are always allowed.
    cors_allowed_origins: List[str] = []

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    # Local server
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_lambda(self) -> bool:
        """True when running inside AWS Lambda."""
        return bool(self.aws_lambda_function_name)

    @property
    def namespace(self) -> str:
        """Gallery prefix normalised to exactly one trailing slash."""
        return self.gallery_prefix.strip("/") + "/"


# Global settings instance
settings = Settings()
