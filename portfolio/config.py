"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVERLESS_TASK_ROOT = "/var/task"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Blob service A (Vercel Blob)
    blob_read_write_token: Optional[str] = Field(default=None)
    blob_api_url: str = Field(default="https://blob.vercel-storage.com")

    # Blob service B (Firebase Storage)
    firebase_api_key: Optional[str] = Field(default=None)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_storage_bucket: Optional[str] = Field(default=None)
    firebase_credentials: Optional[str] = Field(default=None)

    # Local disk fallback
    upload_dir: str = Field(default="public/uploads")
    upload_url_prefix: str = Field(default="/uploads")
    vercel: Optional[str] = Field(default=None)

    max_upload_mb: int = Field(default=10, ge=1)

    # Admin access
    admin_api_key: Optional[str] = Field(default=None)
    admin_auth_enabled: bool = Field(default=True)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    @property
    def is_serverless(self) -> bool:
        """True on an ephemeral serverless filesystem (e.g. Vercel)."""
        return os.getcwd() == SERVERLESS_TASK_ROOT or self.vercel == "1"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
