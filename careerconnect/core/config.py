"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWT_SECRET = "change-this-secret"


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "careerconnect"

    # Query behaviour
    use_index_hints: bool = True
    create_indexes_on_startup: bool = True

    # Live snapshots (change streams need a replica set, polling otherwise)
    use_change_streams: bool = True
    snapshot_poll_interval_seconds: float = 2.0

    # JWT Auth
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Seed admin account (created on startup when both are set)
    admin_email: str = ""
    admin_password: str = ""

    # File storage: Cloudinary first, GridFS fallback
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_timeout_seconds: float = 30.0
    gridfs_bucket: str = "uploads"
    max_upload_size_mb: int = 10

    # Logging
    service_name: str = "careerconnect"
    log_level: str = "INFO"
    log_json: bool = True

    # App
    debug: bool = True
    cors_origins: List[str] = ["*"]

    @property
    def cloudinary_enabled(self) -> bool:
        """Unsigned uploads only need the cloud name and an upload preset"""
        return bool(self.cloudinary_cloud_name and self.cloudinary_upload_preset)

    @property
    def cloudinary_can_delete(self) -> bool:
        return bool(self.cloudinary_enabled and self.cloudinary_api_key and self.cloudinary_api_secret)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
