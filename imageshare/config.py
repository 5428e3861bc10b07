from __future__ import annotations

from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


load_dotenv()


class Settings(BaseSettings):
    APP_NAME: str = "ImageShare"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Upload policy
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: List[str] = ["image/jpeg", "image/png", "image/gif"]

    # Content storage: "local" or "minio"
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads"

    # MinIO settings
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_BUCKET: str = "imageshare"
    MINIO_SECURE: bool = False

    # Post repository: "memory" or "sql"
    REPOSITORY_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite:///./imageshare.db"

    class Config:
        case_sensitive = True
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
