# app/core/config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Always load .env from the project root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./booking.db"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"

    # Object storage (S3 / MinIO) for service and review images
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = "booking-images"
    S3_PUBLIC_BASE: Optional[str] = None
    IMAGE_MAX_SIZE: int = 5 * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
