from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "entrydesk-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Entrydesk")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/entrydesk_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "entrydesk-uploads-dev")
    signed_url_ttl_seconds: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "3600"))

    # Deadlines are entered and displayed in the venue's wall clock
    deadline_timezone: str = os.getenv("DEADLINE_TIMEZONE", "Asia/Tokyo")

    # Upload limits (megabytes)
    max_video_mb: int = int(os.getenv("MAX_VIDEO_MB", "250"))
    max_audio_mb: int = int(os.getenv("MAX_AUDIO_MB", "100"))
    max_photo_mb: int = int(os.getenv("MAX_PHOTO_MB", "10"))

    # Outgoing mail
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = os.getenv("SMTP_USE_TLS", "1") == "1"
    mail_from: str = os.getenv("MAIL_FROM", "entries@example.com")

settings = Settings()
