from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./app.db"

    # JWT session
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # ImageKit: private key signs upload grants (empty = not configured)
    imagekit_private_key: str = ""
    imagekit_public_key: str = ""
    imagekit_upload_url: str = "https://upload.imagekit.io/api/v1/files/upload"

    # Upload grant lifetime (seconds); must outlast an upload of max size
    upload_grant_ttl_seconds: int = 2400
    upload_folder: str = "/videos"
    max_upload_size_bytes: int = 100 * 1024 * 1024

    # Client-side network timeout for CDN and API calls
    http_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
