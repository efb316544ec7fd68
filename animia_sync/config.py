"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment.

    The server reads the database/notification fields; the device-side sync
    client reads the SYNC_* and CACHE_* fields.
    """

    DATABASE_URL: str = "sqlite:///./animia.db"
    CORS_ORIGINS: str = "http://localhost:8081"
    LOG_LEVEL: str = "INFO"
    LOCAL_TIMEZONE: str = "Asia/Kolkata"  # IANA tz used in message text
    SMS_DEFAULT_COUNTRY_CODE: str = "91"

    SYNC_ENDPOINT: str = "http://localhost:3000/api/sync"
    SYNC_INTERVAL_SECONDS: float = 60.0
    SYNC_TIMEOUT_SECONDS: float = 15.0
    CACHE_DIR: str = "./.animia_cache"
    CONNECTIVITY_PROBE_INTERVAL_SECONDS: float = 30.0
    CACHE_MAX_AGE_HOURS: float = 24.0

    class Config:
        env_file = ".env"


settings = Settings()
