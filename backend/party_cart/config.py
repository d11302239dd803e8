from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    CART_SESSION_COOKIE: str = "cart_session"

    # durable store
    STORAGE_KEY_PREFIX: str = "partyondelivery_"
    STORAGE_QUOTA_BYTES: int = 5 * 1024 * 1024
    STALE_ENTRY_DAYS: int = 7

    CART_FLASH_MS: int = 600

    # abandoned-cart telemetry
    ABANDONED_CART_DEBOUNCE_SECONDS: float = 30.0
    ABANDONED_CART_URL: str = "http://127.0.0.1:8000/api/abandoned-carts"
    TELEMETRY_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
