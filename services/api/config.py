"""
Gateway Flow - Application Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "gateway-flow"
    APP_ENV: str = "development"
    APP_DEBUG: bool = True
    APP_PORT: int = 8000
    APP_HOST: str = "0.0.0.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Remote gateway (sensor/user registration, binding, M1-M4 exchange)
    GATEWAY_URL: str = "http://127.0.0.1:5000"
    GATEWAY_TIMEOUT_S: float = 5.0

    # Log polling
    POLL_INTERVAL_MS: int = 500
    SETTLE_DELAY_MS: int = 800
    REFRESH_ON_STARTUP: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
