"""
Application settings loaded from environment variables.

Uses pydantic-settings for type-safe configuration with .env file support.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global application settings."""

    # App
    APP_NAME: str = "Social Aura"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Redis (ledger store)
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_SSL: bool = False

    # Ledger
    LEDGER_BACKEND: str = "redis"  # "redis" or "memory"
    LEDGER_ADDRESS: str = "0x0000000000000000000000000000000000000000"
    LEDGER_KEY_PREFIX: str = ""

    # Encrypted-value codec
    CODEC_BACKEND: str = "reference"  # "reference" or "remote"
    CODEC_SERVICE_URL: str = ""
    CODEC_SERVICE_API_KEY: str = ""
    CODEC_SERVICE_TIMEOUT_SECONDS: float = 10.0

    # Decryption challenge
    CHAIN_ID: int = 11155111
    DECRYPTION_DURATION_DAYS: int = 30
    DECRYPTION_DELAY_SECONDS: float = 1.5
    SIGNATURE_TIMEOUT_SECONDS: float = 120.0

    # Status notices
    NOTICE_SUCCESS_SECONDS: float = 2.0
    NOTICE_ERROR_SECONDS: float = 3.0

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
