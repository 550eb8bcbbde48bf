"""Application configuration"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./safari_pricing.db"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    # Seed reference data on startup when tables are empty
    SEED_ON_STARTUP: bool = True

    # Currency conversion (1 USD = rate TZS)
    USD_TO_TZS_RATE: float = 2500.0

    # VAT added to tax-exclusive prices
    VAT_RATE: float = 0.18

    # Whether currency is part of the exact-duplicate price key
    DUPLICATE_KEY_INCLUDES_CURRENCY: bool = False

    # Upper bound for a line item duration when the trip has no dates
    MAX_LINE_ITEM_DURATION: int = 999

    # Quote session persistence
    LOCAL_STORE_DIR: str = "./data/quote_sessions"
    OFFER_MIRROR_ENABLED: bool = True

    class Config:
        env_file = ".env"


settings = Settings()
