from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "stokcer_db"

    # Cart persistence (one record per device profile)
    CART_STORAGE_KEY: str = "e-commerce-cart"
    CART_STORAGE_DIR: str = ".stokcer/storage"

    # Money formatting
    DEFAULT_CURRENCY: str = "IDR"
    DEFAULT_LOCALE: str = "id-ID"

    # Upper bound applied by the HTTP layer around checkout session creation
    CHECKOUT_TIMEOUT_SECONDS: float = 30.0

    # Application Settings
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Stokcer"
    BASE_URL: str = "http://localhost:5173"  # Storefront origin, used for checkout return URLs
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
