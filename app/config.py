import os
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache
# Load environment variables from .env file
from dotenv import load_dotenv

load_dotenv()

PLACEHOLDER_MONGODB_URI = "My MONGODB_URI"


class Settings(BaseSettings):
    """Application settings configuration using Pydantic.

    This centralizes all environment variables and configuration settings.
    Values can be overridden by environment variables with the same name.
    """
    # Database settings
    MONGODB_URI: Optional[str] = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: Optional[str] = os.getenv("MONGODB_DB_NAME")
    MONGODB_DEFAULT_DB_NAME: str = "events_app"
    MONGODB_CONNECT_TIMEOUT_MS: int = 10000
    MONGODB_SOCKET_TIMEOUT_MS: int = 45000

    # API settings
    API_PREFIX: str = "/api/v3/app"
    PROJECT_NAME: str = "Events API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.getenv("PORT", "3000"))

    # CORS settings
    CORS_ORIGINS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = "logs"

    # Upload settings
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB

    # Pagination settings
    DEFAULT_PAGE_LIMIT: int = 5
    MAX_PAGE_LIMIT: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in validation

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def mongodb_configured(self) -> bool:
        return bool(self.MONGODB_URI) and self.MONGODB_URI != PLACEHOLDER_MONGODB_URI


@lru_cache
def get_settings() -> Settings:
    """Create cached instance of settings.

    Returns:
        Settings: Application settings
    """
    return Settings()
