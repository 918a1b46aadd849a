"""Application configuration using Pydantic Settings."""

from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Basic app settings
    app_name: str = "APIRequester Pro"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API settings
    api_prefix: str = "/api/v1"
    docs_url: str = "/docs"
    redoc_url: str = "/redoc"

    # CORS settings
    allowed_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    allowed_methods: List[str] = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    allowed_headers: List[str] = ["*"]

    # Database settings
    database_url: str = "sqlite:///./apirequester.db"

    # Template resolution
    max_resolution_passes: int = 10

    # Outbound HTTP settings
    request_timeout: float = 10.0
    max_connections: int = 100
    keepalive_expiry: float = 60.0
    dispatch_retry_count: int = 0
    dispatch_retry_delay: float = 1.0

    # Load testing bounds
    max_concurrency: int = 100
    max_iterations: int = 50

    # Persistence settings
    max_stored_attempts: int = 5000
    history_page_size: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
