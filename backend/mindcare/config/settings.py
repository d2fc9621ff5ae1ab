"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "MindCare AI"
    app_version: str = "1.0.0"
    debug: bool = True

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # Storage
    storage_type: str = "local"
    local_storage_path: str = "./data"

    # LLM Provider settings
    llm_provider: str = "gemini"  # "gemini" or "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_timeout_seconds: float = 30.0

    # Legacy key (still accepted)
    gemini_api_key: Optional[str] = None

    # Event bus (Inngest-compatible event API)
    event_bus_url: str = "https://inn.gs"
    event_key: Optional[str] = None
    event_bus_timeout_seconds: float = 3.0

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/mindcare.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_library_level: str = "WARNING"  # httpx, httpcore and uvicorn.access loggers

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
