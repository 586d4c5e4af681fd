"""
Configuration settings for the application
"""

import os
from typing import Dict, List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./event_rsvp.db")

    # Security
    # Bearer token -> host user id, used by the default auth provider
    HOST_TOKENS: Dict[str, str] = {}

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Import wizard
    IMPORT_UPLOAD_TTL_MINUTES: int = 60
    IMPORT_PREVIEW_ROWS: int = 5

    # RSVP tokens: 9 random bytes encode to 12 url-safe characters
    RSVP_TOKEN_BYTES: int = 9

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

settings = Settings()
