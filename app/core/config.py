"""Application configuration management.

This module handles environment-specific configuration loading, parsing, and management
for the application. It includes environment detection, .env file loading, and
configuration value parsing.
"""

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)


# Define environment types
class Environment(str, Enum):
    """Application environment types.

    Defines the possible environments the application can run in:
    development, staging, production, and test.
    """

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


# Determine environment
def get_environment() -> Environment:
    """Get the current environment.

    Returns:
        Environment: The current environment (development, staging, production, or test)
    """
    match os.getenv("APP_ENV", "development").lower():
        case "production" | "prod":
            return Environment.PRODUCTION
        case "staging" | "stage":
            return Environment.STAGING
        case "test":
            return Environment.TEST
        case _:
            return Environment.DEVELOPMENT


def load_env_file():
    """Load .env files, the environment-specific one taking precedence."""
    env_specific = f".env.{get_environment().value}"
    if Path(env_specific).exists():
        load_dotenv(env_specific)

    if Path(".env").exists():
        load_dotenv(".env")


load_env_file()


class Settings(BaseSettings):
    """Application settings.

    This class defines all configuration settings for the application,
    including the document store, the video/chat provider and session limits.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Settings
    APP_ENV: Environment = Field(default_factory=get_environment)
    PROJECT_NAME: str = "Mock Interview API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Schedule and run collaborative mock coding interviews"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:5174,http://localhost:3000"

    @property
    def ALLOWED_ORIGINS_LIST(self) -> list[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        origins = [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

        client_url = os.getenv("CLIENT_URL")
        if client_url and client_url not in origins:
            origins.append(client_url.strip())

        if not origins:
            return ["*"]
        return origins

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "1000 per day,200 per hour"
    RATE_LIMIT_SESSIONS: str = "120 per minute"
    RATE_LIMIT_SESSION_CREATE: str = "20 per minute"
    RATE_LIMIT_CHAT_TOKEN: str = "60 per minute"
    RATE_LIMIT_HEALTH: str = "100 per minute"

    # Firebase Configuration
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_CREDENTIALS_PATH: str = ""
    FIRESTORE_SESSIONS_COLLECTION: str = "sessions"
    FIRESTORE_USERS_COLLECTION: str = "users"

    # Stream (video + chat) Configuration
    STREAM_API_KEY: str = ""
    STREAM_API_SECRET: str = ""
    STREAM_CHAT_BASE_URL: str = "https://chat.stream-io-api.com"
    STREAM_VIDEO_BASE_URL: str = "https://video.stream-io-api.com"
    STREAM_TIMEOUT: float = 10.0
    STREAM_CALL_TYPE: str = "default"
    STREAM_CHANNEL_TYPE: str = "messaging"
    STREAM_USER_TOKEN_EXPIRE_HOURS: int = 24

    # Session lifecycle
    SESSION_MAX_PARTICIPANTS: int = Field(default=10, gt=0)
    SESSION_LIST_LIMIT: int = Field(default=20, gt=0)
    SESSION_WRITE_MAX_ATTEMPTS: int = Field(default=3, gt=0)

    @property
    def RATE_LIMIT_ENDPOINTS(self) -> dict:
        """Get rate limit configuration for endpoints."""
        return {
            "default": [limit.strip() for limit in self.RATE_LIMIT_DEFAULT.split(",")],
            "sessions": [self.RATE_LIMIT_SESSIONS],
            "session_create": [self.RATE_LIMIT_SESSION_CREATE],
            "chat_token": [self.RATE_LIMIT_CHAT_TOKEN],
            "health": [self.RATE_LIMIT_HEALTH],
        }


# Create settings instance
settings = Settings()
