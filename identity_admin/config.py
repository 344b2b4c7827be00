"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


# Development-only signing key. CredentialService refuses it
# when ENVIRONMENT is "production".
DEFAULT_JWT_SECRET = (
    "default-secret-key-change-in-production-must-be-at-least-256-bits-long"
)


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Identity Admin"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./identity_admin.db"
    )
    SEED_REFERENCE_DATA: bool = (
        os.getenv("SEED_REFERENCE_DATA", "true").lower() == "true"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Tokens (lifetimes in seconds)
    JWT_SECRET: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ACCESS_TOKEN_EXPIRATION: int = int(
        os.getenv("JWT_ACCESS_TOKEN_EXPIRATION", str(15 * 60))
    )
    JWT_REFRESH_TOKEN_EXPIRATION: int = int(
        os.getenv("JWT_REFRESH_TOKEN_EXPIRATION", str(24 * 60 * 60))
    )
    JWT_REMEMBER_ME_EXPIRATION: int = int(
        os.getenv("JWT_REMEMBER_ME_EXPIRATION", str(30 * 24 * 60 * 60))
    )

    # Passwords
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Audit trail
    AUDIT_QUEUE_SIZE: int = int(os.getenv("AUDIT_QUEUE_SIZE", "1000"))

    # Optional first administrator, created at startup if missing
    BOOTSTRAP_ADMIN_USERNAME: str = os.getenv("BOOTSTRAP_ADMIN_USERNAME", "admin")
    BOOTSTRAP_ADMIN_EMAIL: str = os.getenv(
        "BOOTSTRAP_ADMIN_EMAIL", "admin@example.com"
    )
    BOOTSTRAP_ADMIN_PASSWORD: str | None = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
