# authflow/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- SECRET_KEY and ENCRYPTION_KEY must be set via env in production
- ENCRYPTION_KEY length is validated at load time, so a bad key stops
  the process before it serves a single request
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# AES-256 needs exactly 32 bytes of key material
ENCRYPTION_KEY_LENGTH = 32


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "authflow"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    PORT: int = 8880
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # Environment mode
    # "production" turns on the Secure flag of the session cookie
    # ─────────────────────────────────────────────────────────────
    ENVIRONMENT: str = "development"

    # ─────────────────────────────────────────────────────────────
    # Security: session tokens
    # SECRET_KEY MUST be set in production via environment variable
    # ─────────────────────────────────────────────────────────────
    SECRET_KEY: str = "INSECURE_DEV_KEY_CHANGE_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_DAYS: int = 7

    # ─────────────────────────────────────────────────────────────
    # Security: 2FA secret encryption (AES-256-CBC)
    # ─────────────────────────────────────────────────────────────
    ENCRYPTION_KEY: str = "dev-only-encryption-key-32-bytes"

    @field_validator("ENCRYPTION_KEY")
    @classmethod
    def check_encryption_key_length(cls, v: str) -> str:
        if len(v.encode("utf-8")) != ENCRYPTION_KEY_LENGTH:
            raise ValueError(
                f"ENCRYPTION_KEY must be exactly {ENCRYPTION_KEY_LENGTH} bytes"
            )
        return v

    # ─────────────────────────────────────────────────────────────
    # Account lifecycle
    # ─────────────────────────────────────────────────────────────
    VERIFICATION_CODE_EXPIRE_HOURS: int = 24
    BCRYPT_ROUNDS: int = 10
    TOTP_ISSUER: str = "authflow"

    # ─────────────────────────────────────────────────────────────
    # Email provider (Mailtrap send API)
    # ─────────────────────────────────────────────────────────────
    MAILTRAP_TOKEN: str = ""
    MAILTRAP_API_URL: str = "https://send.api.mailtrap.io/api/send"
    MAILTRAP_WELCOME_TEMPLATE_UUID: str = ""
    MAIL_SENDER_EMAIL: str = "hello@demomailtrap.co"
    MAIL_SENDER_NAME: str = "authflow"
    MAIL_TIMEOUT_SECONDS: float = 10.0

    # ─────────────────────────────────────────────────────────────
    # Storage: one "accounts" table; a local SQLite file unless DATABASE_URL is set
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./authflow.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Rewrite plain postgres/sqlite URLs to their async driver form (asyncpg, aiosqlite)."""
        if v is None:
            return "sqlite+aiosqlite:///./authflow.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # Logs every statement, password hashes included
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # Browser origins allowed to send the session cookie (comma separated)
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        # SQLite gets NullPool, see db/session.py
        return "sqlite" in self.DATABASE_URL.lower()


@lru_cache()
def get_settings() -> Settings:
    """Settings read from the environment and .env on first call."""
    return Settings()
