# movie_reviews/core/config.py
from __future__ import annotations

"""
# MovieReviews · Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- CSV → list helpers for origins.
- Storage backend is switchable (`sql` for PostgreSQL, `memory` for dev/tests)
  so imports never crash when no database is around.

## Usage
    from movie_reviews.core.config import settings
"""

import logging
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Explicit secret for JWT verification; issuer/audience optional.
        - `ALLOW_DEV_AUTH` accepts an `X-User-Id` header instead of a token
          (never enable outside local development).

    Storage:
        - `REVIEWS_BACKEND=sql` uses PostgreSQL through SQLAlchemy (asyncpg).
        - `REVIEWS_BACKEND=memory` keeps reviews in process memory.
        - `DATABASE_DSN` overrides the DSN assembled from `POSTGRES_*`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "MovieReviews API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=24 * 60)
    ALLOW_DEV_AUTH: bool = False

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "movie_reviews"
    DATABASE_DSN: Optional[str] = None  # full async DSN, wins over POSTGRES_*

    # ── Reviews ───────────────────────────────────────────────
    REVIEWS_BACKEND: Literal["sql", "memory"] = "sql"
    # Legacy clients expect addReview failures as HTTP 200 + {"error"}.
    REVIEWS_STRICT_STATUS: bool = False

    # ── CORS ──────────────────────────────────────────────────
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://localhost:5173"]
    )

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN assembled from `POSTGRES_*`."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN (`DATABASE_DSN` when set)."""
        if self.DATABASE_DSN:
            return self.DATABASE_DSN
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

    @property
    def cors_origins_list(self) -> List[str]:
        return [str(u).rstrip("/") for u in (self.BACKEND_CORS_ORIGINS or [])]


# Singleton instance
settings = Settings()

if settings.ALLOW_DEV_AUTH and settings.is_production:
    log.warning("ALLOW_DEV_AUTH is enabled in production; X-User-Id headers are trusted")
