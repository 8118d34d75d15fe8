"""
config/settings.py
Application settings loaded from environment variables.
Uses Pydantic BaseSettings for validation and type safety.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    APP_NAME: str = "Decor Booking Platform"
    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # ── Server ───────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # ── Document Store ───────────────────────────────────────
    STORE_BACKEND: str = "mongo"        # mongo | memory
    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "decorDB"
    MONGO_TIMEOUT_MS: int = 5000

    # ── Redis ────────────────────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── JWT (tokens issued by the identity provider) ─────────
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # ── Stripe ───────────────────────────────────────────────
    STRIPE_SECRET_KEY: Optional[str] = None
    PAYMENT_CURRENCY: str = "usd"

    # ── Business Config ──────────────────────────────────────
    DECORATOR_SHARE: float = 0.4        # platform keeps the rest

    # ── Frontend ─────────────────────────────────────────────
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    @field_validator("STORE_BACKEND")
    @classmethod
    def _known_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("mongo", "memory"):
            raise ValueError("STORE_BACKEND must be 'mongo' or 'memory'")
        return v

    @field_validator("DECORATOR_SHARE")
    @classmethod
    def _share_is_fraction(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("DECORATOR_SHARE must be between 0 and 1")
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def payments_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance; call this everywhere."""
    return Settings()


settings = get_settings()
