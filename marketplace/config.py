"""Environment-driven settings and logging setup."""

import logging
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment (.env supported).

    Attributes:
        storage_backend: "supabase" for the hosted database, "memory" for
            local development and tests.
        supabase_url: Supabase project URL.
        supabase_key: Supabase service key.
        jwt_secret_key: Secret used to sign access tokens. Required.
        jwt_algorithm: JWT signing algorithm.
        jwt_expire_minutes: Access token lifetime.
        cors_origins: Origins allowed by the CORS middleware, as a JSON list
            in the environment (CORS_ORIGINS='["https://app.example.com"]').
        log_level: Root log level name.
    """

    storage_backend: Literal["supabase", "memory"] = "supabase"

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # JWT
    jwt_secret_key: str  # no default: tokens must never be signed with a known key
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 1 week

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    log_level: str = "INFO"

    @field_validator("storage_backend", mode="before")
    @classmethod
    def lower_backend(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the API process.

    Args:
        settings: Settings providing the log level.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Avoid duplicate handlers if logging already configured (e.g. by uvicorn)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(handler)
