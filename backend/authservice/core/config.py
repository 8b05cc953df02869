"""Application configuration and settings management."""
from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}


def parse_duration(value: int | str) -> int:
    """Convert ``90``, ``"90"``, ``"15m"``, ``"1h"`` or ``"7d"`` to seconds."""

    if isinstance(value, int):
        return value
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit.lower()]


class Settings(BaseSettings):
    """Process-wide settings loaded once from the environment or an env file."""

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env.dev",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Auth Service"
    app_env: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    allowed_origins: Annotated[List[str], NoDecode] = ["*"]

    # Database
    mongo_uri: str | None = None
    mongo_db: str = "authservice"
    mongo_timeout_ms: int = 5000

    # Security
    jwt_secret_key: str | None = None
    jwt_expires_in: int = 60 * 60
    jwt_algorithm: str = "HS256"
    cookie_name: str = "authToken"
    cookie_secure: bool = False  # development default, enable behind HTTPS

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("jwt_expires_in", mode="before")
    @classmethod
    def _parse_ttl(cls, value: int | str) -> int:
        return parse_duration(value)

    @field_validator("app_env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def mode_label(self) -> str:
        return "Production" if self.is_production else "Development"


def env_file_for(app_env: str | None) -> Path:
    """Return the env file matching the runtime mode."""

    name = ".env.prod" if (app_env or "").strip().lower() == "production" else ".env.dev"
    return BASE_DIR / name


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings(_env_file=env_file_for(os.environ.get("APP_ENV")))
