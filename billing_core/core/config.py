"""Configuration module for the billing engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from billing_core.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    ALLOW_FUTURE_BILLING: bool
    BLOCK_DELINQUENT_SUBSCRIPTIONS: bool
    DELINQUENT_SUSPENSION_GRACE_DAYS: int
    BILLING_JOB_HOUR: int
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="billing-core",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./billing.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        ALLOW_FUTURE_BILLING=_as_bool(os.getenv("ALLOW_FUTURE_BILLING"), default=False),
        BLOCK_DELINQUENT_SUBSCRIPTIONS=_as_bool(os.getenv("BLOCK_DELINQUENT_SUBSCRIPTIONS"), default=True),
        DELINQUENT_SUSPENSION_GRACE_DAYS=int(os.getenv("DELINQUENT_SUSPENSION_GRACE_DAYS", "0")),
        BILLING_JOB_HOUR=int(os.getenv("BILLING_JOB_HOUR", "3")),
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL.", field="DATABASE_URL"
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.", field="DATABASE_URL")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.DELINQUENT_SUSPENSION_GRACE_DAYS < 0:
        raise ConfigurationError(
            "DELINQUENT_SUSPENSION_GRACE_DAYS must be >= 0.", field="DELINQUENT_SUSPENSION_GRACE_DAYS"
        )
    if not 0 <= config.BILLING_JOB_HOUR <= 23:
        raise ConfigurationError("BILLING_JOB_HOUR must be between 0 and 23.", field="BILLING_JOB_HOUR")
    if not config.API_PREFIX.startswith("/"):
        raise ConfigurationError("API_PREFIX must start with '/'.", field="API_PREFIX")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.", field="LOG_LEVEL")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.", field="DATABASE_URL")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
