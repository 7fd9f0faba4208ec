"""
updates_sdk.tier0_core.config
──────────────────────────────
Typed configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic. An unknown deployment
environment raises at load time, not when the first update check runs.

Minimal stack: pydantic-settings + python-dotenv
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "staging", "production")


class SdkConfig(BaseSettings):
    """
    Typed updates_sdk configuration. All env vars are prefixed with CPTM_
    unless overridden by an alias.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Deployment ────────────────────────────────────────────────────────────
    environment: str = Field(default="production", alias="CPTM_ENV")

    # ── Development overrides ─────────────────────────────────────────────────
    update_url_env_var: str = Field(
        default="CPTM_CLIENT_UPDATE_URL", alias="CPTM_UPDATE_URL_ENV_VAR"
    )
    providers_url_env_var: str = Field(
        default="CPTM_CLIENT_PROVIDERS_URL", alias="CPTM_PROVIDERS_URL_ENV_VAR"
    )

    # ── Provider list refresh ─────────────────────────────────────────────────
    refresh_hour: int = Field(default=3, alias="CPTM_REFRESH_HOUR")
    timezone: str = Field(default="Asia/Tokyo", alias="CPTM_TIMEZONE")
    http_timeout: float = Field(default=10.0, alias="CPTM_HTTP_TIMEOUT")
    event_prefix: str = Field(default="cptmc_", alias="CPTM_EVENT_PREFIX")

    # ── Store ─────────────────────────────────────────────────────────────────
    store_backend: str = Field(default="memory", alias="CPTM_STORE_BACKEND")
    store_path: str = Field(default="./cptm_options.json", alias="CPTM_STORE_PATH")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # ── Scheduler ─────────────────────────────────────────────────────────────
    scheduler_backend: str = Field(default="inprocess", alias="CPTM_SCHEDULER_BACKEND")

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="CPTM_LOG_LEVEL")
    log_format: str = Field(default="json", alias="CPTM_LOG_FORMAT")

    # ── Error reporting ───────────────────────────────────────────────────────
    error_backend: str = Field(default="none", alias="CPTM_ERROR_BACKEND")

    @field_validator("environment")
    @classmethod
    def validate_env(cls, v: str) -> str:
        if v.lower() not in ENVIRONMENTS:
            raise ValueError(f"environment must be one of {ENVIRONMENTS}, got {v!r}")
        return v.lower()

    @field_validator("refresh_hour")
    @classmethod
    def validate_refresh_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError(f"refresh_hour must be between 0 and 23, got {v}")
        return v


@lru_cache(maxsize=1)
def get_config() -> SdkConfig:
    """
    Return the singleton SDK config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return SdkConfig()


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()


__all__ = ["ENVIRONMENTS", "SdkConfig", "get_config"]
